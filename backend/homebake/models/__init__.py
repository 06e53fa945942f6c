from .tenancy import Bakery
from .auth import User, SessionToken, StaffSession, QRInvite
from .catalog import BreadType
from .production import Batch, ProductionLog, InventoryLog
from .sales import SalesLog, RemainingBread, ShiftReport, ShiftFeedback
from .notifications import Activity, PushSubscription

__all__ = [
    'Bakery',
    'User', 'SessionToken', 'StaffSession', 'QRInvite',
    'BreadType',
    'Batch', 'ProductionLog', 'InventoryLog',
    'SalesLog', 'RemainingBread', 'ShiftReport', 'ShiftFeedback',
    'Activity', 'PushSubscription',
]
