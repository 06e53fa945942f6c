"""
Production logging and derived inventory.

available = max(0, produced - sold - leftover), per business date and
shift, and the inventory ledger always moves with the log it mirrors.
"""

import pytest

from conftest import MORNING_NOW, NIGHT_NOW
from homebake.models import InventoryLog, ProductionLog
from homebake.services import inventory_service, production_service, sales_service
from homebake.services.shift_service import current_policy, resolve_shift


def _row(items, bread_type_id):
    return next(i for i in items if i["bread_type_id"] == bread_type_id)


class TestProductionToSale:

    def test_produce_fifty_sell_twenty_leaves_thirty(self, db_session, manager, sales_rep, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=50, now=MORNING_NOW)
        sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=20, now=MORNING_NOW)

        window = resolve_shift(MORNING_NOW, current_policy())
        row = _row(inventory_service.derive_inventory(bread_type.bakery_id, window.business_date, window.shift), bread_type.id)

        assert row["produced"] == 50
        assert row["sold"] == 20
        assert row["available"] == 30
        assert row["revenue_cents"] == 20 * 50000
        assert inventory_service.ledger_balance(bread_type.bakery_id, bread_type.id, window.business_date, window.shift) == 30

    def test_api_flow(self, client, manager_headers, sales_headers, bread_type):
        response = client.post('/api/production', headers=manager_headers, json={
            'bread_type_id': bread_type.id,
            'quantity': 50,
        })
        assert response.status_code == 201
        assert response.json["data"]["bread_type"]["name"] == "Agege Loaf"
        assert response.json["message"]["type"] == "success"

        response = client.post('/api/sales', headers=sales_headers, json={
            'bread_type_id': bread_type.id,
            'quantity': 20,
        })
        assert response.status_code == 201

        response = client.get('/api/inventory', headers=sales_headers)
        assert response.status_code == 200
        row = _row(response.json["data"]["items"], bread_type.id)
        assert row["available"] == 30
        assert response.json["data"]["totals"]["available"] == 30

    def test_shifts_are_separate(self, db_session, manager, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=40, now=MORNING_NOW)
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=15, now=NIGHT_NOW)

        business_date = resolve_shift(MORNING_NOW, current_policy()).business_date
        morning = _row(inventory_service.derive_inventory(bread_type.bakery_id, business_date, "morning"), bread_type.id)
        night = _row(inventory_service.derive_inventory(bread_type.bakery_id, business_date, "night"), bread_type.id)
        day = _row(inventory_service.derive_inventory(bread_type.bakery_id, business_date), bread_type.id)

        assert (morning["produced"], night["produced"], day["produced"]) == (40, 15, 55)

    def test_leftover_reduces_availability(self, db_session, manager, sales_rep, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=30, now=MORNING_NOW)
        sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=10, leftover=5, now=MORNING_NOW)

        window = resolve_shift(MORNING_NOW, current_policy())
        row = _row(inventory_service.derive_inventory(bread_type.bakery_id, window.business_date, window.shift), bread_type.id)
        assert row["leftover"] == 5
        assert row["available"] == 15

    def test_oversold_clamps_to_zero(self, db_session, manager, sales_rep, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=5, now=MORNING_NOW)
        sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=8, now=MORNING_NOW)

        window = resolve_shift(MORNING_NOW, current_policy())
        row = _row(inventory_service.derive_inventory(bread_type.bakery_id, window.business_date, window.shift), bread_type.id)
        assert row["available"] == 0
        assert row["status"] == inventory_service.OUT_OF_STOCK


class TestProductionAtomicity:

    def test_ledger_failure_rolls_back_production(self, db_session, manager, bread_type, monkeypatch):
        def failing_ledger(**kwargs):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(inventory_service, "append_inventory_log", failing_ledger)

        with pytest.raises(RuntimeError):
            production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=10, now=MORNING_NOW)

        assert db_session.query(ProductionLog).count() == 0
        assert db_session.query(InventoryLog).count() == 0

    def test_ledger_row_references_production(self, db_session, manager, bread_type):
        log = production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=10, now=MORNING_NOW)

        entry = db_session.query(InventoryLog).one()
        assert entry.reference_type == "production_log"
        assert entry.reference_id == log.id
        assert entry.quantity_change == 10
        assert entry.reason == "production"

    @pytest.mark.parametrize("quantity", [0, -3, "abc", 1.5, None])
    def test_invalid_quantity(self, db_session, manager, bread_type, quantity):
        with pytest.raises(ValueError):
            production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=quantity, now=MORNING_NOW)
        assert db_session.query(ProductionLog).count() == 0


class TestStockStatus:

    def test_thresholds(self):
        assert inventory_service.stock_status(0, 10) == inventory_service.OUT_OF_STOCK
        assert inventory_service.stock_status(10, 10) == inventory_service.LOW_STOCK
        assert inventory_service.stock_status(11, 10) == inventory_service.AVAILABLE

    def test_low_stock_count_ignores_unproduced_types(self, db_session, owner, manager, bread_type):
        from homebake.services import bread_type_service

        bread_type_service.create_bread_type(
            bakery_id=owner.bakery_id,
            user_id=owner.id,
            payload={"name": "Chin Chin", "unit_price_cents": 20000},
        )
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=4, now=MORNING_NOW)

        business_date = resolve_shift(MORNING_NOW, current_policy()).business_date
        assert inventory_service.low_stock_count(owner.bakery_id, business_date) == 1

    def test_inventory_scope_must_be_known(self, client, owner_headers):
        assert client.get('/api/inventory?scope=week', headers=owner_headers).status_code == 400
        assert client.get('/api/inventory?scope=day', headers=owner_headers).json["data"]["scope"] == "day"

    def test_ledger_listing(self, client, owner_headers, manager, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=7, now=MORNING_NOW)

        response = client.get('/api/inventory/logs', headers=owner_headers)
        assert response.status_code == 200
        assert [row["quantity_change"] for row in response.json["data"]] == [7]


class TestProductionListing:

    def test_today_excludes_earlier_business_dates(self, client, manager_headers, manager, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=5, now=MORNING_NOW)
        client.post('/api/production', headers=manager_headers, json={
            'bread_type_id': bread_type.id, 'quantity': 12,
        })

        response = client.get('/api/production/today', headers=manager_headers)

        assert response.status_code == 200
        assert [log["quantity"] for log in response.json["data"]] == [12]

    def test_filter_by_recorder(self, client, owner_headers, owner, manager, bread_type):
        production_service.record_production(user=manager, bread_type_id=bread_type.id, quantity=5, now=MORNING_NOW)
        production_service.record_production(user=owner, bread_type_id=bread_type.id, quantity=7, now=MORNING_NOW)

        response = client.get(f'/api/production?recorded_by={owner.id}', headers=owner_headers)

        assert [log["quantity"] for log in response.json["data"]] == [7]

    def test_today_rejects_unknown_shift(self, client, manager_headers):
        response = client.get('/api/production/today?shift=evening', headers=manager_headers)
        assert response.status_code == 400
