"""Initial HomeBake schema

Creates the tenant root (bakeries), staff accounts and auth tables, the
bread catalog, production/batch/inventory ledger tables, sales tables and
the activity feed with push subscriptions.

Revision ID: hb001_initial
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'hb001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # Tenancy and accounts
    # ==========================================================================
    op.create_table('bakeries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_bakeries'),
        sqlite_autoincrement=True,
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_users_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_users_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_bakery_id', ['bakery_id'], unique=False)
        batch_op.create_index('ix_users_bakery_role', ['bakery_id', 'role'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=True),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_session_tokens_bakery_id_bakeries'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sa.UniqueConstraint('token_hash', name='uq_session_tokens_token_hash'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    op.create_table('staff_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_staff_sessions_user_id_users'),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_staff_sessions_bakery_id_bakeries'),
        sa.PrimaryKeyConstraint('id', name='pk_staff_sessions'),
        sa.UniqueConstraint('user_id', name='uq_staff_sessions_user'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('staff_sessions', schema=None) as batch_op:
        batch_op.create_index('ix_staff_sessions_bakery_expires', ['bakery_id', 'expires_at'], unique=False)

    op.create_table('qr_invites',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_by_user_id', sa.Integer(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_qr_invites_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['used_by_user_id'], ['users.id'], name='fk_qr_invites_used_by_user_id_users'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_qr_invites_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_qr_invites'),
        sa.UniqueConstraint('token', name='uq_qr_invites_token'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('qr_invites', schema=None) as batch_op:
        batch_op.create_index('ix_qr_invites_bakery_used', ['bakery_id', 'is_used'], unique=False)

    # ==========================================================================
    # Catalog
    # ==========================================================================
    op.create_table('bread_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_bread_types_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_bread_types_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_bread_types'),
        sa.UniqueConstraint('bakery_id', 'name', name='uq_bread_types_bakery_name'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('bread_types', schema=None) as batch_op:
        batch_op.create_index('ix_bread_types_bakery_id', ['bakery_id'], unique=False)

    # ==========================================================================
    # Production: batches, production logs, inventory ledger
    # ==========================================================================
    op.create_table('batches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('batch_number', sa.String(length=16), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('planned_quantity', sa.Integer(), nullable=True),
        sa.Column('actual_quantity', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_batches_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], name='fk_batches_bread_type_id_bread_types'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_batches_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_batches'),
        sa.UniqueConstraint('bakery_id', 'bread_type_id', 'shift', 'business_date', 'batch_number',
                            name='uq_batches_number_per_shift'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('batches', schema=None) as batch_op:
        batch_op.create_index('ix_batches_bread_type_id', ['bread_type_id'], unique=False)
        batch_op.create_index('ix_batches_bakery_shift_date', ['bakery_id', 'shift', 'business_date'], unique=False)
        batch_op.create_index('ix_batches_bakery_status', ['bakery_id', 'status'], unique=False)

    op.create_table('production_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('batch_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_production_logs_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], name='fk_production_logs_bread_type_id_bread_types'),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], name='fk_production_logs_batch_id_batches'),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], name='fk_production_logs_recorded_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_production_logs'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('production_logs', schema=None) as batch_op:
        batch_op.create_index('ix_production_logs_bread_type_id', ['bread_type_id'], unique=False)
        batch_op.create_index('ix_production_logs_bakery_shift_date', ['bakery_id', 'shift', 'business_date'], unique=False)
        batch_op.create_index('ix_production_logs_bakery_created', ['bakery_id', 'created_at'], unique=False)

    op.create_table('inventory_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('reference_type', sa.String(length=32), nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_inventory_logs_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], name='fk_inventory_logs_bread_type_id_bread_types'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_inventory_logs_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_logs'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('inventory_logs', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_logs_bread_type_id', ['bread_type_id'], unique=False)
        batch_op.create_index('ix_inventory_logs_bakery_created', ['bakery_id', 'created_at'], unique=False)
        batch_op.create_index('ix_inventory_logs_reference', ['reference_type', 'reference_id'], unique=False)

    # ==========================================================================
    # Sales, remaining bread, shift reports and feedback
    # ==========================================================================
    op.create_table('sales_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('returned', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('leftover', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_sales_logs_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], name='fk_sales_logs_bread_type_id_bread_types'),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], name='fk_sales_logs_recorded_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_sales_logs'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('sales_logs', schema=None) as batch_op:
        batch_op.create_index('ix_sales_logs_bread_type_id', ['bread_type_id'], unique=False)
        batch_op.create_index('ix_sales_logs_bakery_shift_date', ['bakery_id', 'shift', 'business_date'], unique=False)
        batch_op.create_index('ix_sales_logs_recorder_date', ['recorded_by_user_id', 'business_date'], unique=False)

    op.create_table('remaining_bread',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('bread_type_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('recorded_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_remaining_bread_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['bread_type_id'], ['bread_types.id'], name='fk_remaining_bread_bread_type_id_bread_types'),
        sa.ForeignKeyConstraint(['recorded_by_user_id'], ['users.id'], name='fk_remaining_bread_recorded_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_remaining_bread'),
        sa.UniqueConstraint('bakery_id', 'bread_type_id', 'shift', 'business_date', 'recorded_by_user_id',
                            name='uq_remaining_bread_declaration'),
        sqlite_autoincrement=True,
    )

    op.create_table('shift_reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('total_revenue_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_items_sold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('sales_data', sa.JSON(), nullable=False),
        sa.Column('remaining_breads', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_shift_reports_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_shift_reports_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_shift_reports'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('shift_reports', schema=None) as batch_op:
        batch_op.create_index('ix_shift_reports_bakery_date', ['bakery_id', 'business_date'], unique=False)

    op.create_table('shift_feedback',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_shift_feedback_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_shift_feedback_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_shift_feedback'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('shift_feedback', schema=None) as batch_op:
        batch_op.create_index('ix_shift_feedback_bakery_id', ['bakery_id'], unique=False)

    # ==========================================================================
    # Activity feed and push subscriptions
    # ==========================================================================
    op.create_table('activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('user_name', sa.String(length=128), nullable=False),
        sa.Column('user_role', sa.String(length=16), nullable=False),
        sa.Column('activity_type', sa.String(length=32), nullable=False),
        sa.Column('shift', sa.String(length=16), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_activities_bakery_id_bakeries'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_activities_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_activities'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('activities', schema=None) as batch_op:
        batch_op.create_index('ix_activities_bakery_created', ['bakery_id', 'created_at'], unique=False)

    op.create_table('push_subscriptions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('bakery_id', sa.Integer(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('endpoint', sa.Text(), nullable=True),
        sa.Column('p256dh_key', sa.String(length=255), nullable=True),
        sa.Column('auth_key', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_push_subscriptions_user_id_users'),
        sa.ForeignKeyConstraint(['bakery_id'], ['bakeries.id'], name='fk_push_subscriptions_bakery_id_bakeries'),
        sa.PrimaryKeyConstraint('id', name='pk_push_subscriptions'),
        sa.UniqueConstraint('user_id', name='uq_push_subscriptions_user'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('push_subscriptions', schema=None) as batch_op:
        batch_op.create_index('ix_push_subscriptions_bakery_id', ['bakery_id'], unique=False)


def downgrade():
    for table_name in (
        'push_subscriptions',
        'activities',
        'shift_feedback',
        'shift_reports',
        'remaining_bread',
        'sales_logs',
        'inventory_logs',
        'production_logs',
        'batches',
        'bread_types',
        'qr_invites',
        'staff_sessions',
        'session_tokens',
        'users',
        'bakeries',
    ):
        op.drop_table(table_name)
