"""store ledger schema

Revision ID: sl001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete Store Ledger schema:
- users, permissions, session_tokens: authentication
- stores, store_users, store_user_permissions: tenants and per-store grants
- income_categories, expense_categories, vendors, clients: catalog
- expenses, purchases, sales, receivables: numbered ledger records
- expense_payments, receivable_payments: partial payments
- *_logs: append-only audit rows per record kind
- sequence_locks: numbering lock rows for databases without advisory locks

Ledger records carry database CHECKs so status, paid_at and amounts cannot
drift even if a code path bypasses the services.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sl001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _ledger_table(table, number_column, statuses, settled, extra_columns):
    status_list = ", ".join(f"'{s}'" for s in statuses)
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column(number_column, sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        *extra_columns,
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', number_column, name=f'uq_{table}_store_number'),
        sa.CheckConstraint('amount_cents >= 0', name=f'ck_{table}_amount_non_negative'),
        sa.CheckConstraint(f'status IN ({status_list})', name=f'ck_{table}_status'),
        sa.CheckConstraint(
            f"(status = '{settled}' AND paid_at IS NOT NULL) OR (status <> '{settled}' AND paid_at IS NULL)",
            name=f'ck_{table}_paid_at_matches_status',
        ),
        sqlite_autoincrement=True
    )
    op.create_index(f'ix_{table}_store_id', table, ['store_id'])
    op.create_index(f'ix_{table}_status', table, ['status'])
    op.create_index(f'ix_{table}_created_by', table, ['created_by'])
    op.create_index(f'ix_{table}_store_created', table, ['store_id', 'created_at'])


def _payments_table(table, parent_column, parent_table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint([parent_column], [f'{parent_table}.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount_cents > 0', name=f'ck_{table}_amount_positive'),
        sqlite_autoincrement=True
    )
    op.create_index(f'ix_{table}_{parent_column}', table, [parent_column])


def _logs_table(table, parent_column, parent_table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint([parent_column], [f'{parent_table}.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(f'ix_{table}_{parent_column}', table, [parent_column])


def _category_table(table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=30), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'name', name=f'uq_{table}_store_name'),
        sqlite_autoincrement=True
    )
    op.create_index(f'ix_{table}_store_id', table, ['store_id'])


def _contact_table(table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('identity_document', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'phone', name=f'uq_{table}_store_phone'),
        sqlite_autoincrement=True
    )
    op.create_index(f'ix_{table}_store_id', table, ['store_id'])
    op.create_index(f'ix_{table}_phone', table, ['phone'])


def upgrade():
    # ============================================================================
    # Authentication
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('module', sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'], unique=True)
    op.create_index('ix_permissions_module', 'permissions', ['module'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])

    # ============================================================================
    # Tenancy
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_created_by_user_id', 'stores', ['created_by_user_id'])

    op.create_table(
        'store_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'user_id', name='uq_store_users_store_user'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_store_users_store_id', 'store_users', ['store_id'])
    op.create_index('ix_store_users_user_id', 'store_users', ['user_id'])

    op.create_table(
        'store_user_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('permission_id', sa.Integer(), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'user_id', 'permission_id', name='uq_store_user_permission'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_store_user_permissions_store_user', 'store_user_permissions', ['store_id', 'user_id'])

    # ============================================================================
    # Catalog
    # ============================================================================
    _category_table('income_categories')
    _category_table('expense_categories')
    _contact_table('vendors')
    _contact_table('clients')

    # ============================================================================
    # Ledger records (numbered per store), payments and audit logs
    # ============================================================================
    _ledger_table('expenses', 'expense_number', ('pending', 'paid', 'cancelled'), 'paid', [
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('expense_categories.id'), nullable=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id'), nullable=True),
        sa.Column('vendor_name', sa.String(length=255), nullable=True),
        sa.Column('vendor_phone', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
    ])
    op.create_index('ix_expenses_due_date', 'expenses', ['due_date'])
    _payments_table('expense_payments', 'expense_id', 'expenses')
    _logs_table('expenses_logs', 'expense_id', 'expenses')

    _ledger_table('purchases', 'purchase_number', ('completed', 'refunded', 'cancelled'), 'completed', [
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('expense_categories.id'), nullable=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ])
    _logs_table('purchases_logs', 'purchase_id', 'purchases')

    _ledger_table('sales', 'sale_number', ('completed', 'refunded', 'cancelled'), 'completed', [
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('income_categories.id'), nullable=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ])
    _logs_table('sales_logs', 'sale_id', 'sales')

    _ledger_table('receivables', 'receivable_number', ('pending', 'paid', 'cancelled'), 'paid', [
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('income_categories.id'), nullable=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
    ])
    _payments_table('receivable_payments', 'receivable_id', 'receivables')
    _logs_table('receivables_logs', 'receivable_id', 'receivables')

    # ============================================================================
    # sequence_locks: numbering lock rows (non-PostgreSQL databases)
    # ============================================================================
    op.create_table(
        'sequence_locks',
        sa.Column('lock_key', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('acquired_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('lock_key'),
    )
    op.create_index('ix_sequence_locks_store_id', 'sequence_locks', ['store_id'])


def downgrade():
    op.drop_table('sequence_locks')
    for table in (
        'receivables_logs', 'receivable_payments', 'receivables',
        'sales_logs', 'sales',
        'purchases_logs', 'purchases',
        'expenses_logs', 'expense_payments', 'expenses',
        'clients', 'vendors', 'expense_categories', 'income_categories',
        'store_user_permissions', 'store_users', 'stores',
        'session_tokens', 'permissions', 'users',
    ):
        op.drop_table(table)
