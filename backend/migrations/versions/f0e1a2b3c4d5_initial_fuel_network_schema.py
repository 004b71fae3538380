"""initial fuel network schema

Revision ID: f0e1a2b3c4d5
Revises:
Create Date: 2026-03-02 00:00:00.000000

Creates the station network, product catalog with station price overrides,
users with bearer sessions, and the transactions table that carries each
prepaid token from purchase through redemption.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'f0e1a2b3c4d5'
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


def upgrade():
    # ============================================================================
    # omcs / stations: network owners
    # ============================================================================
    op.create_table(
        'omcs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('contact', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_omcs_deleted_at', 'omcs', ['deleted_at'])

    op.create_table(
        'stations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('omc_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('region', sa.String(length=120), nullable=True),
        sa.Column('district', sa.String(length=120), nullable=True),
        sa.Column('town', sa.String(length=120), nullable=True),
        sa.Column('manager_name', sa.String(length=255), nullable=True),
        sa.Column('manager_contact', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['omc_id'], ['omcs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('omc_id', 'name', name='uq_stations_omc_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stations_omc_id', 'stations', ['omc_id'])
    op.create_index('ix_stations_deleted_at', 'stations', ['deleted_at'])

    # ============================================================================
    # product_catalogs / station_product_prices: pricing
    # ============================================================================
    op.create_table(
        'product_catalogs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('omc_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('default_price', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['omc_id'], ['omcs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('omc_id', 'name', name='uq_product_catalogs_omc_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_catalogs_omc_id', 'product_catalogs', ['omc_id'])
    op.create_index('ix_product_catalogs_deleted_at', 'product_catalogs', ['deleted_at'])

    op.create_table(
        'station_product_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('catalog_id', sa.Integer(), nullable=False),
        sa.Column('station_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('effective_from', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['catalog_id'], ['product_catalogs.id'], ),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('catalog_id', 'station_id', name='uq_station_product_prices_catalog_station'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_station_product_prices_catalog_id', 'station_product_prices', ['catalog_id'])
    op.create_index('ix_station_product_prices_station_id', 'station_product_prices', ['station_id'])

    # ============================================================================
    # dispensers / pumps: forecourt hardware
    # ============================================================================
    op.create_table(
        'dispensers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('station_id', sa.Integer(), nullable=False),
        sa.Column('dispenser_number', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dispenser_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_dispensers_station_id', 'dispensers', ['station_id'])

    op.create_table(
        'pumps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('dispenser_id', sa.Integer(), nullable=False),
        sa.Column('product_catalog_id', sa.Integer(), nullable=False),
        sa.Column('pump_number', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['dispenser_id'], ['dispensers.id'], ),
        sa.ForeignKeyConstraint(['product_catalog_id'], ['product_catalogs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pump_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pumps_dispenser_id', 'pumps', ['dispenser_id'])
    op.create_index('ix_pumps_product_catalog_id', 'pumps', ['product_catalog_id'])

    # ============================================================================
    # users / session_tokens: authentication
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('contact', sa.String(length=64), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('national_id', sa.String(length=64), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('vehicle_count', sa.Integer(), nullable=True),
        sa.Column('omc_id', sa.Integer(), nullable=True),
        sa.Column('station_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['omc_id'], ['omcs.id'], ),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_omc_id', 'users', ['omc_id'])
    op.create_index('ix_users_station_id', 'users', ['station_id'])
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])
    op.create_index('ix_users_role_station', 'users', ['role', 'station_id'])

    op.create_table(
        'pump_attendants',
        sa.Column('pump_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['pump_id'], ['pumps.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('pump_id', 'user_id')
    )

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # transactions: prepaid tokens and their redemptions
    # ============================================================================
    # status flips UNUSED -> USED exactly once; redemption columns stay NULL
    # until then.
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('liters', sa.Numeric(14, 3), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='UNUSED'),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('driver_id', sa.Integer(), nullable=True),
        sa.Column('pump_attendant_id', sa.Integer(), nullable=True),
        sa.Column('station_id', sa.Integer(), nullable=True),
        sa.Column('dispenser_id', sa.Integer(), nullable=True),
        sa.Column('pump_id', sa.Integer(), nullable=True),
        sa.Column('product_catalog_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['pump_attendant_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ),
        sa.ForeignKeyConstraint(['dispenser_id'], ['dispensers.id'], ),
        sa.ForeignKeyConstraint(['pump_id'], ['pumps.id'], ),
        sa.ForeignKeyConstraint(['product_catalog_id'], ['product_catalogs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_transactions_token', 'transactions', ['token'], unique=True)
    op.create_index('ix_transactions_driver_id', 'transactions', ['driver_id'])
    op.create_index('ix_transactions_pump_attendant_id', 'transactions', ['pump_attendant_id'])
    op.create_index('ix_transactions_station_id', 'transactions', ['station_id'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('ix_transactions_status_created', 'transactions', ['status', 'created_at'])
    op.create_index('ix_transactions_attendant_status', 'transactions', ['pump_attendant_id', 'status'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('transactions')
    op.drop_table('session_tokens')
    op.drop_table('pump_attendants')
    op.drop_table('users')
    op.drop_table('pumps')
    op.drop_table('dispensers')
    op.drop_table('station_product_prices')
    op.drop_table('product_catalogs')
    op.drop_table('stations')
    op.drop_table('omcs')
