"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Needed for the (uuid =, tsrange &&) exclusion constraint
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')

    # Create restaurants table
    op.create_table(
        'restaurants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='America/New_York'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create restaurant_settings table
    op.create_table(
        'restaurant_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), unique=True, nullable=False),
        sa.Column('address', sa.Text()),
        sa.Column('phone', sa.String(20)),
        sa.Column('day_start_hour', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('day_end_hour', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('slot_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('default_duration_minutes', sa.Integer(), nullable=False, server_default='90'),
        sa.Column('no_show_grace_minutes', sa.Integer(), nullable=False, server_default='120'),
        sa.Column('average_turnover_minutes', sa.Integer(), nullable=False, server_default='25'),
        sa.Column('waitlist_max_party_size', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('max_waitlist_length', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('waitlist_priority_ordering', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id')),
        sa.Column('username', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('role', sa.Enum('SUPER_ADMIN', 'RESTAURANT_ADMIN', 'STAFF', name='userrole'), server_default='STAFF'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create tables table
    op.create_table(
        'tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('shape', sa.String(20), nullable=False, server_default='square'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('restaurant_id', 'name', name='uq_tables_restaurant_name'),
        sa.CheckConstraint('capacity > 0', name='ck_tables_capacity_positive'),
    )

    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50)),
        sa.Column('phone_digits', sa.String(30)),
        sa.Column('email', sa.String(255)),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('notes', sa.Text()),
        sa.Column('total_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('no_show_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cancellation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_visit_date', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('restaurant_id', 'phone_digits', name='uq_customers_restaurant_phone'),
    )
    op.create_index('ix_customers_restaurant_name', 'customers', ['restaurant_id', 'name'])

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tables.id', ondelete='SET NULL')),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id', ondelete='SET NULL')),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50)),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='booked'),
        sa.Column('notes', sa.Text()),
        sa.Column('visit_counted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('idempotency_key', sa.String(100)),
        sa.Column('actual_arrival_time', sa.DateTime()),
        sa.Column('minutes_early_late', sa.Integer()),
        sa.Column('seated_at', sa.DateTime()),
        sa.Column('finished_at', sa.DateTime()),
        sa.Column('cancelled_at', sa.DateTime()),
        sa.Column('no_show_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('restaurant_id', 'idempotency_key', name='uq_reservations_idempotency_key'),
        sa.CheckConstraint('party_size >= 1', name='ck_reservations_party_size_positive'),
        sa.CheckConstraint('end_time > start_time', name='ck_reservations_interval'),
    )
    op.create_index('ix_reservations_table_start', 'reservations', ['table_id', 'start_time'])
    op.create_index('ix_reservations_restaurant_start', 'reservations', ['restaurant_id', 'start_time'])
    op.create_index('ix_reservations_status_start', 'reservations', ['status', 'start_time'])

    # No two active reservations may overlap on the same table
    op.execute(
        """
        ALTER TABLE reservations
        ADD CONSTRAINT ex_reservations_no_overlap
        EXCLUDE USING gist (
            table_id WITH =,
            tsrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status IN ('booked', 'confirmed', 'seated') AND table_id IS NOT NULL)
        """
    )

    # Create waitlist table
    op.create_table(
        'waitlist',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50)),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('preferences', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(20), nullable=False, server_default='waiting'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='normal'),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('estimated_wait_minutes', sa.Integer()),
        sa.Column('actual_wait_minutes', sa.Integer()),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tables.id', ondelete='SET NULL')),
        sa.Column('reservation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('reservations.id', ondelete='SET NULL')),
        sa.Column('arrived_at', sa.DateTime()),
        sa.Column('notified_at', sa.DateTime()),
        sa.Column('seated_at', sa.DateTime()),
        sa.Column('left_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('party_size >= 1', name='ck_waitlist_party_size_positive'),
    )
    op.create_index('ix_waitlist_restaurant_status', 'waitlist', ['restaurant_id', 'status'])
    op.create_index('ix_waitlist_restaurant_position', 'waitlist', ['restaurant_id', 'position'])

    # Create audit_logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id')),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True)),
        sa.Column('actor_type', sa.String(50)),
        sa.Column('actor_name', sa.String(255)),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50)),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True)),
        sa.Column('data_json', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_resource', 'audit_logs', ['resource_type', 'resource_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('waitlist')
    op.drop_table('reservations')
    op.drop_table('customers')
    op.drop_table('tables')
    op.drop_table('users')
    op.drop_table('restaurant_settings')
    op.drop_table('restaurants')
    op.execute('DROP TYPE IF EXISTS userrole')
