"""initial workshop schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'staff_users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('OWNER', 'STAFF', name='staffrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_staff_users_id', 'staff_users', ['id'])
    op.create_index('ix_staff_users_email', 'staff_users', ['email'], unique=True)

    op.create_table(
        'workshop_settings',
        sa.Column('key', sa.String(length=100), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_customers_id', 'customers', ['id'])
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table(
        'motorcycles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('registration', sa.String(length=20), nullable=False),
        sa.Column('make', sa.String(length=100), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_motorcycles_id', 'motorcycles', ['id'])
    op.create_index('ix_motorcycles_registration', 'motorcycles', ['registration'])

    op.create_table(
        'stock_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('cost_price', sa.Float(), nullable=False),
        sa.Column('sell_price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('min_quantity', sa.Integer(), nullable=True),
        sa.Column('is_accessory', sa.Boolean(), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_stock_items_id', 'stock_items', ['id'])
    op.create_index('ix_stock_items_name', 'stock_items', ['name'])
    op.create_index('ix_stock_items_sku', 'stock_items', ['sku'], unique=True)
    op.create_index('ix_stock_items_category', 'stock_items', ['category'])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.Enum('IN', 'OUT', 'ADJUSTMENT', name='movementtype'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'])

    op.create_table(
        'repair_jobs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('motorcycle_id', sa.Integer(), sa.ForeignKey('motorcycles.id'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('RECEIVED', 'DIAGNOSING', 'WAITING_PARTS', 'IN_REPAIR', 'READY', 'DELIVERED', 'CANCELLED',
                    name='jobstatus'),
            nullable=False
        ),
        sa.Column('estimated_cost', sa.Float(), nullable=True),
        sa.Column('final_cost', sa.Float(), nullable=True),
        sa.Column('labor_cost', sa.Float(), nullable=True),
        sa.Column('invoice_number', sa.String(length=50), nullable=True, unique=True),
        sa.Column('payment_status', sa.Enum('UNPAID', 'PAID', name='paymentstatus'), nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_repair_jobs_id', 'repair_jobs', ['id'])
    op.create_index('ix_repair_jobs_job_number', 'repair_jobs', ['job_number'], unique=True)

    op.create_table(
        'repair_parts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_job_id', sa.Integer(), sa.ForeignKey('repair_jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id'), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('quantity >= 1', name='ck_repair_parts_quantity_positive'),
    )
    op.create_index('ix_repair_parts_id', 'repair_parts', ['id'])

    op.create_table(
        'repair_services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_job_id', sa.Integer(), sa.ForeignKey('repair_jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_repair_services_id', 'repair_services', ['id'])


def downgrade():
    op.drop_table('repair_services')
    op.drop_table('repair_parts')
    op.drop_table('repair_jobs')
    op.drop_table('stock_movements')
    op.drop_table('stock_items')
    op.drop_table('motorcycles')
    op.drop_table('customers')
    op.drop_table('workshop_settings')
    op.drop_table('staff_users')
