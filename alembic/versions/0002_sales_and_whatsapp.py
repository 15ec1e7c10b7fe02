"""point of sale, bike reminders and whatsapp log

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 15:00:00

"""
from datetime import datetime

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None

DEFAULT_TEMPLATES = [
    ("MOT due in 30 days", "mot_reminder_30",
     "Hi {{FirstName}}, the MOT on your {{VehicleModel}} ({{LicensePlate}}) runs out this month. "
     "Reply to book it in with us."),
    ("MOT due this week", "mot_reminder_7",
     "Hi {{FirstName}}, the MOT on your {{VehicleModel}} ({{LicensePlate}}) runs out in less than a week. "
     "We can fit you in, just reply."),
    ("Oil change", "oil_change",
     "Hi {{FirstName}}, it has been six months since your {{VehicleModel}} was serviced. "
     "Time for an oil change?"),
    ("We miss you (6 months)", "inactive_6m",
     "Hi {{FirstName}}, we haven't seen your {{VehicleModel}} for a while. Pop in for a free safety check."),
    ("We miss you (12 months)", "inactive_12m",
     "Hi {{FullName}}, it's been a year since your last visit. Book your {{VehicleModel}} in this month "
     "for 10% off labour."),
    ("Free check", "promotion_free_check",
     "Hi {{FirstName}}, free chain and tyre check for your {{VehicleModel}} this week. No booking needed."),
]


def upgrade():
    with op.batch_alter_table('motorcycles') as batch_op:
        batch_op.add_column(sa.Column('mot_expiry_date', sa.Date(), nullable=True))
        batch_op.add_column(sa.Column('last_service_date', sa.Date(), nullable=True))
        batch_op.add_column(sa.Column('last_service_type', sa.String(length=100), nullable=True))

    op.create_table(
        'accessory_sales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_accessory_sales_id', 'accessory_sales', ['id'])
    op.create_index('ix_accessory_sales_created_at', 'accessory_sales', ['created_at'])

    op.create_table(
        'accessory_sale_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('accessory_sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('quantity >= 1', name='ck_accessory_sale_items_quantity_positive'),
    )
    op.create_index('ix_accessory_sale_items_id', 'accessory_sale_items', ['id'])

    op.create_table(
        'motorcycle_inventory',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('make', sa.String(length=100), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('registration', sa.String(length=20), nullable=True),
        sa.Column('vin', sa.String(length=50), nullable=True),
        sa.Column('mileage', sa.Integer(), nullable=True),
        sa.Column('condition', sa.Enum('NEW', 'USED', 'REFURBISHED', name='bikecondition'), nullable=False),
        sa.Column('cost_price', sa.Float(), nullable=False),
        sa.Column('sell_price', sa.Float(), nullable=False),
        sa.Column('status', sa.Enum('AVAILABLE', 'RESERVED', 'SOLD', name='inventorystatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_motorcycle_inventory_id', 'motorcycle_inventory', ['id'])
    op.create_index('ix_motorcycle_inventory_registration', 'motorcycle_inventory', ['registration'])
    op.create_index('ix_motorcycle_inventory_status', 'motorcycle_inventory', ['status'])

    op.create_table(
        'motorcycle_sales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('inventory_id', sa.Integer(),
                  sa.ForeignKey('motorcycle_inventory.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sale_price', sa.Float(), nullable=False),
        sa.Column('cost_price', sa.Float(), nullable=False),
        sa.Column('sale_date', sa.DateTime(), nullable=True),
        sa.Column('payment_method', sa.Enum('CASH', 'TRANSFER', 'FINANCE', 'CARD', name='paymentmethod'),
                  nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_motorcycle_sales_id', 'motorcycle_sales', ['id'])
    op.create_index('ix_motorcycle_sales_sale_date', 'motorcycle_sales', ['sale_date'])

    templates = op.create_table(
        'whatsapp_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('message_body', sa.Text(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_whatsapp_templates_id', 'whatsapp_templates', ['id'])
    op.create_index('ix_whatsapp_templates_category', 'whatsapp_templates', ['category'])

    op.create_table(
        'whatsapp_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('template_id', sa.Integer(),
                  sa.ForeignKey('whatsapp_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('template_category', sa.String(length=50), nullable=True),
        sa.Column('trigger_type', sa.String(length=50), nullable=False),
        sa.Column('phone_number', sa.String(length=30), nullable=False),
        sa.Column('message_body', sa.Text(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'QUEUED', 'SENT', 'DELIVERED', 'READ', 'FAILED', name='messagestatus'),
            nullable=False
        ),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_whatsapp_messages_id', 'whatsapp_messages', ['id'])
    op.create_index('ix_whatsapp_messages_customer_id', 'whatsapp_messages', ['customer_id'])
    op.create_index('ix_whatsapp_messages_provider_message_id', 'whatsapp_messages', ['provider_message_id'])
    op.create_index('ix_whatsapp_messages_created_at', 'whatsapp_messages', ['created_at'])

    now = datetime.utcnow()
    op.bulk_insert(templates, [
        {"name": name, "category": category, "message_body": body, "active": True,
         "created_at": now, "updated_at": now}
        for name, category, body in DEFAULT_TEMPLATES
    ])


def downgrade():
    op.drop_table('whatsapp_messages')
    op.drop_table('whatsapp_templates')
    op.drop_table('motorcycle_sales')
    op.drop_table('motorcycle_inventory')
    op.drop_table('accessory_sale_items')
    op.drop_table('accessory_sales')
    with op.batch_alter_table('motorcycles') as batch_op:
        batch_op.drop_column('last_service_type')
        batch_op.drop_column('last_service_date')
        batch_op.drop_column('mot_expiry_date')
