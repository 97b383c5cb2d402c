"""create_payments_history_and_counters

Revision ID: c3e4a5b6d7f8
Revises: b2d3f4a5c6e7
Create Date: 2026-10-18 09:15:52.120447

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c3e4a5b6d7f8'
down_revision = 'b2d3f4a5c6e7'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('payment_number', sa.String(length=50), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(length=30), nullable=False),
        sa.Column('reference_number', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'payment_number', name='uq_payments_org_number')
    )
    op.create_index('ix_payments_payment_number', 'payments', ['payment_number'], unique=False)
    op.create_index('ix_payments_organization_id', 'payments', ['organization_id'], unique=False)
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'], unique=False)
    op.create_index('ix_payments_payment_date', 'payments', ['payment_date'], unique=False)
    op.create_index('ix_payments_is_deleted', 'payments', ['is_deleted'], unique=False)

    op.create_table('invoice_history',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoice_history_invoice_id', 'invoice_history', ['invoice_id'], unique=False)
    op.create_index('ix_invoice_history_organization_id', 'invoice_history', ['organization_id'], unique=False)
    op.create_index('ix_invoice_history_action', 'invoice_history', ['action'], unique=False)
    op.create_index('ix_invoice_history_created_at', 'invoice_history', ['created_at'], unique=False)

    op.create_table('id_counters',
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('counter_type', sa.String(length=50), nullable=False),
        sa.Column('current_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('organization_id', 'counter_type')
    )


def downgrade():
    op.drop_table('id_counters')
    op.drop_index('ix_invoice_history_created_at', table_name='invoice_history')
    op.drop_index('ix_invoice_history_action', table_name='invoice_history')
    op.drop_index('ix_invoice_history_organization_id', table_name='invoice_history')
    op.drop_index('ix_invoice_history_invoice_id', table_name='invoice_history')
    op.drop_table('invoice_history')
    op.drop_index('ix_payments_is_deleted', table_name='payments')
    op.drop_index('ix_payments_payment_date', table_name='payments')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_index('ix_payments_organization_id', table_name='payments')
    op.drop_index('ix_payments_payment_number', table_name='payments')
    op.drop_table('payments')
