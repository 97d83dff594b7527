"""Create commission ledger tables

Revision ID: 001_commission_ledger
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_commission_ledger'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create users, projects, payments, commissions and withdrawals"""

    # ====================
    # USERS TABLE
    # ====================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='ASSOCIATE', comment='ADMIN, ASSOCIATE'),
        sa.Column('is_active', sa.Boolean, nullable=True, server_default=sa.true()),
        sa.Column('ledger_version', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ====================
    # PROJECTS TABLE
    # ====================
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='ACTIVE'),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=True, server_default='2', comment='Commission % (0-10)'),
        sa.Column('approved_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 10)',
            name='ck_project_commission_rate',
        ),
    )
    op.create_index('ix_projects_status', 'projects', ['status'])

    # ====================
    # PAYMENTS TABLE
    # ====================
    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('associate_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_type', sa.String(20), nullable=False, server_default='INSTALLMENT'),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('received_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount >= 0', name='ck_payment_amount_non_negative'),
    )
    op.create_index('ix_payments_project_id', 'payments', ['project_id'])
    op.create_index('ix_payments_associate_id', 'payments', ['associate_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    # ====================
    # COMMISSIONS TABLE
    # ====================
    op.create_table(
        'commissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('associate_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('payment_id', sa.Uuid(), sa.ForeignKey('payments.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('project_id', sa.Uuid(), sa.ForeignKey('projects.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('sale_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=False, comment='Project rate % at generation time'),
        sa.Column('commission_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='EARNED'),
        sa.Column('earned_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        # At most one commission per payment, enforced by the database
        sa.UniqueConstraint('payment_id', name='uq_commission_payment'),
        sa.CheckConstraint('sale_amount >= 0', name='ck_commission_sale_amount'),
        sa.CheckConstraint('commission_rate >= 0 AND commission_rate <= 100', name='ck_commission_rate_range'),
        sa.CheckConstraint('commission_amount >= 0', name='ck_commission_amount'),
    )
    op.create_index('ix_commissions_associate_id', 'commissions', ['associate_id'])
    op.create_index('ix_commissions_project_id', 'commissions', ['project_id'])
    op.create_index('ix_commissions_associate_earned', 'commissions', ['associate_id', 'earned_date'])

    # ====================
    # WITHDRAWALS TABLE
    # ====================
    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('associate_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('method', sa.String(20), nullable=False, comment='BANK_TRANSFER, UPI, CHEQUE'),
        sa.Column('account_details', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('reference', sa.String(40), nullable=False, unique=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('processed_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_withdrawal_amount_positive'),
    )
    op.create_index('ix_withdrawals_associate_id', 'withdrawals', ['associate_id'])
    op.create_index('ix_withdrawals_status', 'withdrawals', ['status'])
    op.create_index('ix_withdrawals_associate_status', 'withdrawals', ['associate_id', 'status'])
    op.create_index('ix_withdrawals_created_at', 'withdrawals', ['created_at'])

    print("Commission ledger tables created")


def downgrade():
    """Drop commission ledger tables"""
    op.drop_table('withdrawals')
    op.drop_table('commissions')
    op.drop_table('payments')
    op.drop_table('projects')
    op.drop_table('users')
