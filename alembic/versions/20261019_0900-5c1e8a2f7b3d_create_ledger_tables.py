"""create_ledger_tables

Revision ID: 5c1e8a2f7b3d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1e8a2f7b3d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False, comment='邮箱'),
        sa.Column('name', sa.String(length=100), nullable=False, comment='姓名'),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='BUYER', comment='角色: BUYER/SELLER/ADMIN'),
        sa.Column('wallet_balance', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='钱包余额'),
        sa.Column('bank_name', sa.String(length=100), nullable=True, comment='开户行'),
        sa.Column('account_number', sa.String(length=50), nullable=True, comment='银行账号'),
        sa.Column('ifsc_code', sa.String(length=20), nullable=True, comment='IFSC 路由码'),
        sa.Column('account_holder_name', sa.String(length=100), nullable=True, comment='户名'),
        sa.Column('upi_id', sa.String(length=100), nullable=True, comment='UPI ID'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1', comment='行版本号'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('wallet_balance >= 0', name='ck_users_wallet_balance_non_negative'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False, comment='卖家ID'),
        sa.Column('title', sa.String(length=200), nullable=False, comment='标题'),
        sa.Column('price', sa.Numeric(precision=15, scale=2), nullable=False, comment='售价'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='DRAFT', comment='状态: DRAFT/PENDING/APPROVED/REJECTED'),
        sa.Column('sales_count', sa.Integer(), nullable=False, server_default='0', comment='销量'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_seller_id', 'projects', ['seller_id'])
    op.create_index('ix_projects_seller_status', 'projects', ['seller_id', 'status'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_number', sa.String(length=40), nullable=False, comment='订单编号'),
        sa.Column('buyer_id', sa.Integer(), nullable=False, comment='买家ID'),
        sa.Column('project_id', sa.Integer(), nullable=False, comment='项目ID'),
        sa.Column('seller_id', sa.Integer(), nullable=False, comment='卖家ID（下单时从项目解析）'),
        sa.Column('project_price', sa.Numeric(precision=15, scale=2), nullable=False, comment='售价'),
        sa.Column('platform_commission', sa.Numeric(precision=15, scale=2), nullable=False, comment='平台佣金'),
        sa.Column('seller_earning', sa.Numeric(precision=15, scale=2), nullable=False, comment='卖家收入'),
        sa.Column('commission_rate', sa.Numeric(precision=5, scale=2), nullable=False, comment='下单时佣金比例快照(%)'),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='CREATED', comment='订单状态'),
        sa.Column('payment_gateway', sa.String(length=20), nullable=False, server_default='RAZORPAY', comment='支付网关'),
        sa.Column('payment_order_id', sa.String(length=100), nullable=True, comment='网关侧订单号'),
        sa.Column('payment_id', sa.String(length=100), nullable=True, comment='网关侧支付ID'),
        sa.Column('failure_reason', sa.Text(), nullable=True, comment='失败原因'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True, comment='支付时间'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True, comment='完成时间'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['buyer_id'], ['users.id']),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_order_id'),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_buyer_id', 'orders', ['buyer_id'])
    op.create_index('ix_orders_project_id', 'orders', ['project_id'])
    op.create_index('ix_orders_seller_id', 'orders', ['seller_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_buyer_created', 'orders', ['buyer_id', 'created_at'])
    op.create_index('ix_orders_seller_status', 'orders', ['seller_id', 'status'])

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('withdrawal_number', sa.String(length=40), nullable=False, comment='提现编号'),
        sa.Column('seller_id', sa.Integer(), nullable=False, comment='卖家ID'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='提现金额'),
        sa.Column('bank_details', sa.JSON(), nullable=False, comment='申请时的收款信息快照'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING', comment='提现状态'),
        sa.Column('reviewed_by', sa.Integer(), nullable=True, comment='审核人'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True, comment='审核时间'),
        sa.Column('review_notes', sa.Text(), nullable=True, comment='审核备注'),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True, comment='驳回时间'),
        sa.Column('transaction_id', sa.String(length=100), nullable=True, comment='外部转账流水号'),
        sa.Column('payment_proof', sa.String(length=500), nullable=True, comment='打款凭证'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True, comment='完成时间'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='ck_withdrawals_amount_positive'),
    )
    op.create_index('ix_withdrawals_id', 'withdrawals', ['id'])
    op.create_index('ix_withdrawals_withdrawal_number', 'withdrawals', ['withdrawal_number'], unique=True)
    op.create_index('ix_withdrawals_seller_id', 'withdrawals', ['seller_id'])
    op.create_index('ix_withdrawals_seller_created', 'withdrawals', ['seller_id', 'created_at'])
    op.create_index('ix_withdrawals_status_created', 'withdrawals', ['status', 'created_at'])

    op.create_table(
        'wallet_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='钱包所属用户'),
        sa.Column('type', sa.String(length=10), nullable=False, comment='CREDIT/DEBIT'),
        sa.Column('source', sa.String(length=20), nullable=False, comment='SALE/WITHDRAWAL/REFUND'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='金额（正数）'),
        sa.Column('balance_before', sa.Numeric(precision=15, scale=2), nullable=False, comment='变更前余额'),
        sa.Column('balance_after', sa.Numeric(precision=15, scale=2), nullable=False, comment='变更后余额'),
        sa.Column('order_id', sa.Integer(), nullable=True, comment='关联订单'),
        sa.Column('withdrawal_id', sa.Integer(), nullable=True, comment='关联提现'),
        sa.Column('description', sa.String(length=255), nullable=False, server_default='', comment='描述'),
        sa.Column('metadata', sa.JSON(), nullable=True, comment='扩展元数据'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['withdrawal_id'], ['withdrawals.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='ck_wallet_transactions_amount_positive'),
    )
    op.create_index('ix_wallet_transactions_id', 'wallet_transactions', ['id'])
    op.create_index('ix_wallet_transactions_user_id', 'wallet_transactions', ['user_id'])
    op.create_index('ix_wallet_transactions_order_id', 'wallet_transactions', ['order_id'])
    op.create_index('ix_wallet_transactions_withdrawal_id', 'wallet_transactions', ['withdrawal_id'])
    op.create_index('ix_wallet_transactions_user_created', 'wallet_transactions', ['user_id', 'created_at'])

    op.create_table(
        'platform_settings',
        sa.Column('key', sa.String(length=100), nullable=False, comment='配置键'),
        sa.Column('value', sa.String(length=500), nullable=False, comment='配置值'),
        sa.Column('updated_by', sa.Integer(), nullable=True, comment='最后修改人'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('key'),
    )
    op.bulk_insert(
        sa.table('platform_settings', sa.column('key', sa.String), sa.column('value', sa.String)),
        [
            {'key': 'commission_percentage', 'value': '50'},
            {'key': 'minimum_withdrawal', 'value': '300'},
            {'key': 'currency', 'value': 'INR'},
        ],
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True, comment='操作人'),
        sa.Column('action', sa.String(length=50), nullable=False, comment='操作类型'),
        sa.Column('entity_type', sa.String(length=50), nullable=False, comment='实体类型'),
        sa.Column('entity_id', sa.String(length=50), nullable=False, comment='实体ID'),
        sa.Column('changes', sa.JSON(), nullable=True, comment='变更内容'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('platform_settings')
    op.drop_table('wallet_transactions')
    op.drop_table('withdrawals')
    op.drop_table('orders')
    op.drop_table('projects')
    op.drop_table('users')
