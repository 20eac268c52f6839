"""initial order and entitlement schema

Revision ID: 5a1c3e9d7b20
Revises:
Create Date: 2026-10-18 09:12:41.204113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1c3e9d7b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('can_login', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'address',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('recipient', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('zip_code', sa.String(), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_address_user_id', 'address', ['user_id'])

    op.create_table(
        'book',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('author', sa.String(), nullable=False),
        sa.Column('language', sa.String(), nullable=True),
        sa.Column('cover_image', sa.String(), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('content_location', sa.String(), nullable=True),
        sa.Column('content_kind', sa.String(), nullable=False),
        sa.Column('page_count', sa.Integer(), nullable=False),
        sa.Column('sample_location', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('stock >= 0', name='ck_book_stock_non_negative'),
    )
    op.create_index('ix_book_title', 'book', ['title'])
    op.create_index('ix_book_author', 'book', ['author'])

    op.create_table(
        'order',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('mode', sa.String(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('shipping_fee', sa.Float(), nullable=False),
        sa.Column('cod_fee', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('payment_status', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('shipping_address_id', sa.Integer(), sa.ForeignKey('address.id'), nullable=True),
        sa.Column('shipping_speed', sa.String(), nullable=True),
        sa.Column('delivery_eta', sa.DateTime(), nullable=True),
        sa.Column('rental_days', sa.Integer(), nullable=True),
        sa.Column('rental_end', sa.DateTime(), nullable=True),
        sa.Column('gift_email', sa.String(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('idempotency_key', sa.String(), nullable=True),
        sa.Column('gateway_order_id', sa.String(), nullable=True),
        sa.Column('gateway_payment_id', sa.String(), nullable=True),
        sa.Column('gateway_signature', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'idempotency_key', name='uq_order_user_idempotency_key'),
    )
    for column in ('user_id', 'mode', 'status', 'payment_status',
                   'idempotency_key', 'gateway_order_id', 'gateway_payment_id'):
        op.create_index(f'ix_order_{column}', 'order', [column])

    op.create_table(
        'orderitem',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id'), nullable=False),
        sa.Column('book_title', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
    )
    op.create_index('ix_orderitem_order_id', 'orderitem', ['order_id'])
    op.create_index('ix_orderitem_book_id', 'orderitem', ['book_id'])

    op.create_table(
        'gift',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('recipient_email', sa.String(), nullable=False),
        sa.Column('claim_token', sa.String(), nullable=False, unique=True),
        sa.Column('recipient_user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('claimed_at', sa.DateTime(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_gift_order_id', 'gift', ['order_id'])
    op.create_index('ix_gift_book_id', 'gift', ['book_id'])
    op.create_index('ix_gift_recipient_email', 'gift', ['recipient_email'])
    op.create_index('ix_gift_recipient_user_id', 'gift', ['recipient_user_id'])

    op.create_table(
        'book_summary',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id'), nullable=False, unique=True),
        sa.Column('summary', sa.String(), nullable=False),
        sa.Column('key_takeaways', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'review',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('user_name', sa.String(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_review_book_id', 'review', ['book_id'])
    op.create_index('ix_review_user_id', 'review', ['user_id'])


def downgrade() -> None:
    op.drop_table('review')
    op.drop_table('book_summary')
    op.drop_table('gift')
    op.drop_table('orderitem')
    op.drop_table('order')
    op.drop_table('book')
    op.drop_table('address')
    op.drop_table('user')
