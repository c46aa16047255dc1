"""initial

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('username', sa.String(150), primary_key=True),
        sa.Column('password', sa.Text(), nullable=False),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False),
        sa.Column('join_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_table('messages',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('from_username', sa.String(150), sa.ForeignKey('users.username'), nullable=False),
        sa.Column('to_username', sa.String(150), sa.ForeignKey('users.username'), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_messages_from_username', 'messages', ['from_username'])
    op.create_index('ix_messages_to_username', 'messages', ['to_username'])
    op.create_index('ix_messages_sent_at', 'messages', ['sent_at'])

def downgrade():
    op.drop_index('ix_messages_sent_at', table_name='messages')
    op.drop_index('ix_messages_to_username', table_name='messages')
    op.drop_index('ix_messages_from_username', table_name='messages')
    op.drop_table('messages')
    op.drop_table('users')
