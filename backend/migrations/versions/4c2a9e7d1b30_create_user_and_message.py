"""create user and message tables

Revision ID: 4c2a9e7d1b30
Revises:
Create Date: 2026-10-19 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2a9e7d1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=20), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('avatar', sa.String(length=256), nullable=False, server_default=''),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='offline'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)
        op.create_index('ix_user_email', 'user', ['email'], unique=True)

    if 'message' not in existing_tables:
        op.create_table(
            'message',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('content', sa.String(length=2000), nullable=False),
            sa.Column('sender_id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.String(length=64), nullable=False),
            sa.Column('type', sa.String(length=16), nullable=False, server_default='text'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['sender_id'], ['user.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_message_room_created', 'message', ['room_id', 'created_at'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'message' in existing_tables:
        op.drop_index('ix_message_room_created', table_name='message')
        op.drop_table('message')
    if 'user' in existing_tables:
        op.drop_index('ix_user_email', table_name='user')
        op.drop_index('ix_user_username', table_name='user')
        op.drop_table('user')
