"""users and birthdays

Revision ID: 0001_initial
Revises: 
Create Date: 2024-03-01
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_table('birthdays',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('relationship', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('notify_before', sa.Integer(), nullable=False, server_default='7'),
        sa.Column('allow_notifications', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('notify_before >= 0 AND notify_before <= 365', name='ck_birthdays_notify_before'),
    )
    op.create_index('ix_birthdays_user_id', 'birthdays', ['user_id'])
    op.create_index('ix_birthdays_user_date', 'birthdays', ['user_id', 'birth_date'])
    op.create_index('ix_birthdays_user_name', 'birthdays', ['user_id', 'name'])

def downgrade():
    op.drop_index('ix_birthdays_user_name', table_name='birthdays')
    op.drop_index('ix_birthdays_user_date', table_name='birthdays')
    op.drop_index('ix_birthdays_user_id', table_name='birthdays')
    op.drop_table('birthdays')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
