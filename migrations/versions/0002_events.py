"""Personal calendar events

Revision ID: 0002_events
Revises: 0001_initial_schema
Create Date: 2026-10-20 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_events'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'events',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by_email', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_events_date', 'events', ['date'])
    op.create_index('ix_events_created_by_email', 'events', ['created_by_email'])


def downgrade():
    op.drop_index('ix_events_created_by_email', table_name='events')
    op.drop_index('ix_events_date', table_name='events')
    op.drop_table('events')
