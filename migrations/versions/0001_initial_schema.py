"""Initial schema: patients, archive, change log, ignored pairs, users, directory

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _patient_columns():
    """Columns shared by patients and deleted_patients."""
    return [
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('birth_date', sa.String(length=20), nullable=True),
        sa.Column('appointment_date', sa.String(length=20), nullable=True),
        sa.Column('appointment_time', sa.String(length=10), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='Ожидает'),
        sa.Column('doctor', sa.String(length=100), nullable=True),
        sa.Column('nurse', sa.String(length=100), nullable=True),
        sa.Column('teeth', sa.String(length=100), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('emoji', sa.String(length=16), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_email', sa.String(length=120), nullable=True),
    ]


def upgrade():
    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), primary_key=True),
        *_patient_columns(),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    for column in ('full_name', 'appointment_date', 'doctor', 'nurse'):
        op.create_index(f'ix_patients_{column}', 'patients', [column])

    op.create_table(
        'deleted_patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('original_id', sa.String(length=36), nullable=False),
        *_patient_columns(),
        sa.Column('original_created_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_by_email', sa.String(length=120), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=False),
    )
    for column in ('original_id', 'full_name', 'appointment_date', 'doctor', 'nurse', 'deleted_at'):
        op.create_index(f'ix_deleted_patients_{column}', 'deleted_patients', [column])

    op.create_table(
        'patient_changes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('field_name', sa.String(length=64), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.Column('changed_by_email', sa.String(length=120), nullable=True),
    )
    op.create_index('ix_patient_changes_patient_id', 'patient_changes', ['patient_id'])
    op.create_index('ix_patient_changes_changed_at', 'patient_changes', ['changed_at'])

    op.create_table(
        'ignored_duplicate_pairs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pair_key', sa.String(length=600), nullable=False, unique=True),
        sa.Column('identity_key_a', sa.String(length=300), nullable=False),
        sa.Column('identity_key_b', sa.String(length=300), nullable=False),
        sa.Column('created_by_email', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_ignored_duplicate_pairs_identity_key_a', 'ignored_duplicate_pairs', ['identity_key_a'])
    op.create_index('ix_ignored_duplicate_pairs_identity_key_b', 'ignored_duplicate_pairs', ['identity_key_b'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('pin_code_hash', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('login_count', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'doctors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
    )
    op.create_table(
        'nurses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
    )

    op.create_table(
        'whitelist_emails',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('provider', sa.String(length=20), nullable=False, server_default='email'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_whitelist_emails_email', 'whitelist_emails', ['email'], unique=True)

    op.create_table(
        'whitelist_email_doctors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('whitelist_email_id', sa.Integer(),
                  sa.ForeignKey('whitelist_emails.id', ondelete='CASCADE'), nullable=False),
        sa.Column('doctor_name', sa.String(length=100), nullable=False),
    )
    op.create_index('ix_whitelist_email_doctors_whitelist_email_id', 'whitelist_email_doctors', ['whitelist_email_id'])

    op.create_table(
        'whitelist_email_nurses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('whitelist_email_id', sa.Integer(),
                  sa.ForeignKey('whitelist_emails.id', ondelete='CASCADE'), nullable=False),
        sa.Column('nurse_name', sa.String(length=100), nullable=False),
    )
    op.create_index('ix_whitelist_email_nurses_whitelist_email_id', 'whitelist_email_nurses', ['whitelist_email_id'])


def downgrade():
    op.drop_table('whitelist_email_nurses')
    op.drop_table('whitelist_email_doctors')
    op.drop_table('whitelist_emails')
    op.drop_table('nurses')
    op.drop_table('doctors')
    op.drop_table('users')
    op.drop_table('ignored_duplicate_pairs')
    op.drop_table('patient_changes')
    op.drop_table('deleted_patients')
    op.drop_table('patients')
