"""Baseline migration - clients, appointments, reminder markers

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates the appointment and reminder tables. Uses portable column types so
the same revision runs on PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create appointment and reminder tables."""

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('owner_name', sa.String(255), nullable=True),
        sa.Column('owner_email', sa.String(320), nullable=True),
        sa.Column('assigned_consultant_email', sa.String(320), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_clients_status', 'clients', ['status'])

    # ==========================================================================
    # Appointments (one per client)
    # ==========================================================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.String(5), nullable=False),
        sa.Column('location', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('proposed_date', sa.Date(), nullable=True),
        sa.Column('proposed_time', sa.String(5), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('client_id', name='uq_appointment_client'),
        sa.UniqueConstraint('token', name='uq_appointment_token'),
    )
    op.create_index('idx_appointments_date', 'appointments', ['appointment_date'])

    # ==========================================================================
    # Tokens (every token ever minted, for stale-link detection)
    # ==========================================================================
    op.create_table(
        'appointment_tokens',
        sa.Column('token', sa.String(64), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_appointment_tokens_client', 'appointment_tokens', ['client_id'])

    # ==========================================================================
    # Reminder markers (unique per token/kind/offset)
    # ==========================================================================
    op.create_table(
        'appointment_reminders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token', sa.String(64), sa.ForeignKey('appointment_tokens.token', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('offset_days', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('token', 'kind', 'offset_days', name='uq_appointment_reminder'),
    )
    op.create_index('idx_appointment_reminders_client', 'appointment_reminders', ['client_id'])

    # ==========================================================================
    # Monthly submissions (written by the dashboard entry forms)
    # ==========================================================================
    op.create_table(
        'monthly_submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(20), nullable=False),
        sa.Column('is_submitted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('client_id', 'year', 'month', name='uq_monthly_submission'),
    )

    # ==========================================================================
    # Notification log
    # ==========================================================================
    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notification_type', sa.String(40), nullable=False),
        sa.Column('recipient_email', sa.String(320), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('external_message_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_notification_logs_client', 'notification_logs', ['client_id', 'created_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('notification_logs')
    op.drop_table('monthly_submissions')
    op.drop_table('appointment_reminders')
    op.drop_table('appointment_tokens')
    op.drop_table('appointments')
    op.drop_table('clients')
