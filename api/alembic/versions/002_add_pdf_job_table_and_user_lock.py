"""Add pdf_job table and textbook lease columns on user

Revision ID: 002_add_pdf_job_table_and_user_lock
Revises: 001_initial_schema
Create Date: 2026-10-02 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002_add_pdf_job_table_and_user_lock'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Queue textbook updates durably and serialize them per user.
    """
    op.add_column('user', sa.Column('pdf_lock_token', sa.String(), nullable=True))
    op.add_column('user', sa.Column('pdf_locked_at', sa.DateTime(timezone=True), nullable=True))

    op.create_table(
        'pdf_job',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('attempt_id', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], name='pdf_job_user_id_fkey'),
        sa.ForeignKeyConstraint(['attempt_id'], ['exercise_attempt.id'], name='pdf_job_attempt_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='pdf_job_pkey'),
        sa.UniqueConstraint('attempt_id', name='pdf_job_attempt_id_key'),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'done', 'failed')",
            name='pdf_job_status_check'
        )
    )
    op.create_index(op.f('ix_pdf_job_user_id'), 'pdf_job', ['user_id'], unique=False)
    op.create_index(op.f('ix_pdf_job_status'), 'pdf_job', ['status'], unique=False)

    # Every attempt not yet in a textbook gets a job
    op.execute(
        """
        INSERT INTO pdf_job (id, user_id, attempt_id, status, attempts, created_at, updated_at)
        SELECT id, user_id, id, 'pending', 0, created_at, created_at
        FROM exercise_attempt
        WHERE added_to_pdf = false
        """
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_pdf_job_status'), table_name='pdf_job')
    op.drop_index(op.f('ix_pdf_job_user_id'), table_name='pdf_job')
    op.drop_table('pdf_job')
    op.drop_column('user', 'pdf_locked_at')
    op.drop_column('user', 'pdf_lock_token')
