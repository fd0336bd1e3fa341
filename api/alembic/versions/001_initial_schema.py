"""Initial schema: user, paragraph and exercise_attempt

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-09-14 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('native_language', sa.String(), nullable=True),
        sa.Column('native_language_name', sa.String(), nullable=True),
        sa.Column('subscription_status', sa.String(), nullable=False, server_default='active'),
        sa.Column('last_exercise_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pdf_url', sa.String(), nullable=True),
        sa.Column('pdf_lessons_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pdf_last_updated', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='user_pkey'),
        sa.CheckConstraint(
            "subscription_status IN ('active', 'canceled', 'expired', 'trial')",
            name='user_subscription_status_check'
        )
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    op.create_table(
        'paragraph',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.String(), nullable=False),
        sa.Column('language', sa.String(length=2), nullable=False, server_default='en'),
        sa.Column('topics', sa.JSON(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='paragraph_pkey'),
        sa.CheckConstraint(
            "difficulty IN ('beginner', 'intermediate', 'advanced')",
            name='paragraph_difficulty_check'
        )
    )
    op.create_index(op.f('ix_paragraph_is_active'), 'paragraph', ['is_active'], unique=False)

    op.create_table(
        'exercise_attempt',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('paragraph_id', sa.String(length=32), nullable=False),
        sa.Column('exercise_type', sa.String(), nullable=False),
        sa.Column('user_answer', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False, server_default=''),
        sa.Column('ai_analysis', sa.JSON(), nullable=False),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('added_to_pdf', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], name='exercise_attempt_user_id_fkey'),
        sa.ForeignKeyConstraint(['paragraph_id'], ['paragraph.id'], name='exercise_attempt_paragraph_id_fkey'),
        sa.PrimaryKeyConstraint('id', name='exercise_attempt_pkey'),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='exercise_attempt_score_range')
    )
    op.create_index(op.f('ix_exercise_attempt_user_id'), 'exercise_attempt', ['user_id'], unique=False)
    op.create_index(op.f('ix_exercise_attempt_paragraph_id'), 'exercise_attempt', ['paragraph_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_exercise_attempt_paragraph_id'), table_name='exercise_attempt')
    op.drop_index(op.f('ix_exercise_attempt_user_id'), table_name='exercise_attempt')
    op.drop_table('exercise_attempt')
    op.drop_index(op.f('ix_paragraph_is_active'), table_name='paragraph')
    op.drop_table('paragraph')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
