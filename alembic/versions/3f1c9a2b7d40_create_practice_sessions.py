"""create_practice_sessions

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('sessions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=True),
        sa.Column('practice_sheet_id', sa.String(64), nullable=False),
        sa.Column('practice_sheet_name', sa.String(200), nullable=False),
        sa.Column('mode', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='in_progress'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attempted', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('incorrect', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unanswered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_taken', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('section_results_json', sa.Text(), nullable=True),
        sa.Column('intervals_json', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sessions_id', 'sessions', ['id'])
    op.create_index('ix_sessions_student_id', 'sessions', ['student_id'])
    op.create_index('ix_sessions_practice_sheet_id', 'sessions', ['practice_sheet_id'])
    op.create_index('ix_sessions_status', 'sessions', ['status'])

    op.create_table('session_responses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False),
        sa.Column('expression', sa.String(200), nullable=False),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.Column('user_answer', sa.String(32), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.Column('answered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_spent', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('session_id', 'question_number', name='uq_session_question')
    )
    op.create_index('ix_session_responses_id', 'session_responses', ['id'])
    op.create_index('ix_session_responses_session_id', 'session_responses', ['session_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_session_responses_session_id', table_name='session_responses')
    op.drop_index('ix_session_responses_id', table_name='session_responses')
    op.drop_table('session_responses')
    op.drop_index('ix_sessions_status', table_name='sessions')
    op.drop_index('ix_sessions_practice_sheet_id', table_name='sessions')
    op.drop_index('ix_sessions_student_id', table_name='sessions')
    op.drop_index('ix_sessions_id', table_name='sessions')
    op.drop_table('sessions')
