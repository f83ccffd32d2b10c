"""Create users, exams, skill sections, attempts, feedback, grading jobs and vocabulary tables

Revision ID: 4c1e2b7d9a10
Revises:
Create Date: 2026-10-16 09:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '4c1e2b7d9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'roleenum': ('ADMIN', 'MODERATOR', 'USER'),
    'examtypeenum': ('READING', 'LISTENING', 'WRITING', 'SPEAKING'),
    'examattemptstatusenum': ('STARTED', 'GRADED', 'PENDING_AI', 'GRADING_FAILED'),
    'gradingjobstatusenum': ('QUEUED', 'COMPLETED', 'FAILED'),
}


def _enum(name: str):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    conn = op.get_bind()

    for name, values in ENUMS.items():
        result = conn.execute(sa.text(f"SELECT 1 FROM pg_type WHERE typname = '{name}'"))
        if not result.fetchone():
            labels = ", ".join(f"'{v}'" for v in values)
            conn.execute(sa.text(f"CREATE TYPE {name} AS ENUM ({labels})"))

    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('full_name', sa.String(), nullable=True),
    sa.Column('email', sa.String(), nullable=False),
    sa.Column('hashed_password', sa.String(), nullable=True),
    sa.Column('avatar', sa.String(), nullable=True),
    sa.Column('role', _enum('roleenum'), nullable=False, server_default='USER'),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_full_name'), 'users', ['full_name'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('exams',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('exam_name', sa.String(), nullable=False),
    sa.Column('exam_type', _enum('examtypeenum'), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exams_id'), 'exams', ['id'], unique=False)
    op.create_index(op.f('ix_exams_exam_type'), 'exams', ['exam_type'], unique=False)

    op.create_table('readings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('exam_id', sa.Integer(), nullable=False),
    sa.Column('reading_content', sa.Text(), nullable=False),
    sa.Column('reading_question', sa.Text(), nullable=True),
    sa.Column('reading_type', sa.String(), nullable=False),
    sa.Column('question_html', sa.Text(), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('correct_answer', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_readings_id'), 'readings', ['id'], unique=False)
    op.create_index(op.f('ix_readings_exam_id'), 'readings', ['exam_id'], unique=False)

    op.create_table('listenings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('exam_id', sa.Integer(), nullable=False),
    sa.Column('listening_content', sa.Text(), nullable=False),
    sa.Column('listening_question', sa.Text(), nullable=True),
    sa.Column('listening_type', sa.String(), nullable=False),
    sa.Column('question_html', sa.Text(), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('correct_answer', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_listenings_id'), 'listenings', ['id'], unique=False)
    op.create_index(op.f('ix_listenings_exam_id'), 'listenings', ['exam_id'], unique=False)

    op.create_table('writings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('exam_id', sa.Integer(), nullable=False),
    sa.Column('writing_question', sa.Text(), nullable=False),
    sa.Column('image_url', sa.String(), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_writings_id'), 'writings', ['id'], unique=False)
    op.create_index(op.f('ix_writings_exam_id'), 'writings', ['exam_id'], unique=False)

    op.create_table('speakings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('exam_id', sa.Integer(), nullable=False),
    sa.Column('speaking_question', sa.Text(), nullable=False),
    sa.Column('speaking_type', sa.String(), nullable=True),
    sa.Column('display_order', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_speakings_id'), 'speakings', ['id'], unique=False)
    op.create_index(op.f('ix_speakings_exam_id'), 'speakings', ['exam_id'], unique=False)

    op.create_table('exam_attempts',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('exam_id', sa.Integer(), nullable=False),
    sa.Column('status', _enum('examattemptstatusenum'), nullable=False, server_default='STARTED'),
    sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('answer_text', sa.Text(), nullable=True),
    sa.Column('total_score', sa.Float(), nullable=True),
    sa.Column('correct_count', sa.Integer(), nullable=True),
    sa.Column('total_questions', sa.Integer(), nullable=True),
    sa.Column('accuracy', sa.Float(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exam_attempts_id'), 'exam_attempts', ['id'], unique=False)
    op.create_index(op.f('ix_exam_attempts_user_id'), 'exam_attempts', ['user_id'], unique=False)
    op.create_index(op.f('ix_exam_attempts_exam_id'), 'exam_attempts', ['exam_id'], unique=False)

    op.create_table('writing_feedbacks',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('attempt_id', sa.Integer(), nullable=False),
    sa.Column('writing_id', sa.Integer(), nullable=False),
    sa.Column('task_achievement', sa.Float(), nullable=True),
    sa.Column('coherence_cohesion', sa.Float(), nullable=True),
    sa.Column('lexical_resource', sa.Float(), nullable=True),
    sa.Column('grammar_accuracy', sa.Float(), nullable=True),
    sa.Column('overall', sa.Float(), nullable=False),
    sa.Column('feedback_json', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ),
    sa.ForeignKeyConstraint(['writing_id'], ['writings.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('attempt_id', 'writing_id', name='uq_writing_feedback_attempt_skill')
    )
    op.create_index(op.f('ix_writing_feedbacks_id'), 'writing_feedbacks', ['id'], unique=False)
    op.create_index(op.f('ix_writing_feedbacks_attempt_id'), 'writing_feedbacks', ['attempt_id'], unique=False)

    op.create_table('speaking_feedbacks',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('attempt_id', sa.Integer(), nullable=False),
    sa.Column('speaking_id', sa.Integer(), nullable=False),
    sa.Column('pronunciation', sa.Float(), nullable=True),
    sa.Column('fluency', sa.Float(), nullable=True),
    sa.Column('lexical_resource', sa.Float(), nullable=True),
    sa.Column('grammar_accuracy', sa.Float(), nullable=True),
    sa.Column('coherence', sa.Float(), nullable=True),
    sa.Column('overall', sa.Float(), nullable=False),
    sa.Column('transcript', sa.Text(), nullable=True),
    sa.Column('feedback_json', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ),
    sa.ForeignKeyConstraint(['speaking_id'], ['speakings.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('attempt_id', 'speaking_id', name='uq_speaking_feedback_attempt_skill')
    )
    op.create_index(op.f('ix_speaking_feedbacks_id'), 'speaking_feedbacks', ['id'], unique=False)
    op.create_index(op.f('ix_speaking_feedbacks_attempt_id'), 'speaking_feedbacks', ['attempt_id'], unique=False)

    op.create_table('grading_jobs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('attempt_id', sa.Integer(), nullable=False),
    sa.Column('skill_id', sa.Integer(), nullable=False),
    sa.Column('exam_type', _enum('examtypeenum'), nullable=False),
    sa.Column('question', sa.Text(), nullable=True),
    sa.Column('answer_text', sa.Text(), nullable=True),
    sa.Column('audio_url', sa.String(), nullable=True),
    sa.Column('image_url', sa.String(), nullable=True),
    sa.Column('status', _enum('gradingjobstatusenum'), nullable=False, server_default='QUEUED'),
    sa.Column('error', sa.Text(), nullable=True),
    sa.Column('tries', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['attempt_id'], ['exam_attempts.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_grading_jobs_id'), 'grading_jobs', ['id'], unique=False)
    op.create_index(op.f('ix_grading_jobs_attempt_id'), 'grading_jobs', ['attempt_id'], unique=False)
    op.create_index(op.f('ix_grading_jobs_status'), 'grading_jobs', ['status'], unique=False)

    op.create_table('vocab_groups',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_vocab_groups_id'), 'vocab_groups', ['id'], unique=False)
    op.create_index(op.f('ix_vocab_groups_user_id'), 'vocab_groups', ['user_id'], unique=False)

    op.create_table('words',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('group_id', sa.Integer(), nullable=False),
    sa.Column('term', sa.String(), nullable=False),
    sa.Column('meaning', sa.Text(), nullable=True),
    sa.Column('phonetic', sa.String(), nullable=True),
    sa.Column('example', sa.Text(), nullable=True),
    sa.Column('audio_url', sa.String(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    sa.ForeignKeyConstraint(['group_id'], ['vocab_groups.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_words_id'), 'words', ['id'], unique=False)
    op.create_index(op.f('ix_words_group_id'), 'words', ['group_id'], unique=False)
    op.create_index(op.f('ix_words_term'), 'words', ['term'], unique=False)


def downgrade() -> None:
    for table in (
        'words', 'vocab_groups', 'grading_jobs', 'speaking_feedbacks', 'writing_feedbacks',
        'exam_attempts', 'speakings', 'writings', 'listenings', 'readings', 'exams', 'users',
    ):
        op.drop_table(table)

    conn = op.get_bind()
    for name in ENUMS:
        conn.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))
