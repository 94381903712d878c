"""Initial exam schema

Revision ID: 001
Revises:
Create Date: 2024-04-15 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('is_super_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'classes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('teacher_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'class_students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('class_id', sa.String(36), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_class_students_class_id', 'class_students', ['class_id'])

    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('question_bank_id', sa.String(36), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('correct_option', sa.Text(), nullable=False),
        sa.Column('incorrect_options', sa.JSON(), nullable=False),
        sa.Column('subject', sa.String(255), nullable=True),
        sa.Column('difficulty_rating', sa.String(20), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('incorrect_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('success_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('adaptive_difficulty', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_questions_question_bank_id', 'questions', ['question_bank_id'])

    op.create_table(
        'exams',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject', sa.String(255), nullable=True),
        sa.Column('class_id', sa.String(36), sa.ForeignKey('classes.id'), nullable=True),
        sa.Column('question_bank_id', sa.String(36), nullable=True),
        sa.Column('pool_question_ids', sa.JSON(), nullable=False),
        sa.Column('set_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('questions_per_set', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('expiring_hours', sa.Float(), nullable=False, server_default='1'),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_ended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('shuffle_questions', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('shuffle_options', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('score_released', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('answers_released', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sets_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_exams_owner_id', 'exams', ['owner_id'])

    op.create_table(
        'question_sets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('exam_id', sa.String(36), sa.ForeignKey('exams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('student_email', sa.String(255), nullable=False),
        sa.Column('student_id', sa.String(36), nullable=True),
        sa.Column('access_link', sa.String(255), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('access_link', name='uq_question_sets_access_link'),
    )
    op.create_index('ix_question_sets_exam_id', 'question_sets', ['exam_id'])
    op.create_index('ix_question_sets_exam_email', 'question_sets', ['exam_id', 'student_email'])

    op.create_table(
        'question_set_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'question_set_id', sa.String(36),
            sa.ForeignKey('question_sets.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('question_id', sa.String(36), sa.ForeignKey('questions.id'), nullable=False),
        sa.Column('question_order', sa.Integer(), nullable=False),
        sa.UniqueConstraint('question_set_id', 'question_id', name='uq_question_set_items_set_question'),
    )
    op.create_index('ix_question_set_items_question_set_id', 'question_set_items', ['question_set_id'])

    op.create_table(
        'submissions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('exam_id', sa.String(36), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('student_id', sa.String(36), nullable=False),
        sa.Column('student_email', sa.String(255), nullable=False),
        sa.Column(
            'question_set_id', sa.String(36),
            sa.ForeignKey('question_sets.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tab_switches', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('fullscreen_exits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submission_reason', sa.String(255), nullable=False, server_default='Manual submission'),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_submissions_exam_student'),
    )
    op.create_index('ix_submissions_exam_id', 'submissions', ['exam_id'])
    op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])


def downgrade():
    op.drop_table('submissions')
    op.drop_table('question_set_items')
    op.drop_table('question_sets')
    op.drop_table('exams')
    op.drop_table('questions')
    op.drop_table('class_students')
    op.drop_table('classes')
    op.drop_table('users')
