"""initial tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='USER'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
    )
    op.create_index('ix_subjects_name', 'subjects', ['name'], unique=True)

    op.create_table('grade_levels',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        sa.Column('age_range', sa.String(50), nullable=True),
        sa.Column('min_age', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_age', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table('curricula',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('publisher', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('grade_level_id', sa.Integer(),
                  sa.ForeignKey('grade_levels.id', ondelete='RESTRICT'), nullable=False),

        sa.Column('target_age_grade_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('teaching_approach_style', sa.String(255), nullable=False, server_default=''),
        sa.Column('teaching_approach_description', sa.Text(), nullable=False, server_default=''),
        sa.Column('teaching_approach_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('subject_comprehensiveness', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subjects_covered_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('materials_components', sa.JSON(), nullable=False),
        sa.Column('materials_completeness', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('materials_included_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('instruction_style_type', sa.String(255), nullable=False, server_default=''),
        sa.Column('instruction_support_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('instruction_style_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('time_commitment_daily_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_commitment_weekly_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_commitment_flexibility', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_commitment_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('cost_price_range', sa.String(4), nullable=False, server_default='$'),
        sa.Column('cost_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cost_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('strengths', sa.JSON(), nullable=False),
        sa.Column('weaknesses', sa.JSON(), nullable=False),
        sa.Column('best_for', sa.JSON(), nullable=False),

        sa.Column('availability_in_print', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('availability_digital', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('availability_used_market', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('availability_rating', sa.Integer(), nullable=False, server_default='0'),

        sa.Column('overall_rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_curricula_slug', 'curricula', ['slug'], unique=True)
    op.create_index('ix_curricula_name', 'curricula', ['name'])
    op.create_index('ix_curricula_grade_level_id', 'curricula', ['grade_level_id'])
    op.create_index('ix_curricula_cost_price_range', 'curricula', ['cost_price_range'])
    op.create_index('ix_curricula_overall_rating', 'curricula', ['overall_rating'])

    op.create_table('curriculum_subjects',
        sa.Column('curriculum_id', sa.Integer(),
                  sa.ForeignKey('curricula.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subject_id', sa.Integer(),
                  sa.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('ix_curriculum_subjects_subject_id', 'curriculum_subjects', ['subject_id'])

    op.create_table('saved_curricula',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('curriculum_id', sa.Integer(),
                  sa.ForeignKey('curricula.id', ondelete='CASCADE'), nullable=False),
        sa.Column('personal_notes', sa.Text(), nullable=True),
        sa.Column('saved_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'curriculum_id', name='uq_saved_user_curriculum'),
    )
    op.create_index('ix_saved_curricula_user_id', 'saved_curricula', ['user_id'])
    op.create_index('ix_saved_curricula_saved_at', 'saved_curricula', ['saved_at'])


def downgrade():
    op.drop_index('ix_saved_curricula_saved_at', table_name='saved_curricula')
    op.drop_index('ix_saved_curricula_user_id', table_name='saved_curricula')
    op.drop_table('saved_curricula')
    op.drop_index('ix_curriculum_subjects_subject_id', table_name='curriculum_subjects')
    op.drop_table('curriculum_subjects')
    for name in ('ix_curricula_overall_rating', 'ix_curricula_cost_price_range',
                 'ix_curricula_grade_level_id', 'ix_curricula_name', 'ix_curricula_slug'):
        op.drop_index(name, table_name='curricula')
    op.drop_table('curricula')
    op.drop_table('grade_levels')
    op.drop_index('ix_subjects_name', table_name='subjects')
    op.drop_table('subjects')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
