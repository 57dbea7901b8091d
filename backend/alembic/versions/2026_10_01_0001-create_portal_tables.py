"""create_portal_tables

Revision ID: a1f0c3d9e201
Revises:
Create Date: 2026-10-01 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1f0c3d9e201'
down_revision = None
branch_labels = None
depends_on = None


field_pool_status = sa.Enum('OPEN', 'CLOSED', 'HIDDEN', name='fieldpoolstatus')
lecturer_selection_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='lecturerselectionstatus')
project_status = sa.Enum('IN_PROGRESS', 'WAITING_FOR_EVALUATION', name='projectstatus')
evaluation_status = sa.Enum('PENDING', 'EVALUATED', name='evaluationstatus')
evaluator_role = sa.Enum('ADVISOR', 'COMMITTEE', name='evaluatorrole')


def upgrade() -> None:
    # Idempotent: skip tables that already exist (e.g. created by init_db)
    conn = op.get_bind()
    existing_tables = sa.inspect(conn).get_table_names()

    if 'field_pools' not in existing_tables:
        op.create_table('field_pools',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('long_description', sa.Text(), nullable=True),
            sa.Column('status', field_pool_status, nullable=False),
            sa.Column('registration_deadline', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_field_pools_status', 'field_pools', ['status'], unique=False)
        op.create_index('ix_field_pools_registration_deadline', 'field_pools', ['registration_deadline'], unique=False)

    if 'domains' not in existing_tables:
        op.create_table('domains',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name')
        )

    if 'field_pool_domains' not in existing_tables:
        op.create_table('field_pool_domains',
            sa.Column('field_pool_id', sa.String(length=36), nullable=False),
            sa.Column('domain_id', sa.String(length=36), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['field_pool_id'], ['field_pools.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['domain_id'], ['domains.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('field_pool_id', 'domain_id')
        )

    if 'lecturer_selections' not in existing_tables:
        op.create_table('lecturer_selections',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('field_pool_id', sa.String(length=36), nullable=False),
            sa.Column('lecturer_id', sa.String(length=64), nullable=False),
            sa.Column('capacity', sa.Integer(), nullable=True),
            sa.Column('current_capacity', sa.Integer(), nullable=True),
            sa.Column('status', lecturer_selection_status, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['field_pool_id'], ['field_pools.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('field_pool_id', 'lecturer_id', name='uq_lecturer_selection_pool_lecturer')
        )
        op.create_index('ix_lecturer_selections_field_pool_id', 'lecturer_selections', ['field_pool_id'], unique=False)

    if 'student_selections' not in existing_tables:
        op.create_table('student_selections',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('field_pool_id', sa.String(length=36), nullable=False),
            sa.Column('student_id', sa.String(length=64), nullable=False),
            sa.Column('priority', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['field_pool_id'], ['field_pools.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_student_selections_field_pool_id', 'student_selections', ['field_pool_id'], unique=False)

    if 'projects' not in existing_tables:
        op.create_table('projects',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('title', sa.String(length=500), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('field_pool_id', sa.String(length=36), nullable=True),
            sa.Column('status', project_status, nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['field_pool_id'], ['field_pools.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_projects_field_pool_id', 'projects', ['field_pool_id'], unique=False)

    if 'project_evaluations' not in existing_tables:
        op.create_table('project_evaluations',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('project_id', sa.String(length=36), nullable=False),
            sa.Column('status', evaluation_status, nullable=False),
            sa.Column('advisor_weight', sa.Float(), nullable=True),
            sa.Column('committee_weight', sa.Float(), nullable=True),
            sa.Column('final_score', sa.Float(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('project_id')
        )

    if 'evaluation_scores' not in existing_tables:
        op.create_table('evaluation_scores',
            sa.Column('id', sa.String(length=36), nullable=False),
            sa.Column('evaluation_id', sa.String(length=36), nullable=False),
            sa.Column('evaluator_id', sa.String(length=64), nullable=False),
            sa.Column('role', evaluator_role, nullable=False),
            sa.Column('score', sa.Float(), nullable=False),
            sa.Column('comment', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['evaluation_id'], ['project_evaluations.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('evaluation_id', 'evaluator_id', name='uq_evaluation_scores_evaluator')
        )
        op.create_index('ix_evaluation_scores_evaluation_id', 'evaluation_scores', ['evaluation_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_evaluation_scores_evaluation_id', table_name='evaluation_scores')
    op.drop_table('evaluation_scores')
    op.drop_table('project_evaluations')
    op.drop_index('ix_projects_field_pool_id', table_name='projects')
    op.drop_table('projects')
    op.drop_index('ix_student_selections_field_pool_id', table_name='student_selections')
    op.drop_table('student_selections')
    op.drop_index('ix_lecturer_selections_field_pool_id', table_name='lecturer_selections')
    op.drop_table('lecturer_selections')
    op.drop_table('field_pool_domains')
    op.drop_table('domains')
    op.drop_index('ix_field_pools_registration_deadline', table_name='field_pools')
    op.drop_index('ix_field_pools_status', table_name='field_pools')
    op.drop_table('field_pools')

    bind = op.get_bind()
    for enum_type in (evaluator_role, evaluation_status, project_status, lecturer_selection_status, field_pool_status):
        enum_type.drop(bind, checkfirst=True)
