"""Create catalog, session and progress tables

Revision ID: 3c1f0a9e5b21
Revises:
Create Date: 2026-10-18 09:12:40.518230
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f0a9e5b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'Category',
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('category_title', sa.String(length=120), nullable=False),
        sa.Column('category_description', sa.Text(), nullable=True),
        sa.Column('category_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('category_id'),
    )
    op.create_table(
        'Session',
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('session_title', sa.String(length=200), nullable=False),
        sa.Column('session_description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('session_id'),
    )
    op.create_table(
        'User',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=100), nullable=False),
        sa.Column('user_nickname', sa.String(length=100), nullable=True),
        sa.Column('user_password', sa.String(length=200), nullable=False),
        sa.Column('user_is_admin', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('user_name', name='uq_user_name'),
    )
    op.create_table(
        'Project',
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('project_title', sa.String(length=200), nullable=False),
        sa.Column('project_image', sa.String(length=300), nullable=True),
        sa.Column('project_description', sa.Text(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['Category.category_id']),
        sa.PrimaryKeyConstraint('project_id'),
    )
    op.create_table(
        'Video',
        sa.Column('video_id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('video_title', sa.String(length=200), nullable=False),
        sa.Column('video_url', sa.String(length=500), nullable=False),
        sa.Column('video_order', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['Project.project_id']),
        sa.PrimaryKeyConstraint('video_id'),
    )
    op.create_table(
        'User_Session',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('user_session_joined', sa.DateTime(), nullable=True),
        sa.Column('user_session_last_login', sa.DateTime(), nullable=True),
        sa.Column('user_session_permission', sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(['session_id'], ['Session.session_id']),
        sa.ForeignKeyConstraint(['user_id'], ['User.user_id']),
        sa.PrimaryKeyConstraint('user_id', 'session_id'),
    )
    op.create_table(
        'User_Project',
        sa.Column('user_project_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('user_project_bookmark', sa.Integer(), nullable=True),
        sa.Column('user_project_date_complete', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['Project.project_id']),
        sa.ForeignKeyConstraint(['user_id'], ['User.user_id']),
        sa.ForeignKeyConstraint(['user_project_bookmark'], ['Video.video_id']),
        sa.PrimaryKeyConstraint('user_project_id'),
    )


def downgrade():
    op.drop_table('User_Project')
    op.drop_table('User_Session')
    op.drop_table('Video')
    op.drop_table('Project')
    op.drop_table('User')
    op.drop_table('Session')
    op.drop_table('Category')
