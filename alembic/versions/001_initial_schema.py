"""Initial schema

Revision ID: 001
Revises:
Create Date: 2024-02-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Content records; menu items are posts of type nav_menu_item
    op.create_table(
        'posts',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('post_type', sa.Text(), server_default='post', nullable=False),
        sa.Column('status', sa.Text(), server_default='publish', nullable=False),
        sa.Column('title', sa.Text(), server_default='', nullable=False),
        sa.Column('content', sa.Text(), server_default='', nullable=False),
        sa.Column('excerpt', sa.Text(), server_default='', nullable=False),
        sa.Column('slug', sa.Text(), server_default='', nullable=False),
        sa.Column('author', sa.Integer(), server_default='0', nullable=False),
        sa.Column('parent', sa.Integer(), server_default='0', nullable=False),
        sa.Column('menu_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('password', sa.Text(), server_default='', nullable=False),
        sa.Column('link', sa.Text(), server_default='', nullable=False),
        sa.Column('post_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('post_modified', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('meta', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('posts_type_status_idx', 'posts', ['post_type', 'status'])

    # Taxonomy terms menu items may point at
    op.create_table(
        'terms',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('taxonomy', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), server_default='', nullable=False),
        sa.Column('link', sa.Text(), server_default='', nullable=False),
        sa.PrimaryKeyConstraint('taxonomy', 'id')
    )


def downgrade() -> None:
    op.drop_table('terms')
    op.drop_index('posts_type_status_idx', table_name='posts')
    op.drop_table('posts')
