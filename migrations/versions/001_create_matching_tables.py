"""create_matching_tables

Revision ID: 001_matching_tables
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import pgvector.sqlalchemy

# revision identifiers, used by Alembic.
revision: str = '001_matching_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users and user_matching_preferences with an HNSW embedding index."""
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_matching_preferences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('profession', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('about_me', sa.Text(), nullable=False, server_default=''),
        sa.Column('languages', sa.JSON(), nullable=False),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('commute_start', sa.String(length=5), nullable=True),
        sa.Column('commute_end', sa.String(length=5), nullable=True),
        sa.Column('commute_days', sa.JSON(), nullable=False),
        sa.Column('embedding', pgvector.sqlalchemy.Vector(768), nullable=True),
        sa.Column('embedding_text', sa.Text(), nullable=True),
        sa.Column('embedding_version', sa.String(length=100), nullable=True),
        sa.Column('embedding_updated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_user_matching_preferences_user_id', 'user_matching_preferences', ['user_id'], unique=True
    )

    # Approximate nearest-neighbour search on cosine distance
    op.execute(
        'CREATE INDEX idx_user_matching_preferences_embedding_hnsw ON user_matching_preferences '
        'USING hnsw (embedding vector_cosine_ops) WITH (m = 16, ef_construction = 64)'
    )


def downgrade() -> None:
    """Drop matching tables."""
    op.drop_index('idx_user_matching_preferences_embedding_hnsw', table_name='user_matching_preferences')
    op.drop_index('ix_user_matching_preferences_user_id', table_name='user_matching_preferences')
    op.drop_table('user_matching_preferences')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
