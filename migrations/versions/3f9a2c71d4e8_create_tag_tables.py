"""Create tag tables

Revision ID: 3f9a2c71d4e8
Revises:
Create Date: 2026-10-18 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a2c71d4e8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Create tags table
    op.create_table(
        'tags',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    # Create logs table (owned by log CRUD, only the columns the tag engine reads)
    op.create_table(
        'logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content_md', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_logs_user_id', 'logs', ['user_id'])

    # Create tag_associations table (tag -> tag graph)
    op.create_table(
        'tag_associations',
        sa.Column('tag_id', sa.String(length=36), nullable=False),
        sa.Column('associated_tag_id', sa.String(length=36), nullable=False),
        sa.Column('association_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('tag_id != associated_tag_id', name='ck_tag_associations_no_self_loop'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['associated_tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('tag_id', 'associated_tag_id')
    )
    op.create_index(
        'ix_tag_associations_associated_tag_id', 'tag_associations', ['associated_tag_id']
    )

    # Create tag_revisions table (no FK: history outlives the tag)
    op.create_table(
        'tag_revisions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tag_id', sa.String(length=36), nullable=False),
        sa.Column('revision_number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tag_id', 'revision_number', name='uq_tag_revisions_tag_number')
    )
    op.create_index('ix_tag_revisions_tag_id', 'tag_revisions', ['tag_id'])

    # Create log_tag_associations junction table
    op.create_table(
        'log_tag_associations',
        sa.Column('log_id', sa.String(length=36), nullable=False),
        sa.Column('tag_id', sa.String(length=36), nullable=False),
        sa.Column('association_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['log_id'], ['logs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('log_id', 'tag_id')
    )
    op.create_index('ix_log_tag_associations_tag_id', 'log_tag_associations', ['tag_id'])

    # Search indexes
    dialect = op.get_bind().dialect.name
    if dialect == 'sqlite':
        # FTS5 trigram table kept in sync by triggers
        op.execute(
            "CREATE VIRTUAL TABLE tags_fts "
            "USING fts5(tag_id UNINDEXED, name, description, tokenize='trigram')"
        )
        op.execute(
            """
            CREATE TRIGGER tags_fts_after_insert AFTER INSERT ON tags BEGIN
                INSERT INTO tags_fts (tag_id, name, description)
                VALUES (new.id, new.name, COALESCE(new.description, ''));
            END
            """
        )
        op.execute(
            """
            CREATE TRIGGER tags_fts_after_delete AFTER DELETE ON tags BEGIN
                DELETE FROM tags_fts WHERE tag_id = old.id;
            END
            """
        )
        op.execute(
            """
            CREATE TRIGGER tags_fts_after_update AFTER UPDATE ON tags BEGIN
                DELETE FROM tags_fts WHERE tag_id = old.id;
                INSERT INTO tags_fts (tag_id, name, description)
                VALUES (new.id, new.name, COALESCE(new.description, ''));
            END
            """
        )
    elif dialect == 'postgresql':
        # pg_trgm GIN indexes serve ILIKE '%q%'
        op.execute('CREATE EXTENSION IF NOT EXISTS pg_trgm')
        op.execute('CREATE INDEX ix_tags_name_trgm ON tags USING gin (name gin_trgm_ops)')
        op.execute(
            'CREATE INDEX ix_tags_description_trgm ON tags USING gin (description gin_trgm_ops)'
        )


def downgrade() -> None:
    """Downgrade schema."""
    dialect = op.get_bind().dialect.name
    if dialect == 'sqlite':
        op.execute('DROP TABLE IF EXISTS tags_fts')
    elif dialect == 'postgresql':
        op.execute('DROP INDEX IF EXISTS ix_tags_description_trgm')
        op.execute('DROP INDEX IF EXISTS ix_tags_name_trgm')

    op.drop_table('log_tag_associations')
    op.drop_table('tag_revisions')
    op.drop_table('tag_associations')
    op.drop_table('logs')
    op.drop_table('tags')
