"""Initial schema: users, days, items, ordered collections and containers

Revision ID: 3f1c9a2e7b10
Revises:
Create Date: 2025-01-15 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DAY_STATES = ('open', 'closed')
ITEM_TYPES = ('completable', 'section', 'reusable', 'trackable')
ITEM_STATES = ('todo', 'done', 'dropped', 'deferred')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create every table of the daybook schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'days',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('state', sa.Enum(*DAY_STATES, name='daystate'), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reopened_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('imported_from_day_id', sa.Integer(), nullable=True),
        sa.Column('imported_to_day_id', sa.Integer(), nullable=True),
        sa.Column('imported_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['imported_from_day_id'], ['days.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['imported_to_day_id'], ['days.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_day_user_date'),
    )
    op.create_index('ix_days_user_id', 'days', ['user_id'])
    op.create_index('ix_days_date', 'days', ['date'])

    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('item_type', sa.Enum(*ITEM_TYPES, name='itemtype'), nullable=False),
        sa.Column('state', sa.Enum(*ITEM_STATES, name='itemstate'), nullable=False),
        sa.Column('done_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dropped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deferred_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deferred_to', sa.Date(), nullable=True),
        sa.Column('extra_data', sa.JSON(), nullable=False),
        sa.Column('recurrence_rule', sa.Text(), nullable=True),
        sa.Column('source_item_id', sa.Integer(), nullable=True),
        sa.Column('recurring_next_item_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "item_type NOT IN ('section', 'trackable') OR state = 'todo'",
            name='ck_item_locked_types_todo',
        ),
        sa.CheckConstraint("title != ''", name='ck_item_non_empty_title'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_item_id'], ['items.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recurring_next_item_id'], ['items.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_items_user_id', 'items', ['user_id'])
    op.create_index('ix_items_state', 'items', ['state'])
    op.create_index('ix_items_source_item_id', 'items', ['source_item_id'])

    op.create_table(
        'descendants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_type', sa.String(length=50), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        # JSON text: [{"Item": 12}, {"Note": 3}, ...]
        sa.Column('active_items', sa.Text(), nullable=False),
        sa.Column('inactive_items', sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_type', 'owner_id', name='uq_descendant_owner'),
    )
    op.create_index('ix_descendants_owner_type', 'descendants', ['owner_type'])
    op.create_index('ix_descendants_owner_id', 'descendants', ['owner_id'])

    op.create_table(
        'lists',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("title != ''", name='ck_list_non_empty_title'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('ix_lists_user_id', 'lists', ['user_id'])

    op.create_table(
        'journals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_journal_user_date'),
    )
    op.create_index('ix_journals_user_id', 'journals', ['user_id'])

    op.create_table(
        'journal_prompts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('journal_id', sa.Integer(), nullable=False),
        sa.Column('prompt_text', sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['journal_id'], ['journals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_journal_prompts_user_id', 'journal_prompts', ['user_id'])

    op.create_table(
        'journal_fragments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('journal_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['journal_id'], ['journals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_journal_fragments_user_id', 'journal_fragments', ['user_id'])

    op.create_table(
        'notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("content != ''", name='ck_note_non_empty_content'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notes_user_id', 'notes', ['user_id'])


def downgrade() -> None:
    """Drop every table of the daybook schema."""
    op.drop_index('ix_notes_user_id', table_name='notes')
    op.drop_table('notes')
    op.drop_index('ix_journal_fragments_user_id', table_name='journal_fragments')
    op.drop_table('journal_fragments')
    op.drop_index('ix_journal_prompts_user_id', table_name='journal_prompts')
    op.drop_table('journal_prompts')
    op.drop_index('ix_journals_user_id', table_name='journals')
    op.drop_table('journals')
    op.drop_index('ix_lists_user_id', table_name='lists')
    op.drop_table('lists')
    op.drop_index('ix_descendants_owner_id', table_name='descendants')
    op.drop_index('ix_descendants_owner_type', table_name='descendants')
    op.drop_table('descendants')
    op.drop_index('ix_items_source_item_id', table_name='items')
    op.drop_index('ix_items_state', table_name='items')
    op.drop_index('ix_items_user_id', table_name='items')
    op.drop_table('items')
    op.drop_index('ix_days_date', table_name='days')
    op.drop_index('ix_days_user_id', table_name='days')
    op.drop_table('days')
    op.drop_table('users')
