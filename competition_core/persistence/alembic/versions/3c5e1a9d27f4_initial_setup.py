"""initial setup

Revision ID: 3c5e1a9d27f4
Revises:
Create Date: 2026-10-19 10:42:17.318204

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3c5e1a9d27f4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('hashed_password', sa.String(length=255), nullable=False),
                    sa.Column('admin', sa.Boolean(), nullable=False),
                    sa.Column('created', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('id'),
                    sa.UniqueConstraint('name')
                    )
    op.create_table('competitions',
                    sa.Column('id', sa.String(length=32), nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('short_name', sa.String(length=32), nullable=True),
                    sa.Column('visible', sa.Boolean(), nullable=False),
                    sa.Column('confirmed', sa.Boolean(), nullable=False),
                    sa.Column('created', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.Column('modified', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_table('competition_relations',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('competition_id', sa.String(length=32), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('role', sa.String(length=32), nullable=False),
                    sa.CheckConstraint("role IN ('delegate', 'organizer')"),
                    sa.ForeignKeyConstraint(['competition_id'], ['competitions.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('competition_id', 'user_id', 'role', name='single_role_per_user'),
                    sa.UniqueConstraint('id')
                    )
    op.create_table('competition_events',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('competition_id', sa.String(length=32), nullable=False),
                    sa.Column('event_id', sa.String(length=6), nullable=False),
                    sa.Column('competitor_limit', sa.Integer(), nullable=True),
                    sa.Column('qualification', sa.JSON(), nullable=True),
                    sa.Column('extensions', sa.JSON(), nullable=False),
                    sa.CheckConstraint('competitor_limit IS NULL OR competitor_limit > 0'),
                    sa.ForeignKeyConstraint(['competition_id'], ['competitions.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('competition_id', 'event_id', name='single_event_per_competition'),
                    sa.UniqueConstraint('id')
                    )
    op.create_table('rounds',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('competition_event_id', sa.Integer(), nullable=False),
                    sa.Column('number', sa.Integer(), nullable=False),
                    sa.Column('format', sa.String(length=1), nullable=False),
                    sa.Column('time_limit', sa.JSON(), nullable=True),
                    sa.Column('cutoff', sa.JSON(), nullable=True),
                    sa.Column('advancement_condition', sa.JSON(), nullable=True),
                    sa.Column('scramble_set_count', sa.Integer(), nullable=False),
                    sa.Column('extensions', sa.JSON(), nullable=False),
                    sa.CheckConstraint('number > 0'),
                    sa.CheckConstraint('scramble_set_count > 0'),
                    sa.ForeignKeyConstraint(['competition_event_id'], ['competition_events.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('competition_event_id', 'number', name='single_round_number_per_event'),
                    sa.UniqueConstraint('id')
                    )


def downgrade():
    op.drop_table('rounds')
    op.drop_table('competition_events')
    op.drop_table('competition_relations')
    op.drop_table('competitions')
    op.drop_table('users')
