"""Create catalog and sequence builder schema

Revision ID: 20261018090000
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018090000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


DIFFICULTIES = ['beginner', 'intermediate', 'advanced']
POSE_TYPES = [
    'standing',
    'seated',
    'balancing',
    'backbend',
    'forward_bend',
    'twist',
    'inversion',
    'resting',
]

# Empty setting (no authenticated user) must match nothing, not raise
CURRENT_USER_SQL = "nullif(current_setting('app.current_user_id', true), '')::uuid"


def _create_tables() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    lookup_tables = {}
    for table_name in ('difficulties', 'pose_types'):
        lookup_tables[table_name] = op.create_table(
            table_name,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('name', sa.String(50), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name', name=f'uq_{table_name}_name'),
        )

    op.create_table(
        'poses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sanskrit_name', sa.String(200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('difficulty_id', sa.Integer(), nullable=True),
        sa.Column('type_id', sa.Integer(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image_alt', sa.Text(), nullable=False),
        sa.Column('image_license', sa.Text(), nullable=True),
        # FK to pose_versions is added once that table exists
        sa.Column('current_version_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['difficulty_id'], ['difficulties.id']),
        sa.ForeignKeyConstraint(['type_id'], ['pose_types.id']),
    )
    op.create_index('ix_poses_name', 'poses', ['name'], unique=False)
    op.create_index('ix_poses_difficulty_id', 'poses', ['difficulty_id'], unique=False)
    op.create_index('ix_poses_type_id', 'poses', ['type_id'], unique=False)

    op.create_table(
        'pose_versions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('pose_id', sa.Uuid(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        # Snapshot of pose content
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sanskrit_name', sa.String(200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['pose_id'], ['poses.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('pose_id', 'version', name='uq_pose_version'),
    )
    op.create_index('ix_pose_versions_pose_id', 'pose_versions', ['pose_id'], unique=False)

    with op.batch_alter_table('poses') as batch_op:
        batch_op.create_foreign_key(
            'fk_poses_current_version', 'pose_versions', ['current_version_id'], ['id']
        )

    op.create_table(
        'sequences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column(
            'visibility',
            sa.Enum('private', 'unlisted', 'public', name='sequence_visibility'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'name', name='uq_user_sequence_name'),
    )
    op.create_index('ix_sequences_user_id', 'sequences', ['user_id'], unique=False)

    op.create_table(
        'sequence_poses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sequence_id', sa.Uuid(), nullable=False),
        sa.Column('pose_id', sa.Uuid(), nullable=False),
        sa.Column('pose_version_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sequence_id'], ['sequences.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pose_id'], ['poses.id']),
        sa.ForeignKeyConstraint(['pose_version_id'], ['pose_versions.id']),
        sa.CheckConstraint('position >= 1', name='check_position_positive'),
        sa.UniqueConstraint('sequence_id', 'position', name='uq_sequence_position'),
    )
    op.create_index('ix_sequence_poses_sequence_id', 'sequence_poses', ['sequence_id'], unique=False)
    op.create_index('ix_sequence_poses_pose_id', 'sequence_poses', ['pose_id'], unique=False)
    op.create_index('ix_sequence_poses_pose_version_id', 'sequence_poses', ['pose_version_id'], unique=False)

    op.bulk_insert(lookup_tables['difficulties'], [{'name': n} for n in DIFFICULTIES])
    op.bulk_insert(lookup_tables['pose_types'], [{'name': n} for n in POSE_TYPES])


def _create_postgres_extras() -> None:
    """Full-text index and row-level security (PostgreSQL only)."""
    op.execute(
        "CREATE INDEX ix_poses_search ON poses USING gin ("
        "to_tsvector('simple'::regconfig, coalesce(name, '') || ' ' || "
        "coalesce(sanskrit_name, '') || ' ' || coalesce(description, '')))"
    )

    # Catalog: readable by everyone; written only by the table owner (imports)
    for table_name in ('difficulties', 'pose_types', 'poses', 'pose_versions'):
        op.execute(f"ALTER TABLE {table_name} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY {table_name}_read ON {table_name} FOR SELECT USING (true)"
        )

    # Sequences: the owner only, even for the table owner role the app uses
    op.execute("ALTER TABLE sequences ENABLE ROW LEVEL SECURITY")
    op.execute("ALTER TABLE sequences FORCE ROW LEVEL SECURITY")
    op.execute(
        "CREATE POLICY sequences_owner ON sequences "
        f"USING (user_id = {CURRENT_USER_SQL}) "
        f"WITH CHECK (user_id = {CURRENT_USER_SQL})"
    )

    op.execute("ALTER TABLE sequence_poses ENABLE ROW LEVEL SECURITY")
    op.execute("ALTER TABLE sequence_poses FORCE ROW LEVEL SECURITY")
    owner_check = (
        "EXISTS (SELECT 1 FROM sequences s WHERE s.id = sequence_poses.sequence_id "
        f"AND s.user_id = {CURRENT_USER_SQL})"
    )
    op.execute(
        "CREATE POLICY sequence_poses_owner ON sequence_poses "
        f"USING ({owner_check}) WITH CHECK ({owner_check})"
    )


def upgrade() -> None:
    """Create tables, seed lookups and (on PostgreSQL) install RLS policies."""
    _create_tables()
    if op.get_bind().dialect.name == 'postgresql':
        _create_postgres_extras()


def downgrade() -> None:
    """Drop everything created by upgrade()."""
    is_postgres = op.get_bind().dialect.name == 'postgresql'
    if is_postgres:
        op.execute("DROP INDEX IF EXISTS ix_poses_search")

    op.drop_table('sequence_poses')
    op.drop_table('sequences')
    with op.batch_alter_table('poses') as batch_op:
        batch_op.drop_constraint('fk_poses_current_version', type_='foreignkey')
    op.drop_table('pose_versions')
    op.drop_table('poses')
    op.drop_table('pose_types')
    op.drop_table('difficulties')
    op.drop_table('users')

    if is_postgres:
        sa.Enum(name='sequence_visibility').drop(op.get_bind(), checkfirst=True)
