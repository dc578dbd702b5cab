"""profiles and connections

Revision ID: 5b1e0c2d7a41
Revises:
Create Date: 2025-10-06 18:12:40.118303

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel

from models import UtcAwareDateTime

# revision identifiers, used by Alembic.
revision = "5b1e0c2d7a41"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("avatar_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("major", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("year", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("bio", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("interests", sa.JSON(), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("profiles", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_profiles_name"), ["name"], unique=False)

    op.create_table(
        "connections",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("initiator_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("target_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("pair_key", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "accepted", "blocked", name="connectionstatus"),
            nullable=False,
        ),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.Column("updated_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.CheckConstraint("initiator_id <> target_id", name="ck_connection_not_self"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pair_key", name="uq_connection_pair"),
    )
    with op.batch_alter_table("connections", schema=None) as batch_op:
        batch_op.create_index(
            "idx_connections_initiator_target",
            ["initiator_id", "target_id"],
            unique=False,
        )
        batch_op.create_index(
            "idx_connections_target_initiator",
            ["target_id", "initiator_id"],
            unique=False,
        )
        batch_op.create_index(
            batch_op.f("ix_connections_status"), ["status"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_connections_updated_at"), ["updated_at"], unique=False
        )


def downgrade() -> None:
    with op.batch_alter_table("connections", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_connections_updated_at"))
        batch_op.drop_index(batch_op.f("ix_connections_status"))
        batch_op.drop_index("idx_connections_target_initiator")
        batch_op.drop_index("idx_connections_initiator_target")

    op.drop_table("connections")

    with op.batch_alter_table("profiles", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_profiles_name"))

    op.drop_table("profiles")
