"""conversations, messages and profile QR tokens

Revision ID: 9c3f52e8d0b7
Revises: 5b1e0c2d7a41
Create Date: 2025-10-09 21:40:03.551920

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel

from models import UtcAwareDateTime

# revision identifiers, used by Alembic.
revision = "9c3f52e8d0b7"
down_revision = "5b1e0c2d7a41"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "conversations",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "participant_low_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False
        ),
        sa.Column(
            "participant_high_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False
        ),
        sa.Column(
            "participant_key", sqlmodel.sql.sqltypes.AutoString(), nullable=False
        ),
        sa.Column("last_message_at", UtcAwareDateTime(timezone=True), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.Column("updated_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "participant_low_id < participant_high_id", name="ck_conversation_order"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("participant_key", name="uq_conversation_participants"),
    )
    with op.batch_alter_table("conversations", schema=None) as batch_op:
        batch_op.create_index(
            "idx_conversations_low", ["participant_low_id"], unique=False
        )
        batch_op.create_index(
            "idx_conversations_high", ["participant_high_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_conversations_updated_at"), ["updated_at"], unique=False
        )

    op.create_table(
        "messages",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "conversation_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False
        ),
        sa.Column("sender_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("receiver_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("content", sa.String(length=1000), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", UtcAwareDateTime(timezone=True), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.CheckConstraint("sender_id <> receiver_id", name="ck_message_not_self"),
        sa.ForeignKeyConstraint(
            ["conversation_id"],
            ["conversations.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("messages", schema=None) as batch_op:
        batch_op.create_index(
            "idx_messages_conversation_created",
            ["conversation_id", "created_at"],
            unique=False,
        )
        batch_op.create_index(
            "idx_messages_receiver_unread", ["receiver_id", "read"], unique=False
        )

    op.create_table(
        "profile_qr_tokens",
        sa.Column("user_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("token", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    with op.batch_alter_table("profile_qr_tokens", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_profile_qr_tokens_token"), ["token"], unique=True
        )


def downgrade() -> None:
    with op.batch_alter_table("profile_qr_tokens", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_profile_qr_tokens_token"))

    op.drop_table("profile_qr_tokens")

    with op.batch_alter_table("messages", schema=None) as batch_op:
        batch_op.drop_index("idx_messages_receiver_unread")
        batch_op.drop_index("idx_messages_conversation_created")

    op.drop_table("messages")

    with op.batch_alter_table("conversations", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_conversations_updated_at"))
        batch_op.drop_index("idx_conversations_high")
        batch_op.drop_index("idx_conversations_low")

    op.drop_table("conversations")
