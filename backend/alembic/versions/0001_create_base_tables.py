"""create users, ledger, promotion, task and bet tables"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_base_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def _owner() -> sa.Column:
    return sa.Column(
        "user_id",
        sa.Integer(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(200), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("paypal_email", sa.String(200), nullable=True),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="user"),
        sa.Column("status", sa.String(50), nullable=False, server_default="pendingVerification"),
        sa.Column("verification_token", sa.String(255), nullable=True),
        sa.Column("reset_token", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_verification_token", "users", ["verification_token"])
    op.create_index("ix_users_reset_token", "users", ["reset_token"])

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("from_account", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("to_account", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="Deposit"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="Pending"),
        *_timestamps(),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index("ix_transactions_from_account", "transactions", ["from_account"])
    op.create_index("ix_transactions_to_account", "transactions", ["to_account"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("sportsbook_name", sa.String(100), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "promotion_steps",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "promotion_id",
            sa.Integer(),
            sa.ForeignKey("promotions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("step_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.UniqueConstraint("promotion_id", "step_number", name="uq_promotion_steps_number"),
    )
    op.create_index("ix_promotion_steps_promotion_id", "promotion_steps", ["promotion_id"])

    op.create_table(
        "promotion_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column(
            "promotion_id",
            sa.Integer(),
            sa.ForeignKey("promotions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "user_id", "promotion_id", name="uq_promotion_assignments_user_promo"
        ),
    )
    op.create_index("ix_promotion_assignments_user_id", "promotion_assignments", ["user_id"])
    op.create_index(
        "ix_promotion_assignments_promotion_id", "promotion_assignments", ["promotion_id"]
    )

    op.create_table(
        "user_promotion_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column(
            "promotion_id",
            sa.Integer(),
            sa.ForeignKey("promotions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("completed_steps", sa.JSON(), nullable=False),
        sa.Column("progress_pct", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "user_id", "promotion_id", name="uq_user_promotion_progress_user_promo"
        ),
    )
    op.create_index("ix_user_promotion_progress_user_id", "user_promotion_progress", ["user_id"])
    op.create_index(
        "ix_user_promotion_progress_promotion_id", "user_promotion_progress", ["promotion_id"]
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="todo"),
        sa.Column(
            "created_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])

    op.create_table(
        "bets",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("matchup", sa.String(255), nullable=False, server_default=""),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("result", sa.String(50), nullable=False, server_default="Open"),
        sa.Column("profit", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_bets_user_id", "bets", ["user_id"])


def downgrade() -> None:
    for table in (
        "bets",
        "tasks",
        "user_promotion_progress",
        "promotion_assignments",
        "promotion_steps",
        "promotions",
        "transactions",
        "accounts",
        "users",
    ):
        op.drop_table(table)
