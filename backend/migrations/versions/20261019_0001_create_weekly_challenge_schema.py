from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
NOW = sa.text("now()")

def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("nickname", sa.String(length=64), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("role IN ('admin','super_admin')", name="ck_admin_users_role"),
    )
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)

    op.create_table(
        "seasons",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("quarter", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("prize_description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("status IN ('active','ended','settled')", name="ck_seasons_status"),
        sa.CheckConstraint("quarter BETWEEN 1 AND 4", name="ck_seasons_quarter"),
        sa.CheckConstraint("end_date >= start_date", name="ck_seasons_dates"),
    )
    # At most one active season; a racing second create/reopen fails here
    op.create_index(
        "uq_seasons_single_active", "seasons", ["status"], unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "season_leaderboards",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("season_id", UUID, sa.ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank_position", sa.Integer(), nullable=False),
        sa.Column("participation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("simple_completions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hard_completions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_completion_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_winner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("prize_status", sa.String(length=16), nullable=False, server_default="none"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.UniqueConstraint("season_id", "user_id", name="uq_leaderboard_season_user"),
        sa.UniqueConstraint("season_id", "rank_position", name="uq_leaderboard_season_rank"),
        sa.CheckConstraint("rank_position >= 1", name="ck_leaderboard_rank_positive"),
        sa.CheckConstraint("prize_status IN ('none','pending','shipped','delivered')", name="ck_leaderboard_prize_status"),
    )
    op.create_index("ix_season_leaderboards_season_id", "season_leaderboards", ["season_id"])
    op.create_index("ix_season_leaderboards_user_id", "season_leaderboards", ["user_id"])

    op.create_table(
        "weekly_challenges",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("season_id", UUID, sa.ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("official_video_url", sa.Text(), nullable=True),
        sa.Column("created_by", UUID, sa.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("status IN ('draft','active','ended')", name="ck_weekly_challenges_status"),
        sa.CheckConstraint("end_date >= start_date", name="ck_weekly_challenges_dates"),
    )
    op.create_index("ix_weekly_challenges_season_id", "weekly_challenges", ["season_id"])

    op.create_table(
        "challenge_modes",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("challenge_id", UUID, sa.ForeignKey("weekly_challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mode_type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("moves_required", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("difficulty_level", sa.Integer(), nullable=True),
        sa.Column("points_reward", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("demo_video_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.UniqueConstraint("challenge_id", "mode_type", name="uq_challenge_mode_type"),
        sa.CheckConstraint("mode_type IN ('simple','hard')", name="ck_challenge_modes_type"),
        sa.CheckConstraint("points_reward >= 0", name="ck_challenge_modes_points_nonneg"),
    )
    op.create_index("ix_challenge_modes_challenge_id", "challenge_modes", ["challenge_id"])

    op.create_table(
        "user_participations",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("challenge_id", UUID, sa.ForeignKey("weekly_challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("mode_id", UUID, sa.ForeignKey("challenge_modes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("submission_note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("reviewed_by", UUID, sa.ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True),
        sa.CheckConstraint("status IN ('pending','approved','rejected')", name="ck_user_participations_status"),
    )
    op.create_index("ix_user_participations_user_id", "user_participations", ["user_id"])
    op.create_index("ix_user_participations_challenge_id", "user_participations", ["challenge_id"])
    op.create_index("ix_user_participations_mode_id", "user_participations", ["mode_id"])

    op.create_table(
        "user_suggestions",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("season_id", UUID, sa.ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("suggestion_text", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("adopted_challenge_id", UUID, sa.ForeignKey("weekly_challenges.id", ondelete="SET NULL"), nullable=True),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("status IN ('pending','adopted','rejected')", name="ck_user_suggestions_status"),
    )
    op.create_index("ix_user_suggestions_user_id", "user_suggestions", ["user_id"])
    op.create_index("ix_user_suggestions_season_id", "user_suggestions", ["season_id"])

    op.create_table(
        "user_points",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("season_id", UUID, sa.ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participation_id", UUID, sa.ForeignKey("user_participations.id", ondelete="CASCADE"), nullable=True),
        sa.Column("suggestion_id", UUID, sa.ForeignKey("user_suggestions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("point_type", sa.String(length=32), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("earned_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.UniqueConstraint("participation_id", "point_type", name="uq_points_participation_type"),
        sa.CheckConstraint(
            "point_type IN ('participation','simple_completion','hard_completion','suggestion_adopted')",
            name="ck_user_points_type",
        ),
    )
    op.create_index("ix_user_points_user_id", "user_points", ["user_id"])
    op.create_index("ix_user_points_season_id", "user_points", ["season_id"])
    op.create_index("ix_user_points_participation_id", "user_points", ["participation_id"])

    op.create_table(
        "user_honors",
        sa.Column("id", UUID, primary_key=True, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("honor_type", sa.String(length=32), nullable=False),
        sa.Column("honor_category", sa.String(length=16), nullable=False),
        sa.Column("honor_name", sa.String(length=255), nullable=False),
        sa.Column("honor_icon", sa.String(length=512), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("reference_value", sa.Integer(), nullable=True),
        sa.Column("earned_at", sa.TIMESTAMP(timezone=True), server_default=NOW, nullable=False),
        sa.UniqueConstraint("user_id", "honor_type", "reference_id", name="uq_honor_user_type_ref"),
        sa.CheckConstraint("honor_category IN ('milestone','season')", name="ck_user_honors_category"),
    )
    op.create_index("ix_user_honors_user_id", "user_honors", ["user_id"])

def downgrade() -> None:
    op.drop_table("user_honors")
    op.drop_table("user_points")
    op.drop_table("user_suggestions")
    op.drop_table("user_participations")
    op.drop_table("challenge_modes")
    op.drop_table("weekly_challenges")
    op.drop_table("season_leaderboards")
    op.drop_index("uq_seasons_single_active", table_name="seasons")
    op.drop_table("seasons")
    op.drop_index("ix_admin_users_email", table_name="admin_users")
    op.drop_table("admin_users")
