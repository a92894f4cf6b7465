"""Assembly schema: members, policies, meetings, motions, ballots, delegations."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20250301_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:  # noqa: D401
    """Create assembly tables and constraints."""

    quorum_mode = sa.Enum("single", "evolving", "double", name="quorum_mode")
    quorum_denominator = sa.Enum("eligible_members", "eligible_weight", name="quorum_denominator")
    majority_base = sa.Enum("expressed", "eligible", "present", name="majority_base")
    meeting_status = sa.Enum(
        "draft", "scheduled", "live", "closed", "validated", "archived", name="meeting_status"
    )
    result_source = sa.Enum("manual", "evote", name="result_source")
    motion_decision = sa.Enum(
        "adopted", "rejected", "no_quorum", "no_votes", "no_policy", name="motion_decision"
    )
    ballot_choice = sa.Enum("for", "against", "abstain", "no_opinion", name="ballot_choice")
    presence_mode = sa.Enum("present", "remote", "proxy", name="presence_mode")

    for enum_type in (
        quorum_mode,
        quorum_denominator,
        majority_base,
        meeting_status,
        result_source,
        motion_decision,
        ballot_choice,
        presence_mode,
    ):
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "members",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("voting_weight", sa.Numeric(18, 4), nullable=False, server_default="1"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.CheckConstraint("voting_weight >= 0", name="ck_members_voting_weight_positive"),
    )
    op.create_index("ix_members_tenant_id", "members", ["tenant_id"])

    op.create_table(
        "quorum_policies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mode", quorum_mode, nullable=False, server_default="single"),
        sa.Column("denominator", quorum_denominator, nullable=False, server_default="eligible_members"),
        sa.Column("threshold", sa.Numeric(5, 4), nullable=False),
        sa.Column("threshold_call2", sa.Numeric(5, 4)),
        sa.Column("denominator2", quorum_denominator),
        sa.Column("threshold2", sa.Numeric(5, 4)),
        sa.Column("include_proxies", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("count_remote", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_quorum_policies_tenant_id", "quorum_policies", ["tenant_id"])

    op.create_table(
        "vote_policies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("base", majority_base, nullable=False, server_default="expressed"),
        sa.Column("threshold", sa.Numeric(5, 4), nullable=False),
        sa.Column("abstention_as_against", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_vote_policies_tenant_id", "vote_policies", ["tenant_id"])

    op.create_table(
        "meetings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", meeting_status, nullable=False, server_default="draft"),
        sa.Column("convocation_no", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("quorum_policy_id", sa.String(length=36)),
        sa.Column("vote_policy_id", sa.String(length=36)),
        sa.Column("president_name", sa.String(length=255)),
        sa.Column("validated_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["quorum_policy_id"], ["quorum_policies.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["vote_policy_id"], ["vote_policies.id"], ondelete="SET NULL"),
        sa.CheckConstraint("convocation_no IN (1, 2)", name="ck_meetings_convocation_no"),
    )
    op.create_index("ix_meetings_tenant_id", "meetings", ["tenant_id"])

    op.create_table(
        "motions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("meeting_id", sa.String(length=36), nullable=False),
        sa.Column("agenda_item", sa.String(length=255)),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("secret", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("opened_at", sa.DateTime(timezone=True)),
        sa.Column("closed_at", sa.DateTime(timezone=True)),
        sa.Column("quorum_policy_id", sa.String(length=36)),
        sa.Column("vote_policy_id", sa.String(length=36)),
        sa.Column("manual_total", sa.Numeric(18, 4)),
        sa.Column("manual_for", sa.Numeric(18, 4)),
        sa.Column("manual_against", sa.Numeric(18, 4)),
        sa.Column("manual_abstain", sa.Numeric(18, 4)),
        sa.Column("official_source", result_source),
        sa.Column("official_for", sa.Numeric(18, 4)),
        sa.Column("official_against", sa.Numeric(18, 4)),
        sa.Column("official_abstain", sa.Numeric(18, 4)),
        sa.Column("official_total", sa.Numeric(18, 4)),
        sa.Column("decision", motion_decision),
        sa.Column("decision_reason", sa.Text()),
        sa.Column("decided_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["meeting_id"], ["meetings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["quorum_policy_id"], ["quorum_policies.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["vote_policy_id"], ["vote_policies.id"], ondelete="SET NULL"),
        sa.CheckConstraint("closed_at IS NULL OR opened_at IS NOT NULL", name="ck_motions_closed_after_opened"),
    )
    op.create_index("ix_motions_tenant_id", "motions", ["tenant_id"])
    op.create_index("ix_motions_meeting_id", "motions", ["meeting_id"])

    op.create_table(
        "ballots",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("meeting_id", sa.String(length=36), nullable=False),
        sa.Column("motion_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("choice", ballot_choice, nullable=False),
        sa.Column("weight", sa.Numeric(18, 4), nullable=False),
        sa.Column("is_proxy", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("proxy_voter_id", sa.String(length=36)),
        sa.Column("cast_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["meeting_id"], ["meetings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["motion_id"], ["motions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["proxy_voter_id"], ["members.id"]),
        sa.UniqueConstraint("motion_id", "member_id", name="uq_ballots_motion_member"),
        sa.CheckConstraint(
            "(is_proxy AND proxy_voter_id IS NOT NULL) OR (NOT is_proxy AND proxy_voter_id IS NULL)",
            name="ck_ballots_proxy_voter",
        ),
    )
    op.create_index("ix_ballots_tenant_id", "ballots", ["tenant_id"])
    op.create_index("ix_ballots_motion_id", "ballots", ["motion_id"])

    op.create_table(
        "proxy_delegations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("meeting_id", sa.String(length=36), nullable=False),
        sa.Column("giver_member_id", sa.String(length=36), nullable=False),
        sa.Column("receiver_member_id", sa.String(length=36), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["meeting_id"], ["meetings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["giver_member_id"], ["members.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_member_id"], ["members.id"], ondelete="CASCADE"),
        sa.CheckConstraint("giver_member_id <> receiver_member_id", name="ck_proxy_delegations_not_self"),
    )
    op.create_index(
        "uq_proxy_delegations_active_giver",
        "proxy_delegations",
        ["meeting_id", "giver_member_id"],
        unique=True,
        postgresql_where=sa.text("revoked_at IS NULL"),
        sqlite_where=sa.text("revoked_at IS NULL"),
    )
    op.create_index("ix_proxy_delegations_tenant_id", "proxy_delegations", ["tenant_id"])
    op.create_index(
        "ix_proxy_delegations_receiver", "proxy_delegations", ["meeting_id", "receiver_member_id"]
    )

    op.create_table(
        "attendances",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("meeting_id", sa.String(length=36), nullable=False),
        sa.Column("member_id", sa.String(length=36), nullable=False),
        sa.Column("mode", presence_mode, nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("checked_out_at", sa.DateTime(timezone=True)),
        sa.Column("present_from_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["meeting_id"], ["meetings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("meeting_id", "member_id", name="uq_attendances_meeting_member"),
    )
    op.create_index("ix_attendances_tenant_id", "attendances", ["tenant_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("actor", sa.String(length=128)),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("resource_type", sa.String(length=128), nullable=False),
        sa.Column("resource_id", sa.String(length=128)),
        sa.Column("payload", sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"])
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])


def downgrade() -> None:  # noqa: D401
    """Drop all assembly tables."""

    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_index("ix_audit_logs_tenant_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_attendances_tenant_id", table_name="attendances")
    op.drop_table("attendances")

    op.drop_index("ix_proxy_delegations_receiver", table_name="proxy_delegations")
    op.drop_index("ix_proxy_delegations_tenant_id", table_name="proxy_delegations")
    op.drop_index("uq_proxy_delegations_active_giver", table_name="proxy_delegations")
    op.drop_table("proxy_delegations")

    op.drop_index("ix_ballots_motion_id", table_name="ballots")
    op.drop_index("ix_ballots_tenant_id", table_name="ballots")
    op.drop_table("ballots")

    op.drop_index("ix_motions_meeting_id", table_name="motions")
    op.drop_index("ix_motions_tenant_id", table_name="motions")
    op.drop_table("motions")

    op.drop_index("ix_meetings_tenant_id", table_name="meetings")
    op.drop_table("meetings")

    op.drop_index("ix_vote_policies_tenant_id", table_name="vote_policies")
    op.drop_table("vote_policies")

    op.drop_index("ix_quorum_policies_tenant_id", table_name="quorum_policies")
    op.drop_table("quorum_policies")

    op.drop_index("ix_members_tenant_id", table_name="members")
    op.drop_table("members")

    op.drop_table("tenants")

    for enum_name in [
        "presence_mode",
        "ballot_choice",
        "motion_decision",
        "result_source",
        "meeting_status",
        "majority_base",
        "quorum_denominator",
        "quorum_mode",
    ]:
        _drop_enum(enum_name)
