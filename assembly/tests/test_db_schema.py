"""Schema integrity tests for the assembly migration."""
from __future__ import annotations

from pathlib import Path

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
alembic = pytest.importorskip("alembic")
alembic_command = pytest.importorskip("alembic.command")
alembic_config_module = pytest.importorskip("alembic.config")

sa = sqlalchemy
command = alembic_command
Config = alembic_config_module.Config


@pytest.fixture(scope="session")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "test.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    return config


@pytest.fixture(scope="session")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


TENANT_TABLES = [
    "members",
    "quorum_policies",
    "vote_policies",
    "meetings",
    "motions",
    "ballots",
    "proxy_delegations",
    "attendances",
    "audit_logs",
]


def test_tables_exist(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    tables = set(inspector.get_table_names())
    assert {"tenants", *TENANT_TABLES}.issubset(tables)


@pytest.mark.parametrize("table_name", TENANT_TABLES)
def test_tenant_id_present(table_name: str, migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    columns = {column["name"] for column in inspector.get_columns(table_name)}
    assert "tenant_id" in columns


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "meetings": {"tenant_id": "tenants", "quorum_policy_id": "quorum_policies", "vote_policy_id": "vote_policies"},
        "motions": {"tenant_id": "tenants", "meeting_id": "meetings"},
        "ballots": {
            "tenant_id": "tenants",
            "motion_id": "motions",
            "member_id": "members",
            "proxy_voter_id": "members",
        },
        "proxy_delegations": {
            "meeting_id": "meetings",
            "giver_member_id": "members",
            "receiver_member_id": "members",
        },
        "attendances": {"meeting_id": "meetings", "member_id": "members"},
        "audit_logs": {"tenant_id": "tenants"},
    }

    for table, expected in fk_expectations.items():
        foreign_keys = inspector.get_foreign_keys(table)
        fk_map = {tuple(fk["constrained_columns"]): fk["referred_table"] for fk in foreign_keys}
        for column, target in expected.items():
            assert (column,) in fk_map
            assert fk_map[(column,)] == target


def test_unique_constraints(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    unique_expectations = {
        "ballots": {"uq_ballots_motion_member": {"motion_id", "member_id"}},
        "attendances": {"uq_attendances_meeting_member": {"meeting_id", "member_id"}},
    }

    for table, expected in unique_expectations.items():
        constraints = inspector.get_unique_constraints(table)
        found = {constraint["name"]: set(constraint["column_names"]) for constraint in constraints}
        for name, columns in expected.items():
            assert name in found
            assert found[name] == columns


def test_active_delegation_index_is_unique(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    indexes = {index["name"]: index for index in inspector.get_indexes("proxy_delegations")}

    active = indexes["uq_proxy_delegations_active_giver"]
    assert active["unique"]
    assert active["column_names"] == ["meeting_id", "giver_member_id"]


def test_tenant_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    for table in TENANT_TABLES:
        indexes = {index["name"] for index in inspector.get_indexes(table)}
        assert f"ix_{table}_tenant_id" in indexes
