"""Policy reads backed by SQLAlchemy."""
from __future__ import annotations

from sqlalchemy.orm import Session

from assembly.models import QuorumPolicy, VotePolicy


class SqlPolicyReader:
    def __init__(self, session: Session) -> None:
        self._session = session

    def quorum_policy(self, tenant_id: str, policy_id: str | None) -> QuorumPolicy | None:
        if not policy_id:
            return None
        policy = self._session.get(QuorumPolicy, policy_id)
        if policy is None or policy.tenant_id != tenant_id:
            return None
        return policy

    def vote_policy(self, tenant_id: str, policy_id: str | None) -> VotePolicy | None:
        if not policy_id:
            return None
        policy = self._session.get(VotePolicy, policy_id)
        if policy is None or policy.tenant_id != tenant_id:
            return None
        return policy


__all__ = ["SqlPolicyReader"]
