"""Seed script for a demo tenant, its members, policies and a live meeting."""
from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from assembly.core.config import get_settings
from assembly.db.session import SessionLocal, engine
from assembly.models import (
    Base,
    MajorityBase,
    Meeting,
    MeetingStatus,
    Member,
    Motion,
    QuorumDenominator,
    QuorumMode,
    QuorumPolicy,
    Tenant,
    VotePolicy,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_MEMBERS = [
    ("Alice Martin", Decimal("120")),
    ("Bruno Keller", Decimal("80")),
    ("Chloe Dubois", Decimal("100")),
    ("Dario Rossi", Decimal("50")),
    ("Eva Novak", Decimal("150")),
]

DEMO_MOTIONS = [
    "Approval of the annual accounts",
    "Renewal of the maintenance contract",
    "Roof works budget",
]


def seed(session: Session) -> None:
    """Seed the demo tenant with a live meeting ready to vote."""

    settings = get_settings()
    tenant_id = settings.default_tenant_id

    tenant = session.query(Tenant).filter(Tenant.id == tenant_id).one_or_none()
    if tenant is None:
        tenant = Tenant(id=tenant_id, name="Demo Assembly")
        session.add(tenant)
        logger.info("Created tenant %s", tenant_id)
    else:
        logger.info("Tenant %s already exists", tenant_id)
        return

    for full_name, weight in DEMO_MEMBERS:
        session.add(Member(tenant_id=tenant_id, full_name=full_name, voting_weight=weight))
        logger.info("Added member %s", full_name)

    quorum_policy = QuorumPolicy(
        tenant_id=tenant_id,
        name="Half of the weight, a third on second call",
        mode=QuorumMode.EVOLVING,
        denominator=QuorumDenominator.ELIGIBLE_WEIGHT,
        threshold=Decimal("0.5"),
        threshold_call2=Decimal("0.3333"),
    )
    vote_policy = VotePolicy(
        tenant_id=tenant_id,
        name="Simple majority of expressed votes",
        base=MajorityBase.EXPRESSED,
        threshold=Decimal("0.5"),
    )
    session.add_all([quorum_policy, vote_policy])
    session.flush()

    meeting = Meeting(
        tenant_id=tenant_id,
        title="Ordinary general meeting",
        status=MeetingStatus.LIVE,
        convocation_no=1,
        quorum_policy_id=quorum_policy.id,
        vote_policy_id=vote_policy.id,
        president_name="Alice Martin",
    )
    session.add(meeting)
    session.flush()

    for position, title in enumerate(DEMO_MOTIONS, start=1):
        session.add(
            Motion(tenant_id=tenant_id, meeting_id=meeting.id, title=title, position=position)
        )
    logger.info("Created meeting %s with %d motions", meeting.id, len(DEMO_MOTIONS))


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed(session)
        session.commit()


if __name__ == "__main__":
    main()
