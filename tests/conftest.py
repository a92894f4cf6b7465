from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from assembly.api.deps import get_db_session, get_event_sink
from assembly.main import app
from assembly.models import (
    Attendance,
    Ballot,
    BallotChoice,
    Base,
    MajorityBase,
    Meeting,
    MeetingStatus,
    Member,
    Motion,
    PresenceMode,
    ProxyDelegation,
    QuorumDenominator,
    QuorumMode,
    QuorumPolicy,
    Tenant,
    VotePolicy,
)
from assembly.services.events import InMemoryEventSink

TENANT_ID = "tenant-demo"
DATABASE_URL = "sqlite+pysqlite:///./test_suite.db"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class AssemblyFactory:
    """Persists fixture rows for one tenant; every helper commits."""

    def __init__(self, session: Session, tenant_id: str = TENANT_ID) -> None:
        self.session = session
        self.tenant_id = tenant_id

    def _save(self, instance):  # type: ignore[no-untyped-def]
        self.session.add(instance)
        self.session.commit()
        return instance

    def member(self, name: str = "Member", *, weight: str | int = "1", active: bool = True) -> Member:
        return self._save(
            Member(
                tenant_id=self.tenant_id,
                full_name=name,
                voting_weight=Decimal(str(weight)),
                is_active=active,
            )
        )

    def members(self, count: int, *, weight: str | int = "1") -> list[Member]:
        return [self.member(f"Member {index}", weight=weight) for index in range(1, count + 1)]

    def quorum_policy(
        self,
        *,
        threshold: str = "0.5",
        mode: QuorumMode = QuorumMode.SINGLE,
        denominator: QuorumDenominator = QuorumDenominator.ELIGIBLE_MEMBERS,
        **extra: object,
    ) -> QuorumPolicy:
        return self._save(
            QuorumPolicy(
                tenant_id=self.tenant_id,
                name=extra.pop("name", "Half of the members"),
                mode=mode,
                denominator=denominator,
                threshold=Decimal(threshold),
                **extra,
            )
        )

    def vote_policy(
        self,
        *,
        threshold: str = "0.5",
        base: MajorityBase = MajorityBase.EXPRESSED,
        abstention_as_against: bool = False,
    ) -> VotePolicy:
        return self._save(
            VotePolicy(
                tenant_id=self.tenant_id,
                name="Simple majority",
                base=base,
                threshold=Decimal(threshold),
                abstention_as_against=abstention_as_against,
            )
        )

    def meeting(
        self,
        *,
        status: MeetingStatus = MeetingStatus.LIVE,
        quorum_policy: QuorumPolicy | None = None,
        vote_policy: VotePolicy | None = None,
        president_name: str | None = "Chair",
        convocation_no: int = 1,
    ) -> Meeting:
        return self._save(
            Meeting(
                tenant_id=self.tenant_id,
                title="General meeting",
                status=status,
                convocation_no=convocation_no,
                quorum_policy_id=quorum_policy.id if quorum_policy is not None else None,
                vote_policy_id=vote_policy.id if vote_policy is not None else None,
                president_name=president_name,
            )
        )

    def motion(self, meeting: Meeting, *, opened: bool = True, closed: bool = False, **extra: object) -> Motion:
        now = datetime.now(timezone.utc)
        return self._save(
            Motion(
                tenant_id=self.tenant_id,
                meeting_id=meeting.id,
                title=extra.pop("title", "Resolution"),
                opened_at=now if opened or closed else None,
                closed_at=now if closed else None,
                **extra,
            )
        )

    def attend(
        self,
        meeting: Meeting,
        member: Member,
        mode: PresenceMode = PresenceMode.PRESENT,
        *,
        present_from: datetime | None = None,
    ) -> Attendance:
        return self._save(
            Attendance(
                tenant_id=self.tenant_id,
                meeting_id=meeting.id,
                member_id=member.id,
                mode=mode,
                present_from_at=present_from,
            )
        )

    def delegation(self, meeting: Meeting, giver: Member, receiver: Member) -> ProxyDelegation:
        return self._save(
            ProxyDelegation(
                tenant_id=self.tenant_id,
                meeting_id=meeting.id,
                giver_member_id=giver.id,
                receiver_member_id=receiver.id,
            )
        )

    def ballot(
        self,
        motion: Motion,
        member: Member,
        choice: BallotChoice,
        *,
        proxy_voter: Member | None = None,
    ) -> Ballot:
        return self._save(
            Ballot(
                tenant_id=self.tenant_id,
                meeting_id=motion.meeting_id,
                motion_id=motion.id,
                member_id=member.id,
                choice=choice,
                weight=Decimal(member.voting_weight),
                is_proxy=proxy_voter is not None,
                proxy_voter_id=proxy_voter.id if proxy_voter is not None else None,
            )
        )


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    session.add(Tenant(id=TENANT_ID, name="Demo Tenant"))
    session.commit()

    yield session
    session.close()


@pytest.fixture()
def factory(db_session: Session) -> AssemblyFactory:
    return AssemblyFactory(db_session)


@pytest.fixture()
def events() -> Iterator[InMemoryEventSink]:
    sink = InMemoryEventSink()
    yield sink
    sink.clear()


@pytest.fixture()
def client(db_session: Session, events: InMemoryEventSink) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_event_sink] = lambda: events

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_event_sink, None)


@pytest.fixture()
def tenant_headers() -> dict[str, str]:
    return {"X-Tenant-ID": TENANT_ID, "X-Actor": "secretary"}
