from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, time, timedelta

import pytest

from src.shiftdesk.shiftdesk.activity.service import ActivityLogService
from src.shiftdesk.shiftdesk.agents.model import Agent
from src.shiftdesk.shiftdesk.attendance.model import AttendanceSettings
from src.shiftdesk.shiftdesk.attendance.service import AttendanceService
from src.shiftdesk.shiftdesk.breaks.service import BreakService
from src.shiftdesk.shiftdesk.core.enums import COUNTED_BREAK_STATUSES, BreakRequestStatus, BreakType, SessionStatus
from src.shiftdesk.shiftdesk.core.exceptions import AlreadyCheckedIn
from src.shiftdesk.shiftdesk.shifts.model import BreakPolicy, DurationLimit, Shift
from src.shiftdesk.shiftdesk.shifts.provider import ShiftPolicyProvider


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0, second: int = 0) -> None:
        self.current = self.current.replace(hour=hour, minute=minute, second=second)

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeAgentRepo:
    def __init__(self, agents=()):
        self.agents = {a.agent_id: a for a in agents}

    def get_by_id(self, agent_id):
        return self.agents.get(int(agent_id))


class FakeShiftRepo:
    def __init__(self, shifts=(), policies=()):
        self.shifts = {s.shift_id: s for s in shifts}
        self.policies = {p.policy_id: p for p in policies}

    def list_all(self):
        return sorted(self.shifts.values(), key=lambda s: s.start_time)

    def get_by_id(self, shift_id):
        return self.shifts.get(int(shift_id))

    def get_break_policy(self, policy_id):
        return self.policies.get(int(policy_id))


class FakeSessionRepo:
    def __init__(self):
        self._next_id = 1
        self.rows = {}

    def get_by_id(self, session_id):
        return self.rows.get(int(session_id))

    def find_session_for_today(self, agent_id, work_date):
        same_day = [s for s in self.rows.values() if s.agent_id == agent_id and s.work_date == work_date]
        return max(same_day, key=lambda s: s.sequence, default=None)

    def find_active_session(self, agent_id):
        open_ = [s for s in self.rows.values() if s.agent_id == agent_id and s.status.is_open]
        return max(open_, key=lambda s: (s.work_date, s.sequence), default=None)

    def create(self, session):
        for s in self.rows.values():
            if (s.agent_id, s.work_date, s.sequence) == (session.agent_id, session.work_date, session.sequence):
                raise AlreadyCheckedIn(agent_id=session.agent_id, work_date=str(session.work_date))
        stored = replace(session, session_id=self._next_id)
        self.rows[stored.session_id] = stored
        self._next_id += 1
        return stored

    def update(self, session_id, *, expected_status, **fields):
        current = self.rows.get(int(session_id))
        if not current or current.status != expected_status:
            return None
        self.rows[current.session_id] = replace(current, **fields)
        return self.rows[current.session_id]

    def list_by_date_range(self, *, start_date, end_date, agent_id=None):
        rows = [
            s
            for s in self.rows.values()
            if start_date <= s.work_date <= end_date and (agent_id is None or s.agent_id == agent_id)
        ]
        return sorted(rows, key=lambda s: s.work_date, reverse=True)

    def list_open_before(self, before_date):
        return [s for s in self.rows.values() if s.work_date < before_date and s.status.is_open]


class FakeBreakRepo:
    def __init__(self):
        self._next_id = 1
        self.rows = {}

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def create(self, request):
        stored = replace(request, request_id=self._next_id)
        self.rows[stored.request_id] = stored
        self._next_id += 1
        return stored

    def update(self, request_id, *, expected_status, **fields):
        current = self.rows.get(int(request_id))
        if not current or current.status != expected_status:
            return None
        self.rows[current.request_id] = replace(current, **fields)
        return self.rows[current.request_id]

    def find_active_for_session(self, session_id):
        return next(
            (b for b in self.rows.values() if b.session_id == session_id and b.status == BreakRequestStatus.ACTIVE),
            None,
        )

    def find_waiting_for_session(self, session_id):
        waiting = (BreakRequestStatus.PENDING, BreakRequestStatus.APPROVED)
        return next((b for b in self.rows.values() if b.session_id == session_id and b.status in waiting), None)

    def find_last_ended(self, agent_id):
        ended = [b for b in self.rows.values() if b.agent_id == agent_id and b.status == BreakRequestStatus.ENDED]
        return max(ended, key=lambda b: b.ended_at, default=None)

    def count_today(self, agent_id, work_date):
        return sum(
            1
            for b in self.rows.values()
            if b.agent_id == agent_id and b.requested_at.date() == work_date and b.status in COUNTED_BREAK_STATUSES
        )

    def list_for_session(self, session_id):
        return [b for b in self.rows.values() if b.session_id == session_id]

    def list_for_agent_on(self, agent_id, work_date):
        return [b for b in self.rows.values() if b.agent_id == agent_id and b.requested_at.date() == work_date]

    def list_pending(self, *, agent_id=None, limit=200):
        rows = [
            b
            for b in self.rows.values()
            if b.status == BreakRequestStatus.PENDING and (agent_id is None or b.agent_id == agent_id)
        ]
        return sorted(rows, key=lambda b: b.requested_at)[:limit]


class FakeActivityRepo:
    def __init__(self):
        self.entries = []

    def append(self, entry):
        stored = replace(entry, entry_id=len(self.entries) + 1)
        self.entries.append(stored)
        return stored.entry_id

    def list_for_agent(self, agent_id, *, limit):
        rows = [e for e in self.entries if e.agent_id == agent_id]
        return sorted(rows, key=lambda e: (e.created_at, e.entry_id), reverse=True)[:limit]

    def list_for_session(self, session_id):
        return [e for e in self.entries if e.session_id == session_id]

    def list_by_date_range(self, *, start_date, end_date, agent_id=None, activity_type=None):
        return [
            e
            for e in self.entries
            if start_date <= e.created_at.date() <= end_date
            and (agent_id is None or e.agent_id == agent_id)
            and (activity_type is None or e.activity_type == activity_type)
        ]

    def types(self):
        return [e.activity_type.value for e in self.entries]


class SnapshotUnitOfWork:
    """Restores every fake store when the outermost transaction raises."""

    def __init__(self, *stores):
        self._stores = stores
        self._depth = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            yield
            return
        saved = [copy.deepcopy(store.__dict__) for store in self._stores]
        self._depth += 1
        try:
            yield
        except Exception:
            for store, state in zip(self._stores, saved):
                store.__dict__.clear()
                store.__dict__.update(state)
            raise
        finally:
            self._depth -= 1


MORNING_POLICY = BreakPolicy(
    policy_id=1,
    allowed_break_types=frozenset({BreakType.SHORT, BreakType.LUNCH}),
    max_breaks_per_day=2,
    min_duration=5,
    max_duration=30,
    type_limits={BreakType.LUNCH: DurationLimit(30, 60)},
    cooldown_minutes=0,
)

APPROVAL_POLICY = BreakPolicy(
    policy_id=2,
    max_breaks_per_day=3,
    min_duration=5,
    max_duration=20,
    cooldown_minutes=0,
    requires_approval=True,
    auto_approve_limit=5,
)

MORNING = Shift(
    shift_id=1,
    name="Morning",
    start_time=time(9, 0),
    end_time=time(17, 0),
    grace_period_minutes=10,
    allow_overtime=True,
    overtime_requires_approval=True,
    max_overtime_minutes=120,
    break_policy_id=1,
)

SUPPORT = Shift(
    shift_id=2,
    name="Support",
    start_time=time(9, 0),
    end_time=time(17, 0),
    grace_period_minutes=10,
    break_policy_id=2,
)

NIGHT = Shift(
    shift_id=3,
    name="Night",
    start_time=time(22, 0),
    end_time=time(6, 0),
    grace_period_minutes=15,
    break_policy_id=1,
)


@dataclass
class World:
    clock: FixedClock
    agents: FakeAgentRepo
    shifts: FakeShiftRepo
    sessions: FakeSessionRepo
    breaks: FakeBreakRepo
    activity: FakeActivityRepo
    uow: SnapshotUnitOfWork
    provider: ShiftPolicyProvider

    def attendance(self, **settings) -> AttendanceService:
        return AttendanceService(
            self.sessions,
            self.breaks,
            self.provider,
            self.activity,
            self.uow,
            clock=self.clock,
            settings=AttendanceSettings(**settings),
        )

    def break_service(self) -> BreakService:
        return BreakService(self.breaks, self.sessions, self.provider, self.activity, self.uow, clock=self.clock)

    def activity_service(self) -> ActivityLogService:
        return ActivityLogService(self.activity, self.agents, clock=self.clock)


@pytest.fixture
def world() -> World:
    clock = FixedClock(datetime(2025, 3, 10, 8, 55, 0))
    agents = FakeAgentRepo(
        [
            Agent(agent_id=1, full_name="Morning Agent", email="a1@example.com", shift_id=1),
            Agent(agent_id=2, full_name="Support Agent", email="a2@example.com", shift_id=2),
            Agent(agent_id=3, full_name="Night Agent", email="a3@example.com", shift_id=3),
            Agent(agent_id=4, full_name="Floating Agent", email="a4@example.com", shift_id=None),
        ]
    )
    shifts = FakeShiftRepo([MORNING, SUPPORT, NIGHT], [MORNING_POLICY, APPROVAL_POLICY])
    sessions = FakeSessionRepo()
    breaks = FakeBreakRepo()
    activity = FakeActivityRepo()
    return World(
        clock=clock,
        agents=agents,
        shifts=shifts,
        sessions=sessions,
        breaks=breaks,
        activity=activity,
        uow=SnapshotUnitOfWork(sessions, breaks, activity),
        provider=ShiftPolicyProvider(agents, shifts),
    )
