from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..activity.recorder import ActivityRecorder
from ..activity.repository import ActivityLogRepository
from ..common.datetime_utils import Clock, SystemClock, minutes_between
from ..common.unit_of_work import UnitOfWork
from ..common.validators import optional_text, require_positive_int
from ..core.constants import DEFAULT_PENDING_LIMIT
from ..core.enums import ActivityType, BreakRequestStatus, BreakType, SessionStatus
from ..core.exceptions import (
    AlreadyOnBreak,
    BreakAlreadyActive,
    BreakNotApproved,
    BreakNotPending,
    BreakRequestAlreadyPending,
    BreakRequestNotFound,
    BreakRequestRejected,
    BreakTypeNotAllowed,
    ConcurrentUpdateError,
    NoActiveBreak,
    NoActiveSession,
    NotYourSession,
    RejectionReasonRequired,
)
from ..sessions.model import AgentSession
from ..sessions.repository import SessionRepository
from ..shifts.provider import ShiftPolicyProvider
from .model import BreakRequest
from .policy import BreakPolicyValidator
from .repository import BreakRequestRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreakRequestResult:
    break_request: BreakRequest
    requires_approval: bool
    session: AgentSession


@dataclass(frozen=True)
class BreakEndResult:
    break_request: BreakRequest
    actual_duration: int
    session: AgentSession


@dataclass(frozen=True)
class BreakDecisionResult:
    break_request: BreakRequest
    session: Optional[AgentSession] = None


class BreakService:
    """Break half of the attendance state machine (active <-> on_break)."""

    def __init__(
        self,
        breaks: BreakRequestRepository,
        sessions: SessionRepository,
        shifts: ShiftPolicyProvider,
        activity: ActivityLogRepository,
        uow: UnitOfWork,
        *,
        clock: Clock | None = None,
        validator: BreakPolicyValidator | None = None,
    ):
        self._breaks = breaks
        self._sessions = sessions
        self._shifts = shifts
        self._uow = uow
        self._clock = clock or SystemClock()
        self._validator = validator or BreakPolicyValidator(breaks)
        self._recorder = ActivityRecorder(activity, self._clock)

    @staticmethod
    def _parse_type(value) -> BreakType:
        try:
            return BreakType(value)
        except ValueError:
            raise BreakTypeNotAllowed(break_type=str(value))

    def _require_active_session(self, agent_id: int) -> AgentSession:
        session = self._sessions.find_active_session(agent_id)
        if not session:
            raise NoActiveSession(agent_id=agent_id)
        if session.status == SessionStatus.ON_BREAK:
            raise AlreadyOnBreak(session_id=session.session_id)
        return session

    def _enter_break(self, session: AgentSession) -> AgentSession:
        updated = self._sessions.update(
            session.session_id,
            expected_status=SessionStatus.ACTIVE,
            status=SessionStatus.ON_BREAK,
        )
        if updated is None:
            raise ConcurrentUpdateError(session_id=session.session_id)
        return updated

    def request_break(self, agent_id: int, break_type, requested_duration, reason: Optional[str] = None) -> BreakRequestResult:
        break_type = self._parse_type(break_type)
        requested_duration = require_positive_int(requested_duration, "requested_duration")
        now = self._clock.now()

        with self._uow.transaction():
            session = self._require_active_session(agent_id)
            waiting = self._breaks.find_waiting_for_session(session.session_id)
            if waiting:
                raise BreakRequestAlreadyPending(request_id=waiting.request_id)

            shift = self._shifts.get_shift(session.shift_id)
            policy = self._shifts.get_break_policy(shift.break_policy_id)
            warnings = self._validator.validate(
                agent_id=agent_id,
                break_type=break_type,
                requested_duration=requested_duration,
                policy=policy,
                now=now,
            )

            requires_approval = policy.needs_approval(requested_duration)
            request = self._breaks.create(
                BreakRequest(
                    request_id=0,
                    session_id=session.session_id,
                    agent_id=agent_id,
                    policy_id=policy.policy_id,
                    break_type=break_type,
                    requested_duration=requested_duration,
                    status=BreakRequestStatus.PENDING if requires_approval else BreakRequestStatus.ACTIVE,
                    requested_at=now,
                    reason=optional_text(reason),
                    auto_approved=policy.requires_approval and not requires_approval,
                    started_at=None if requires_approval else now,
                    warnings=warnings,
                )
            )
            self._recorder.record(
                agent_id,
                ActivityType.BREAK_REQUESTED,
                f"Requested {break_type.value} break for {requested_duration} minutes",
                session_id=session.session_id,
                details={
                    "break_id": request.request_id,
                    "type": break_type.value,
                    "requested_duration": requested_duration,
                    "requires_approval": requires_approval,
                    "warnings": list(warnings),
                },
            )

            if not requires_approval:
                session = self._enter_break(session)
                self._recorder.record(
                    agent_id,
                    ActivityType.BREAK_STARTED,
                    f"Started {break_type.value} break",
                    session_id=session.session_id,
                    details={"break_id": request.request_id, "type": break_type.value},
                )

        log.info(
            "agent %s requested %s break (%s min), request=%s pending=%s",
            agent_id, break_type.value, requested_duration, request.request_id, requires_approval,
        )
        return BreakRequestResult(break_request=request, requires_approval=requires_approval, session=session)

    def start_break(self, agent_id: int, request_id: int) -> BreakDecisionResult:
        """Start a request that was approved without starting it."""
        now = self._clock.now()

        with self._uow.transaction():
            request = self._breaks.get_by_id(request_id)
            if not request:
                raise BreakRequestNotFound(request_id=request_id)
            if request.agent_id != agent_id:
                raise NotYourSession(session_id=request.session_id)
            if request.status == BreakRequestStatus.REJECTED:
                raise BreakRequestRejected(request_id=request_id)
            if request.status == BreakRequestStatus.ACTIVE:
                raise BreakAlreadyActive(request_id=request_id)
            if request.status != BreakRequestStatus.APPROVED:
                raise BreakNotApproved(request_id=request_id, status=request.status.value)

            session = self._require_active_session(agent_id)
            if session.session_id != request.session_id:
                raise NoActiveSession(agent_id=agent_id)

            started = self._breaks.update(
                request_id,
                expected_status=BreakRequestStatus.APPROVED,
                status=BreakRequestStatus.ACTIVE,
                started_at=now,
            )
            if started is None:
                raise ConcurrentUpdateError(request_id=request_id)
            session = self._enter_break(session)

            self._recorder.record(
                agent_id,
                ActivityType.BREAK_STARTED,
                f"Started {started.break_type.value} break",
                session_id=session.session_id,
                details={"break_id": request_id, "type": started.break_type.value},
            )

        return BreakDecisionResult(break_request=started, session=session)

    def end_break(self, agent_id: int) -> BreakEndResult:
        now = self._clock.now()

        with self._uow.transaction():
            session = self._sessions.find_active_session(agent_id)
            if not session or session.status != SessionStatus.ON_BREAK:
                raise NoActiveBreak(agent_id=agent_id)
            active = self._breaks.find_active_for_session(session.session_id)
            if not active:
                raise NoActiveBreak(agent_id=agent_id)

            actual = minutes_between(active.started_at, now)
            ended = self._breaks.update(
                active.request_id,
                expected_status=BreakRequestStatus.ACTIVE,
                status=BreakRequestStatus.ENDED,
                ended_at=now,
                actual_duration=actual,
            )
            if ended is None:
                raise ConcurrentUpdateError(request_id=active.request_id)

            resumed = self._sessions.update(
                session.session_id,
                expected_status=SessionStatus.ON_BREAK,
                status=SessionStatus.ACTIVE,
                total_break_minutes=session.total_break_minutes + actual,
            )
            if resumed is None:
                raise ConcurrentUpdateError(session_id=session.session_id)

            self._recorder.record(
                agent_id,
                ActivityType.BREAK_ENDED,
                f"Ended {active.break_type.value} break ({actual} minutes)",
                session_id=session.session_id,
                details={
                    "break_id": active.request_id,
                    "type": active.break_type.value,
                    "actual_duration": actual,
                    "requested_duration": active.requested_duration,
                },
            )

        log.info("agent %s ended break %s after %s min", agent_id, active.request_id, actual)
        return BreakEndResult(break_request=ended, actual_duration=actual, session=resumed)

    def _require_pending(self, request_id: int) -> BreakRequest:
        request = self._breaks.get_by_id(request_id)
        if not request:
            raise BreakRequestNotFound(request_id=request_id)
        if request.status != BreakRequestStatus.PENDING:
            raise BreakNotPending(request_id=request_id, status=request.status.value)
        return request

    def approve_break(
        self,
        request_id: int,
        decided_by: int,
        notes: Optional[str] = None,
        *,
        start_immediately: bool = True,
    ) -> BreakDecisionResult:
        now = self._clock.now()
        notes = optional_text(notes)

        with self._uow.transaction():
            request = self._require_pending(request_id)
            session = self._sessions.get_by_id(request.session_id)
            if not session or not session.status.is_open:
                raise NoActiveSession(agent_id=request.agent_id)
            if start_immediately and session.status == SessionStatus.ON_BREAK:
                raise AlreadyOnBreak(session_id=session.session_id)

            fields = dict(decided_by=decided_by, decided_at=now, decision_note=notes)
            if start_immediately:
                fields.update(status=BreakRequestStatus.ACTIVE, started_at=now)
            else:
                fields.update(status=BreakRequestStatus.APPROVED)

            approved = self._breaks.update(request_id, expected_status=BreakRequestStatus.PENDING, **fields)
            if approved is None:
                raise ConcurrentUpdateError(request_id=request_id)
            if start_immediately:
                session = self._enter_break(session)

            self._recorder.record(
                request.agent_id,
                ActivityType.BREAK_APPROVED,
                "Break request approved" + (" and started" if start_immediately else ""),
                session_id=request.session_id,
                details={"break_id": request_id, "reviewer_id": decided_by, "started": start_immediately},
                performed_by=decided_by,
            )

        log.info("break request %s approved by %s", request_id, decided_by)
        return BreakDecisionResult(break_request=approved, session=session)

    def reject_break(self, request_id: int, decided_by: int, reason: Optional[str]) -> BreakDecisionResult:
        reason = optional_text(reason)
        if not reason:
            raise RejectionReasonRequired(request_id=request_id)
        now = self._clock.now()

        with self._uow.transaction():
            request = self._require_pending(request_id)
            rejected = self._breaks.update(
                request_id,
                expected_status=BreakRequestStatus.PENDING,
                status=BreakRequestStatus.REJECTED,
                decided_by=decided_by,
                decided_at=now,
                decision_note=reason,
            )
            if rejected is None:
                raise ConcurrentUpdateError(request_id=request_id)

            self._recorder.record(
                request.agent_id,
                ActivityType.BREAK_REJECTED,
                f"Break request rejected: {reason}",
                session_id=request.session_id,
                details={"break_id": request_id, "reviewer_id": decided_by, "reason": reason},
                performed_by=decided_by,
            )

        log.info("break request %s rejected by %s", request_id, decided_by)
        return BreakDecisionResult(break_request=rejected)

    def list_pending(self, *, agent_id: Optional[int] = None, limit: int = DEFAULT_PENDING_LIMIT) -> Sequence[BreakRequest]:
        return self._breaks.list_pending(agent_id=agent_id, limit=limit)

    def get_today_breaks(self, agent_id: int) -> Sequence[BreakRequest]:
        return self._breaks.list_for_agent_on(agent_id, self._clock.now().date())
