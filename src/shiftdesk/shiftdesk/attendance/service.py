from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from ..activity.recorder import ActivityRecorder
from ..activity.repository import ActivityLogRepository
from ..breaks.repository import BreakRequestRepository
from ..common.datetime_utils import Clock, SystemClock, minutes_between
from ..common.unit_of_work import UnitOfWork
from ..core.enums import ActivityType, BreakRequestStatus, CheckInStatus, SessionStatus
from ..core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    CannotCheckOutOnBreak,
    ConcurrentUpdateError,
    ConflictError,
    NoActiveSession,
    NotYourSession,
    SessionNotFound,
    TooLateToCheckIn,
    ValidationError,
)
from ..sessions.model import AgentSession, SessionSummary
from ..sessions.repository import SessionRepository
from ..shifts.provider import ShiftPolicyProvider
from .factory import AttendanceStrategyFactory
from .model import (
    AgentStatus,
    AttendanceSettings,
    CheckInResult,
    CheckOutResult,
    HistorySummary,
    SessionDetails,
    SessionHistory,
    TodayStats,
)

log = logging.getLogger(__name__)


class AttendanceService:
    """Check-in / check-out half of the attendance state machine.

    not_started -> active -> (on_break <-> active)* -> completed. Break
    transitions live in BreakService; ``incomplete`` is only set by
    ``reconcile_incomplete``, which an external job calls.

    Every public mutation runs in one ``uow.transaction()`` and writes exactly
    one activity entry per transition.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        breaks: BreakRequestRepository,
        shifts: ShiftPolicyProvider,
        activity: ActivityLogRepository,
        uow: UnitOfWork,
        *,
        clock: Clock | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        settings: AttendanceSettings | None = None,
    ):
        self._sessions = sessions
        self._breaks = breaks
        self._shifts = shifts
        self._activity = activity
        self._uow = uow
        self._clock = clock or SystemClock()
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._settings = settings or AttendanceSettings()
        self._recorder = ActivityRecorder(activity, self._clock)

    def check_in(
        self,
        agent_id: int,
        ip_address: Optional[str] = None,
        location: Optional[Mapping[str, Any]] = None,
    ) -> CheckInResult:
        now = self._clock.now()
        today = now.date()

        with self._uow.transaction():
            shift = self._shifts.get_shift_for_agent(agent_id)

            current = self._sessions.find_active_session(agent_id)
            if current:
                raise AlreadyCheckedIn(session_id=current.session_id, work_date=str(current.work_date))

            placeholder = None
            sequence = 1
            existing = self._sessions.find_session_for_today(agent_id, today)
            if existing and existing.status == SessionStatus.NOT_STARTED:
                placeholder = existing
            elif existing:
                if not self._settings.allow_recheckin_after_completed:
                    raise AlreadyCheckedOut(session_id=existing.session_id)
                sequence = existing.sequence + 1

            shift_start = self._factory.shift_start_for(now=now, today=today, shift=shift)
            strategy = self._factory.for_checkin(now=now, shift_start=shift_start, shift=shift)
            decision = strategy.decide_checkin(now=now, shift_start=shift_start, shift=shift)

            max_late = shift.grace_period_minutes + self._settings.checkin_cutoff_minutes
            if decision.late_minutes > max_late:
                raise TooLateToCheckIn(late_minutes=decision.late_minutes, max_allowed=max_late)

            fields = dict(
                status=SessionStatus.ACTIVE,
                shift_id=shift.shift_id,
                check_in_time=now,
                check_in_status=decision.status,
                late_minutes=decision.late_minutes,
                check_in_ip=ip_address,
                check_in_location=location,
            )
            if placeholder:
                session = self._sessions.update(
                    placeholder.session_id, expected_status=SessionStatus.NOT_STARTED, **fields
                )
                if session is None:
                    raise AlreadyCheckedIn(session_id=placeholder.session_id)
            else:
                session = self._sessions.create(
                    AgentSession(session_id=0, agent_id=agent_id, work_date=today, sequence=sequence, **fields)
                )

            late_note = f" ({decision.late_minutes} minutes late)" if decision.late_minutes else ""
            self._recorder.record(
                agent_id,
                ActivityType.CHECK_IN,
                f"Agent checked in at {now:%H:%M:%S}{late_note}",
                session_id=session.session_id,
                details={
                    "shift_id": shift.shift_id,
                    "shift_name": shift.name,
                    "check_in_status": decision.status.value,
                    "late_minutes": decision.late_minutes,
                },
                ip_address=ip_address,
            )

        log.info("agent %s checked in (session=%s, %s)", agent_id, session.session_id, decision.status.value)
        return CheckInResult(session=session, shift=shift, status=decision.status, late_minutes=decision.late_minutes)

    def check_out(
        self,
        agent_id: int,
        ip_address: Optional[str] = None,
        location: Optional[Mapping[str, Any]] = None,
    ) -> CheckOutResult:
        now = self._clock.now()

        with self._uow.transaction():
            session = self._sessions.find_active_session(agent_id)
            if not session:
                latest = self._sessions.find_session_for_today(agent_id, now.date())
                if latest and latest.status == SessionStatus.COMPLETED:
                    raise AlreadyCheckedOut(session_id=latest.session_id)
                raise NoActiveSession(agent_id=agent_id)
            if session.status == SessionStatus.ON_BREAK:
                raise CannotCheckOutOnBreak(session_id=session.session_id)

            shift = self._shifts.get_shift(session.shift_id)
            total_minutes = minutes_between(session.check_in_time, now)
            break_minutes = session.total_break_minutes
            work_minutes = total_minutes - break_minutes

            strategy = self._factory.for_checkout(work_minutes=work_minutes, shift=shift)
            decision = strategy.decide_checkout(work_minutes=work_minutes, shift=shift)

            number_of_breaks = sum(
                1 for b in self._breaks.list_for_session(session.session_id) if b.status == BreakRequestStatus.ENDED
            )

            updated = self._sessions.update(
                session.session_id,
                expected_status=SessionStatus.ACTIVE,
                status=SessionStatus.COMPLETED,
                check_out_time=now,
                total_work_minutes=work_minutes,
                overtime_minutes=decision.overtime_minutes,
                overtime_approved=decision.overtime_approved,
                check_out_ip=ip_address,
                check_out_location=location,
            )
            if updated is None:
                raise ConcurrentUpdateError(session_id=session.session_id)

            overtime_note = f" (Overtime: {decision.overtime_minutes} minutes)" if decision.overtime_minutes else ""
            self._recorder.record(
                agent_id,
                ActivityType.CHECK_OUT,
                f"Agent checked out. Total work: {work_minutes} minutes{overtime_note}",
                session_id=session.session_id,
                details={
                    "total_minutes": total_minutes,
                    "total_work_minutes": work_minutes,
                    "total_break_minutes": break_minutes,
                    "overtime_minutes": decision.overtime_minutes,
                },
                ip_address=ip_address,
            )

        log.info("agent %s checked out (session=%s, work=%s min)", agent_id, session.session_id, work_minutes)
        return CheckOutResult(
            session=updated,
            summary=SessionSummary(
                total_minutes=total_minutes,
                break_minutes=break_minutes,
                work_minutes=work_minutes,
                overtime_minutes=decision.overtime_minutes,
                number_of_breaks=number_of_breaks,
            ),
        )

    def plan_session(self, agent_id: int, work_date: date, *, planned_by: Optional[int] = None) -> AgentSession:
        """Create a ``not_started`` placeholder that check-in will pick up."""
        with self._uow.transaction():
            shift = self._shifts.get_shift_for_agent(agent_id)
            if self._sessions.find_session_for_today(agent_id, work_date):
                raise ConflictError("A session already exists for this day", work_date=str(work_date))

            session = self._sessions.create(
                AgentSession(
                    session_id=0,
                    agent_id=agent_id,
                    work_date=work_date,
                    shift_id=shift.shift_id,
                    status=SessionStatus.NOT_STARTED,
                )
            )
            self._recorder.record(
                agent_id,
                ActivityType.SESSION_PLANNED,
                f"Session planned for {work_date.isoformat()} ({shift.name})",
                session_id=session.session_id,
                details={"shift_id": shift.shift_id, "work_date": work_date.isoformat()},
                performed_by=planned_by,
            )
        return session

    def reconcile_incomplete(self, before_date: Optional[date] = None) -> List[AgentSession]:
        """Mark sessions left open before ``before_date`` (default: today) incomplete.

        A break still running is closed with the minutes elapsed, capped at
        the requested duration. Each session is handled in its own transaction.
        """
        now = self._clock.now()
        before_date = before_date or now.date()
        closed: List[AgentSession] = []

        for stale in self._sessions.list_open_before(before_date):
            try:
                closed.append(self._close_stale_session(stale, now))
            except ConcurrentUpdateError:
                log.warning("session %s changed during reconciliation, skipped", stale.session_id)

        if closed:
            log.info("reconciliation marked %d session(s) incomplete", len(closed))
        return closed

    def _close_stale_session(self, stale: AgentSession, now: datetime) -> AgentSession:
        with self._uow.transaction():
            break_minutes = stale.total_break_minutes
            closed_break = None
            if stale.status == SessionStatus.ON_BREAK:
                active = self._breaks.find_active_for_session(stale.session_id)
                if active:
                    actual = min(active.requested_duration, minutes_between(active.started_at, now))
                    closed_break = self._breaks.update(
                        active.request_id,
                        expected_status=BreakRequestStatus.ACTIVE,
                        status=BreakRequestStatus.ENDED,
                        ended_at=now,
                        actual_duration=actual,
                    )
                    if closed_break is None:
                        raise ConcurrentUpdateError(request_id=active.request_id)
                    break_minutes += actual

            updated = self._sessions.update(
                stale.session_id,
                expected_status=stale.status,
                status=SessionStatus.INCOMPLETE,
                total_break_minutes=break_minutes,
            )
            if updated is None:
                raise ConcurrentUpdateError(session_id=stale.session_id)

            self._recorder.record(
                stale.agent_id,
                ActivityType.SESSION_INCOMPLETE,
                f"Session of {stale.work_date.isoformat()} was never checked out",
                session_id=stale.session_id,
                details={
                    "previous_status": stale.status.value,
                    "closed_break_id": closed_break.request_id if closed_break else None,
                },
            )
        return updated

    def get_status(self, agent_id: int) -> AgentStatus:
        session = self._sessions.find_active_session(agent_id)
        if not session:
            return AgentStatus(has_active_session=False)

        now = self._clock.now()
        active_break = self._breaks.find_active_for_session(session.session_id)
        breaks_today = self._breaks.count_today(agent_id, now.date())
        elapsed = minutes_between(session.check_in_time, now)
        return AgentStatus(
            has_active_session=True,
            session=session,
            active_break=active_break,
            today=TodayStats(
                elapsed_minutes=elapsed,
                work_minutes=elapsed - session.total_break_minutes,
                break_minutes=session.total_break_minutes,
                number_of_breaks=breaks_today,
            ),
        )

    def get_session_details(self, session_id: int, *, agent_id: Optional[int] = None) -> SessionDetails:
        session = self._sessions.get_by_id(session_id)
        if not session:
            raise SessionNotFound(session_id=session_id)
        if agent_id is not None and session.agent_id != agent_id:
            raise NotYourSession(session_id=session_id)

        return SessionDetails(
            session=session,
            breaks=tuple(self._breaks.list_for_session(session_id)),
            activities=tuple(self._activity.list_for_session(session_id)),
        )

    def get_history(self, agent_id: int, start_date: date, end_date: date) -> SessionHistory:
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        sessions = list(self._sessions.list_by_date_range(start_date=start_date, end_date=end_date, agent_id=agent_id))
        summary = HistorySummary(
            total_sessions=len(sessions),
            completed_sessions=sum(1 for s in sessions if s.status == SessionStatus.COMPLETED),
            total_work_minutes=sum(s.total_work_minutes for s in sessions),
            total_break_minutes=sum(s.total_break_minutes for s in sessions),
            total_late_minutes=sum(s.late_minutes for s in sessions if s.check_in_status == CheckInStatus.LATE),
            total_overtime_minutes=sum(s.overtime_minutes for s in sessions),
        )
        return SessionHistory(sessions=sessions, summary=summary)
