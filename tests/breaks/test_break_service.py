from __future__ import annotations

from dataclasses import replace
from datetime import time

import pytest

from src.shiftdesk.shiftdesk.core.enums import BreakRequestStatus, SessionStatus
from src.shiftdesk.shiftdesk.core.exceptions import (
    AlreadyOnBreak,
    BreakAlreadyActive,
    BreakCooldownActive,
    BreakNotApproved,
    BreakNotPending,
    BreakRequestAlreadyPending,
    BreakRequestRejected,
    BreakTooLong,
    BreakTooShort,
    BreakTypeNotAllowed,
    ConcurrentUpdateError,
    MaxBreaksReached,
    NoActiveBreak,
    NoActiveSession,
    NotYourSession,
    RejectionReasonRequired,
    ValidationError,
)


@pytest.fixture
def checked_in(world):
    world.clock.set(9, 0)
    world.attendance().check_in(1)
    world.attendance().check_in(2)
    return world


def take_break(world, agent_id, at_hour, minutes=10, break_type="short"):
    service = world.break_service()
    world.clock.set(at_hour, 0)
    service.request_break(agent_id, break_type, minutes)
    world.clock.set(at_hour, minutes)
    return service.end_break(agent_id)


def test_break_round_trip_updates_session_totals(checked_in):
    world = checked_in
    service = world.break_service()
    world.clock.set(10, 0)

    started = service.request_break(1, "short", 15, reason="  coffee ")

    assert started.requires_approval is False
    assert started.break_request.status == BreakRequestStatus.ACTIVE
    assert started.break_request.reason == "coffee"
    assert started.session.status == SessionStatus.ON_BREAK

    world.clock.set(10, 14, 40)
    ended = service.end_break(1)

    assert ended.actual_duration == 14
    assert ended.break_request.status == BreakRequestStatus.ENDED
    assert ended.session.status == SessionStatus.ACTIVE
    assert ended.session.total_break_minutes == 14


def test_break_can_end_before_requested_duration(checked_in):
    world = checked_in
    service = world.break_service()
    world.clock.set(10, 0)
    service.request_break(1, "short", 20)
    world.clock.set(10, 3)

    assert service.end_break(1).actual_duration == 3


def test_third_break_over_daily_limit_is_rejected(checked_in):
    world = checked_in
    take_break(world, 1, 10)
    take_break(world, 1, 11)

    world.clock.set(12, 0)
    with pytest.raises(MaxBreaksReached):
        world.break_service().request_break(1, "short", 10)


def test_session_break_minutes_equal_sum_of_ended_breaks(checked_in):
    world = checked_in
    take_break(world, 1, 10, minutes=7)
    take_break(world, 1, 11, minutes=12)

    session = world.sessions.find_active_session(1)
    ended = [b.actual_duration for b in world.breaks.list_for_session(session.session_id)]
    assert session.total_break_minutes == sum(ended) == 19


def test_duration_limits_come_from_policy_and_break_type(checked_in):
    service = checked_in.break_service()

    with pytest.raises(BreakTooShort):
        service.request_break(1, "short", 3)
    with pytest.raises(BreakTooLong):
        service.request_break(1, "short", 31)
    with pytest.raises(BreakTooShort):
        service.request_break(1, "lunch", 20)

    assert service.request_break(1, "lunch", 45).break_request.requested_duration == 45


def test_break_type_must_be_allowed(checked_in):
    service = checked_in.break_service()

    with pytest.raises(BreakTypeNotAllowed):
        service.request_break(1, "emergency", 10)
    with pytest.raises(BreakTypeNotAllowed):
        service.request_break(1, "coffee", 10)
    with pytest.raises(ValidationError):
        service.request_break(1, "short", 0)
    assert checked_in.breaks.rows == {}


def test_cooldown_after_last_break(checked_in):
    world = checked_in
    world.shifts.policies[1] = replace(world.shifts.policies[1], cooldown_minutes=90)
    take_break(world, 1, 10)

    world.clock.set(11, 0)
    with pytest.raises(BreakCooldownActive) as exc:
        world.break_service().request_break(1, "short", 10)
    assert exc.value.details["remaining_minutes"] == 40

    world.clock.set(11, 40)
    assert world.break_service().request_break(1, "short", 10).session.status == SessionStatus.ON_BREAK


def test_outside_preferred_window_is_a_warning_only(checked_in):
    world = checked_in
    world.shifts.policies[1] = replace(
        world.shifts.policies[1], preferred_start=time(12, 0), preferred_end=time(14, 0)
    )
    world.clock.set(10, 0)

    result = world.break_service().request_break(1, "short", 10)

    assert result.break_request.status == BreakRequestStatus.ACTIVE
    assert result.break_request.warnings == ("outside preferred window 12:00-14:00",)


def test_request_requires_active_session_not_on_break(world):
    service = world.break_service()
    with pytest.raises(NoActiveSession):
        service.request_break(1, "short", 10)

    world.clock.set(9, 0)
    world.attendance().check_in(1)
    service.request_break(1, "short", 10)

    with pytest.raises(AlreadyOnBreak) as exc:
        service.request_break(1, "short", 10)
    assert isinstance(exc.value, BreakAlreadyActive)


def test_end_break_without_break(checked_in):
    with pytest.raises(NoActiveBreak):
        checked_in.break_service().end_break(1)
    with pytest.raises(NoActiveBreak):
        checked_in.break_service().end_break(4)


def test_approval_required_break_waits_for_reviewer(checked_in):
    world = checked_in
    service = world.break_service()
    world.clock.set(10, 0)

    requested = service.request_break(2, "short", 15)

    assert requested.requires_approval is True
    assert requested.break_request.status == BreakRequestStatus.PENDING
    assert requested.session.status == SessionStatus.ACTIVE
    assert [b.request_id for b in service.list_pending()] == [requested.break_request.request_id]

    world.clock.set(10, 5)
    approved = service.approve_break(requested.break_request.request_id, decided_by=99, notes="ok")

    assert approved.break_request.status == BreakRequestStatus.ACTIVE
    assert approved.break_request.decided_by == 99
    assert approved.session.status == SessionStatus.ON_BREAK

    world.clock.set(10, 20)
    assert service.end_break(2).actual_duration == 15

    agent_types = [e.activity_type.value for e in world.activity.entries if e.agent_id == 2]
    assert agent_types == ["check_in", "break_requested", "break_approved", "break_ended"]


def test_short_request_under_auto_approve_limit_starts_at_once(checked_in):
    world = checked_in
    world.clock.set(10, 0)

    result = world.break_service().request_break(2, "short", 5)

    assert result.requires_approval is False
    assert result.break_request.auto_approved is True
    assert result.session.status == SessionStatus.ON_BREAK


def test_approved_break_started_later_by_agent(checked_in):
    world = checked_in
    service = world.break_service()
    world.clock.set(10, 0)
    request_id = service.request_break(2, "short", 15).break_request.request_id

    with pytest.raises(BreakNotApproved):
        service.start_break(2, request_id)

    approved = service.approve_break(request_id, decided_by=99, start_immediately=False)
    assert approved.break_request.status == BreakRequestStatus.APPROVED
    assert approved.session.status == SessionStatus.ACTIVE

    with pytest.raises(NotYourSession):
        service.start_break(1, request_id)

    world.clock.set(10, 30)
    started = service.start_break(2, request_id)
    assert started.break_request.started_at == world.clock.now()
    assert started.session.status == SessionStatus.ON_BREAK

    with pytest.raises(BreakAlreadyActive):
        service.start_break(2, request_id)


def test_only_one_waiting_request_per_session(checked_in):
    service = checked_in.break_service()
    service.request_break(2, "short", 15)

    with pytest.raises(BreakRequestAlreadyPending):
        service.request_break(2, "short", 10)


def test_rejection_needs_a_reason_and_is_final(checked_in):
    world = checked_in
    service = world.break_service()
    request_id = service.request_break(2, "short", 15).break_request.request_id

    with pytest.raises(RejectionReasonRequired):
        service.reject_break(request_id, decided_by=99, reason="   ")

    rejected = service.reject_break(request_id, decided_by=99, reason="queue is full")
    assert rejected.break_request.status == BreakRequestStatus.REJECTED
    assert rejected.break_request.decision_note == "queue is full"
    assert world.activity.entries[-1].performed_by == 99

    with pytest.raises(BreakNotPending):
        service.approve_break(request_id, decided_by=99)
    with pytest.raises(BreakRequestRejected):
        service.start_break(2, request_id)

    assert world.breaks.count_today(2, world.clock.now().date()) == 0
    assert service.request_break(2, "short", 10).requires_approval is True


def test_failed_transition_rolls_back_the_request(checked_in, monkeypatch):
    world = checked_in
    monkeypatch.setattr(world.sessions, "update", lambda *args, **kwargs: None)

    with pytest.raises(ConcurrentUpdateError):
        world.break_service().request_break(1, "short", 10)

    assert world.breaks.rows == {}
    assert world.activity.types() == ["check_in", "check_in"]


def test_today_breaks_lists_every_request_of_the_day(checked_in):
    world = checked_in
    take_break(world, 1, 10)
    world.clock.set(11, 0)
    world.break_service().request_break(1, "lunch", 30)

    today = world.break_service().get_today_breaks(1)

    assert [b.status for b in today] == [BreakRequestStatus.ENDED, BreakRequestStatus.ACTIVE]


def test_approval_after_checkout_finds_no_session(checked_in):
    world = checked_in
    service = world.break_service()
    world.clock.set(10, 0)
    request_id = service.request_break(2, "short", 15).break_request.request_id
    world.clock.set(17, 0)
    world.attendance().check_out(2)
    entries_before = len(world.activity.entries)

    with pytest.raises(NoActiveSession):
        service.approve_break(request_id, decided_by=99)

    assert world.breaks.get_by_id(request_id).status == BreakRequestStatus.PENDING
    assert world.sessions.find_session_for_today(2, world.clock.now().date()).status == SessionStatus.COMPLETED
    assert len(world.activity.entries) == entries_before
