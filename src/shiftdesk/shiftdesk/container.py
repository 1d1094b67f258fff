from __future__ import annotations

from dataclasses import dataclass

from .activity.mysql_activity_repository import MySQLActivityLogRepository
from .activity.service import ActivityLogService
from .agents.mysql_agent_repository import MySQLAgentRepository
from .attendance.factory import AttendanceStrategyFactory
from .attendance.model import AttendanceSettings
from .attendance.service import AttendanceService
from .breaks.mysql_break_repository import MySQLBreakRequestRepository
from .breaks.service import BreakService
from .common.datetime_utils import Clock, SystemClock
from .database.connection import DatabaseConnection
from .database.mysql_base import MySQLUnitOfWork
from .sessions.mysql_session_repository import MySQLSessionRepository
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.provider import ShiftPolicyProvider


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    agents_repo: MySQLAgentRepository
    shifts_repo: MySQLShiftRepository
    sessions_repo: MySQLSessionRepository
    breaks_repo: MySQLBreakRequestRepository
    activity_repo: MySQLActivityLogRepository

    shift_provider: ShiftPolicyProvider
    attendance_service: AttendanceService
    break_service: BreakService
    activity_service: ActivityLogService


def build_container(*, db_config: dict, settings: AttendanceSettings | None = None, clock: Clock | None = None) -> Container:
    conn = DatabaseConnection.from_dict(db_config)
    clock = clock or SystemClock()
    uow = MySQLUnitOfWork(conn)

    agents_repo = MySQLAgentRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    sessions_repo = MySQLSessionRepository(conn)
    breaks_repo = MySQLBreakRequestRepository(conn)
    activity_repo = MySQLActivityLogRepository(conn)

    shift_provider = ShiftPolicyProvider(agents_repo, shifts_repo)
    attendance_service = AttendanceService(
        sessions_repo,
        breaks_repo,
        shift_provider,
        activity_repo,
        uow,
        clock=clock,
        strategy_factory=AttendanceStrategyFactory(),
        settings=settings or AttendanceSettings(),
    )
    break_service = BreakService(breaks_repo, sessions_repo, shift_provider, activity_repo, uow, clock=clock)
    activity_service = ActivityLogService(activity_repo, agents_repo, clock=clock)

    return Container(
        conn=conn,
        clock=clock,
        agents_repo=agents_repo,
        shifts_repo=shifts_repo,
        sessions_repo=sessions_repo,
        breaks_repo=breaks_repo,
        activity_repo=activity_repo,
        shift_provider=shift_provider,
        attendance_service=attendance_service,
        break_service=break_service,
        activity_service=activity_service,
    )
