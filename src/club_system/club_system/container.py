from __future__ import annotations

from dataclasses import dataclass

from .activities.mysql_activity_repository import MySQLActivityRepository
from .activities.repository import ActivityRepository
from .activities.service import ActivityService
from .attendance.config_repository import AttendanceConfigRepository
from .attendance.config_service import AttendanceConfigService
from .attendance.factory import AttendanceWindowFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_config_repository import MySQLAttendanceConfigRepository
from .attendance.mysql_roster_repository import MySQLRosterRepository
from .attendance.repository import AttendanceRepository
from .attendance.roster import RosterRepository
from .attendance.service import AttendanceService
from .common.clock import Clock, SystemClock
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_sink import MySQLNotificationSink
from .notifications.sink import NotificationSink
from .signups.mysql_signup_repository import MySQLSignupRepository
from .signups.repository import SignupRepository
from .signups.service import SignupService


@dataclass(frozen=True)
class Container:
    activities_repo: ActivityRepository
    signups_repo: SignupRepository
    attendance_repo: AttendanceRepository
    attendance_config_repo: AttendanceConfigRepository
    roster_repo: RosterRepository
    notification_sink: NotificationSink

    activity_service: ActivityService
    signup_service: SignupService
    attendance_config_service: AttendanceConfigService
    attendance_service: AttendanceService


def wire(
    *,
    activities_repo: ActivityRepository,
    signups_repo: SignupRepository,
    attendance_repo: AttendanceRepository,
    attendance_config_repo: AttendanceConfigRepository,
    roster_repo: RosterRepository,
    notification_sink: NotificationSink,
    clock: Clock | None = None,
) -> Container:
    """Build services over any set of repositories (MySQL in the app, fakes in tests)."""
    clock = clock or SystemClock()
    factory = AttendanceWindowFactory()

    activity_service = ActivityService(activities_repo, clock=clock)
    signup_service = SignupService(signups_repo, activities_repo, notification_sink, clock=clock)
    attendance_config_service = AttendanceConfigService(attendance_config_repo, clock=clock, factory=factory)
    attendance_service = AttendanceService(attendance_repo, attendance_config_service, clock=clock)

    return Container(
        activities_repo=activities_repo,
        signups_repo=signups_repo,
        attendance_repo=attendance_repo,
        attendance_config_repo=attendance_config_repo,
        roster_repo=roster_repo,
        notification_sink=notification_sink,
        activity_service=activity_service,
        signup_service=signup_service,
        attendance_config_service=attendance_config_service,
        attendance_service=attendance_service,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        activities_repo=MySQLActivityRepository(conn),
        signups_repo=MySQLSignupRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        attendance_config_repo=MySQLAttendanceConfigRepository(conn),
        roster_repo=MySQLRosterRepository(conn),
        notification_sink=MySQLNotificationSink(conn),
    )
