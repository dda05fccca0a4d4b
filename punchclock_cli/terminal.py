import asyncio
import logging
from typing import Dict, List

from zk import ZK

from punchclock_cli import config
from punchclock_cli.models import AttendanceRecord

logger = logging.getLogger(__name__)

UNKNOWN_EVENT_STRING = 'Unknown'

STATUS_CODE_TO_EVENT = {
    0: 'Check In',
    1: 'Check Out',
    2: 'Break Out',
    3: 'Break In',
    4: 'OT In',
    5: 'OT Out',
}


def _user_names_by_id(users) -> Dict[str, str]:
    return {str(user.user_id): user.name or f'User {user.uid}' for user in users}


def _parse_user_id(attendance) -> int:
    try:
        return int(attendance.user_id)
    except (TypeError, ValueError):
        return int(attendance.uid)


def attendance_to_record(attendance, user_names: Dict[str, str]) -> AttendanceRecord:
    user_id = _parse_user_id(attendance)
    punch_time = attendance.timestamp

    return AttendanceRecord(
        user_id=user_id,
        user_name=user_names.get(str(attendance.user_id), f'Unknown (ID: {user_id})'),
        timestamp=punch_time.isoformat(),
        status=int(attendance.status),
        punch=int(attendance.punch),
        date=punch_time.strftime('%Y-%m-%d'),
        time=punch_time.strftime('%H:%M:%S'),
        event=STATUS_CODE_TO_EVENT.get(int(attendance.status), UNKNOWN_EVENT_STRING),
    )


def read_attendance_records(ip_address: str, port: int) -> List[AttendanceRecord]:
    terminal = ZK(ip_address, port=port,
                  timeout=config.terminal_timeout_seconds,
                  password=config.terminal_password,
                  ommit_ping=True)
    connection = terminal.connect()
    logger.debug(f'Connected to {ip_address}:{port}')
    try:
        users = connection.get_users()
        logger.debug(f'Total users: {len(users)}')
        attendances = connection.get_attendance()
        logger.debug(f'Total attendance logs: {len(attendances)}')
    finally:
        connection.disconnect()

    user_names = _user_names_by_id(users)
    return [attendance_to_record(attendance, user_names) for attendance in attendances]


async def fetch_attendance_records(ip_address: str, port: int) -> List[AttendanceRecord]:
    # pyzk is blocking
    return await asyncio.to_thread(read_attendance_records, ip_address, port)
