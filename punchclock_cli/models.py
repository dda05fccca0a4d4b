from dataclasses import dataclass, field
from typing import List

from punchclock_cli.errors import PunchclockCliValidationException

DEVICE_IDENTIFIER_SEPARATOR = '-'


@dataclass
class Device:
    ip: str
    mac: str
    open_ports: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class AttendanceRecord:
    user_id: int
    user_name: str
    timestamp: str
    status: int
    punch: int
    date: str
    time: str
    event: str


def device_identifier(device: Device, index: int) -> str:
    """
    Identifier of a device within the scan result it came from.

    Devices have no identity across scans, so the identifier is the address
    combined with the position in the last result.
    """
    if DEVICE_IDENTIFIER_SEPARATOR in device.ip:
        raise PunchclockCliValidationException(f'Invalid device address "{device.ip}".')
    return f'{device.ip}{DEVICE_IDENTIFIER_SEPARATOR}{index}'
