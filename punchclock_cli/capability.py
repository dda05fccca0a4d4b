import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from punchclock_cli import config
from punchclock_cli.discovery import discover_biometric_devices
from punchclock_cli.errors import PunchclockCliDiscoveryException, PunchclockCliFetchException, error_to_message
from punchclock_cli.models import AttendanceRecord, Device
from punchclock_cli.terminal import fetch_attendance_records

logger = logging.getLogger(__name__)

DiscoverFunction = Callable[[], Awaitable[List[Device]]]
FetchFunction = Callable[[str, int], Awaitable[List[AttendanceRecord]]]


class DeviceCapabilityClient:
    """
    Boundary to the device discovery and attendance capability.

    Whatever the backend raises comes out as PunchclockCliDiscoveryException or
    PunchclockCliFetchException. Calls are never aborted on behalf of the caller,
    only bounded by the configured timeouts.
    """

    def __init__(self,
                 discover: DiscoverFunction = discover_biometric_devices,
                 fetch: FetchFunction = fetch_attendance_records,
                 discovery_timeout: Optional[float] = config.discovery_timeout_seconds,
                 fetch_timeout: Optional[float] = config.fetch_timeout_seconds):
        self._discover = discover
        self._fetch = fetch
        self._discovery_timeout = discovery_timeout
        self._fetch_timeout = fetch_timeout

    async def discover_devices(self) -> List[Device]:
        try:
            devices = await asyncio.wait_for(self._discover(), timeout=self._discovery_timeout)
        except PunchclockCliDiscoveryException:
            raise
        except asyncio.TimeoutError as e:
            raise PunchclockCliDiscoveryException(
                f'Device discovery timed out after {self._discovery_timeout} seconds') from e
        except Exception as e:
            logger.debug('Device discovery failed', exc_info=True)
            raise PunchclockCliDiscoveryException(error_to_message(e)) from e

        return list(devices)

    async def fetch_attendance(self, ip_address: str, port: int) -> List[AttendanceRecord]:
        try:
            records = await asyncio.wait_for(self._fetch(ip_address, port), timeout=self._fetch_timeout)
        except PunchclockCliFetchException:
            raise
        except asyncio.TimeoutError as e:
            raise PunchclockCliFetchException(
                f'Fetching attendance from {ip_address}:{port} timed out after {self._fetch_timeout} seconds') from e
        except Exception as e:
            logger.debug(f'Fetching attendance from {ip_address}:{port} failed', exc_info=True)
            raise PunchclockCliFetchException(f'Connection failed: {error_to_message(e)}') from e

        return list(records)
