import asyncio
import logging
from enum import Enum
from typing import Optional, Set, Tuple

from punchclock_cli import config
from punchclock_cli.capability import DeviceCapabilityClient
from punchclock_cli.error_slot import ErrorSlot
from punchclock_cli.errors import PunchclockCliFetchException, PunchclockCliNoDeviceSelectedException
from punchclock_cli.models import AttendanceRecord, Device

logger = logging.getLogger(__name__)

ERROR_SOURCE = 'fetch'


class FetchState(Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    LOADED = 'loaded'
    ERROR = 'error'


def select_port(device: Device) -> int:
    """
    Prefer the well-known terminal port, otherwise the first open port.

    A device with no open ports at all still gets the default port.
    """
    if config.default_terminal_port in device.open_ports:
        return config.default_terminal_port
    if device.open_ports:
        return device.open_ports[0]
    return config.default_terminal_port


class AttendanceFetcher:
    def __init__(self, client: DeviceCapabilityClient, errors: ErrorSlot):
        self._client = client
        self._errors = errors
        self._generation = 0
        self._state = FetchState.IDLE
        self._records: Tuple[AttendanceRecord, ...] = ()
        self._device: Optional[Device] = None
        self._pending_tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is FetchState.LOADING

    @property
    def records(self) -> Tuple[AttendanceRecord, ...]:
        return self._records

    @property
    def device(self) -> Optional[Device]:
        """The device the current records (or the fetch in progress) belong to."""
        return self._device

    def start(self, device: Optional[Device]) -> Optional[asyncio.Task]:
        """Start fetching from the device. Returns None, doing nothing, while another fetch is loading."""
        if device is None:
            raise PunchclockCliNoDeviceSelectedException()
        if self.is_loading:
            logger.debug('Fetch already in progress; start ignored')
            return None

        self._generation += 1
        generation = self._generation
        port = select_port(device)
        self._state = FetchState.LOADING
        self._device = device
        self._errors.clear()
        logger.debug(f'Fetch {generation} started for {device.ip}:{port}')

        task = asyncio.get_running_loop().create_task(self._run(generation, device.ip, port))
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    def clear(self) -> None:
        """Drop the records and supersede any fetch in progress."""
        self._generation += 1
        self._state = FetchState.IDLE
        self._records = ()
        self._device = None

    async def drain(self) -> None:
        if self._pending_tasks:
            await asyncio.gather(*self._pending_tasks)

    async def _run(self, generation: int, ip_address: str, port: int) -> None:
        try:
            records = await self._client.fetch_attendance(ip_address, port)
        except PunchclockCliFetchException as e:
            if generation != self._generation:
                logger.debug(f'Discarding failure of superseded fetch {generation}: {e}')
                return
            self._state = FetchState.ERROR
            self._records = ()
            self._errors.report(e, ERROR_SOURCE)
            return

        if generation != self._generation:
            logger.debug(f'Discarding {len(records)} record(s) from superseded fetch {generation}')
            return
        self._state = FetchState.LOADED
        self._records = tuple(records)
        logger.debug(f'Fetch {generation} returned {len(records)} record(s)')
