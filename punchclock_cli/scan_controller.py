import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Set

from punchclock_cli.capability import DeviceCapabilityClient
from punchclock_cli.error_slot import ErrorSlot
from punchclock_cli.errors import PunchclockCliDiscoveryException, PunchclockCliValidationException
from punchclock_cli.inventory import DeviceInventory

logger = logging.getLogger(__name__)

ERROR_SOURCE = 'scan'


class ScanState(Enum):
    IDLE = 'idle'
    SCANNING = 'scanning'
    CANCELLED = 'cancelled'


@dataclass
class ScanSession:
    generation: int
    cancelled: bool = False
    finished: bool = False

    @property
    def state(self) -> ScanState:
        if self.cancelled:
            return ScanState.CANCELLED
        if self.finished:
            return ScanState.IDLE
        return ScanState.SCANNING


class ScanController:
    """
    Runs one network scan at a time and feeds its result into the inventory.

    Cancelling is advisory: the discovery call keeps running in the background
    and its result, success or failure, is dropped when it arrives.
    """

    def __init__(self, client: DeviceCapabilityClient, inventory: DeviceInventory, errors: ErrorSlot,
                 on_inventory_replaced: Optional[Callable[[], None]] = None):
        self._client = client
        self._inventory = inventory
        self._errors = errors
        self._on_inventory_replaced = on_inventory_replaced
        self._generation = 0
        self._session: Optional[ScanSession] = None
        self._pending_tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> ScanState:
        if self._session and self._session.state is ScanState.SCANNING:
            return ScanState.SCANNING
        return ScanState.IDLE

    @property
    def is_scanning(self) -> bool:
        return self.state is ScanState.SCANNING

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    def start(self) -> Optional[asyncio.Task]:
        """Start a scan. Returns None, doing nothing, while another scan is in progress."""
        if self.is_scanning:
            logger.debug('Scan already in progress; start ignored')
            return None

        self._generation += 1
        session = ScanSession(generation=self._generation)
        self._session = session
        self._errors.clear()
        logger.debug(f'Scan {session.generation} started')

        task = asyncio.get_running_loop().create_task(self._run(session))
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    def cancel(self) -> None:
        if not self.is_scanning:
            return

        self._session.cancelled = True
        self._errors.clear()
        logger.debug(f'Scan {self._session.generation} cancelled')

    async def drain(self) -> None:
        """Wait for every discovery call still running, including cancelled ones."""
        if self._pending_tasks:
            await asyncio.gather(*self._pending_tasks)

    def _is_current(self, session: ScanSession) -> bool:
        return session is self._session and not session.cancelled

    async def _run(self, session: ScanSession) -> None:
        try:
            devices = await self._client.discover_devices()
        except PunchclockCliDiscoveryException as e:
            if self._is_current(session):
                self._errors.report(e, ERROR_SOURCE)
            else:
                logger.debug(f'Discarding failure of superseded scan {session.generation}: {e}')
            return
        finally:
            session.finished = True

        if not self._is_current(session):
            logger.debug(f'Discarding {len(devices)} device(s) from superseded scan {session.generation}')
            return

        try:
            self._inventory.replace(devices)
        except PunchclockCliValidationException as e:
            self._errors.report(e, ERROR_SOURCE)
            return
        if self._on_inventory_replaced:
            self._on_inventory_replaced()
        logger.debug(f'Scan {session.generation} found {len(devices)} device(s)')
