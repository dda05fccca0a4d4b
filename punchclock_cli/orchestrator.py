import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from punchclock_cli.capability import DeviceCapabilityClient
from punchclock_cli.csv_export import export_records
from punchclock_cli.error_slot import ErrorSlot
from punchclock_cli.errors import PunchclockCliException, PunchclockCliNoDeviceSelectedException
from punchclock_cli.fetcher import AttendanceFetcher, FetchState
from punchclock_cli.inventory import DeviceInventory
from punchclock_cli.models import AttendanceRecord, Device
from punchclock_cli.scan_controller import ScanController, ScanState
from punchclock_cli.sync_stub import SyncStub

logger = logging.getLogger(__name__)

SYNC_ERROR_SOURCE = 'sync'
SELECTION_ERROR_SOURCE = 'selection'


class Orchestrator:
    """
    The scan, select, fetch and export workflow an operator drives.

    Action triggers never raise for operation failures; the latest failure of any
    operation is kept in a single error slot, exposed as error_message.
    """

    def __init__(self, client: Optional[DeviceCapabilityClient] = None, sync_stub: Optional[SyncStub] = None):
        client = client or DeviceCapabilityClient()
        self._errors = ErrorSlot()
        self._inventory = DeviceInventory()
        self._fetcher = AttendanceFetcher(client, self._errors)
        # A new scan result drops the selection, and with it the records
        self._scanner = ScanController(client, self._inventory, self._errors,
                                       on_inventory_replaced=self._fetcher.clear)
        self._sync_stub = sync_stub or SyncStub()
        self._sync_task: Optional[asyncio.Task] = None

    # --- State ---

    @property
    def error_message(self) -> Optional[str]:
        return self._errors.message

    @property
    def error(self) -> Optional[BaseException]:
        return self._errors.error

    @property
    def scan_state(self) -> ScanState:
        return self._scanner.state

    @property
    def is_scanning(self) -> bool:
        return self._scanner.is_scanning

    @property
    def fetch_state(self) -> FetchState:
        return self._fetcher.state

    @property
    def is_loading(self) -> bool:
        return self._fetcher.is_loading

    @property
    def is_syncing(self) -> bool:
        return self._sync_stub.is_busy or bool(self._sync_task and not self._sync_task.done())

    @property
    def devices(self) -> Tuple[Device, ...]:
        return self._inventory.devices

    def device_entries(self) -> List[Tuple[str, Device]]:
        return self._inventory.entries()

    @property
    def selected_device(self) -> Optional[Device]:
        return self._inventory.selected_device

    @property
    def selected_device_id(self) -> Optional[str]:
        return self._inventory.selected_device_id

    @property
    def attendance_records(self) -> Tuple[AttendanceRecord, ...]:
        return self._fetcher.records

    # --- Scan ---

    def start_scan(self) -> Optional[asyncio.Task]:
        return self._scanner.start()

    def cancel_scan(self) -> None:
        self._scanner.cancel()

    async def scan(self) -> Tuple[Device, ...]:
        task = self.start_scan()
        if task:
            await task
        return self.devices

    # --- Selection ---

    def load_inventory(self, devices: Sequence[Device], selected_device_id: Optional[str] = None) -> None:
        """Restore a previously persisted scan result and selection."""
        self._inventory.replace(devices)
        self.select_device(selected_device_id)

    def select_device(self, device_id: Optional[str]) -> Optional[Device]:
        device = self._inventory.select(device_id)
        # Records of the previous selection must never show for the new one
        self._fetcher.clear()
        return device

    # --- Fetch ---

    def start_fetch(self) -> Optional[asyncio.Task]:
        device = self.selected_device
        if device is None:
            self._errors.report(PunchclockCliNoDeviceSelectedException(), SELECTION_ERROR_SOURCE)
            return None
        return self._fetcher.start(device)

    async def fetch(self) -> Tuple[AttendanceRecord, ...]:
        task = self.start_fetch()
        if task:
            await task
        return self.attendance_records

    # --- Sync ---

    def start_sync(self) -> Optional[asyncio.Task]:
        device = self.selected_device
        if device is None:
            self._errors.report(PunchclockCliNoDeviceSelectedException(), SELECTION_ERROR_SOURCE)
            return None
        if self.is_syncing:
            logger.debug('Sync already in progress; start ignored')
            return None

        self._errors.clear()
        self._sync_task = asyncio.get_running_loop().create_task(self._run_sync(device))
        return self._sync_task

    async def sync(self) -> None:
        task = self.start_sync()
        if task:
            await task

    async def _run_sync(self, device: Device) -> None:
        try:
            await self._sync_stub.sync(device)
        except PunchclockCliException as e:
            self._errors.report(e, SYNC_ERROR_SOURCE)

    # --- Export ---

    def export_csv(self, output_dir: Path) -> Optional[Path]:
        return export_records(self.attendance_records, output_dir)

    async def drain(self) -> None:
        """Wait for background operations, including cancelled scans and superseded fetches."""
        await self._scanner.drain()
        await self._fetcher.drain()
        if self._sync_task:
            await self._sync_task
