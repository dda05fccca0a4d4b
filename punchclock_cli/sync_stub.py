import asyncio
import logging
from typing import Optional

from punchclock_cli import config
from punchclock_cli.errors import PunchclockCliNoDeviceSelectedException, PunchclockCliSyncNotImplementedException
from punchclock_cli.models import Device

logger = logging.getLogger(__name__)


class SyncStub:
    """Placeholder for device synchronization. It waits, then reports that sync is not available yet."""

    def __init__(self, delay_seconds: float = config.sync_delay_seconds):
        self._delay_seconds = delay_seconds
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def sync(self, device: Optional[Device]) -> None:
        if device is None:
            raise PunchclockCliNoDeviceSelectedException()

        self._busy = True
        logger.debug(f'Syncing device {device.ip}')
        try:
            await asyncio.sleep(self._delay_seconds)
        finally:
            self._busy = False

        raise PunchclockCliSyncNotImplementedException()
