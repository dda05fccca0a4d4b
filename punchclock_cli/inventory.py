import logging
from typing import List, Optional, Sequence, Tuple

from punchclock_cli.errors import PunchclockCliValidationException
from punchclock_cli.models import Device, device_identifier

logger = logging.getLogger(__name__)


class DeviceInventory:
    """Devices found by the last successful scan, and the operator's current choice among them."""

    def __init__(self) -> None:
        self._devices: Tuple[Device, ...] = ()
        self._identifiers: Tuple[str, ...] = ()
        self._selected_index: Optional[int] = None

    @property
    def devices(self) -> Tuple[Device, ...]:
        return self._devices

    @property
    def identifiers(self) -> Tuple[str, ...]:
        return self._identifiers

    def entries(self) -> List[Tuple[str, Device]]:
        return list(zip(self._identifiers, self._devices))

    def replace(self, devices: Sequence[Device]) -> None:
        """Replace the whole list; the previous list and the selection are dropped, never merged."""
        devices = tuple(devices)
        identifiers = tuple(device_identifier(device, index) for index, device in enumerate(devices))
        if len(set(identifiers)) != len(identifiers):
            raise PunchclockCliValidationException(f'Duplicate device identifiers: {identifiers}')

        self._devices = devices
        self._identifiers = identifiers
        self._selected_index = None
        logger.debug(f'Inventory replaced with {len(devices)} device(s)')

    def find(self, device_id: Optional[str]) -> Optional[Device]:
        index = self._index_of(device_id)
        return self._devices[index] if index is not None else None

    def select(self, device_id: Optional[str]) -> Optional[Device]:
        """
        Select the device with the given identifier.

        An unknown identifier (e.g. one from an earlier scan) or None clears the selection.
        """
        self._selected_index = self._index_of(device_id)
        if device_id is not None and self._selected_index is None:
            logger.debug(f'Device {device_id} is not in the current inventory; selection cleared')
        return self.selected_device

    @property
    def selected_device(self) -> Optional[Device]:
        return self._devices[self._selected_index] if self._selected_index is not None else None

    @property
    def selected_device_id(self) -> Optional[str]:
        return self._identifiers[self._selected_index] if self._selected_index is not None else None

    def _index_of(self, device_id: Optional[str]) -> Optional[int]:
        if device_id is None:
            return None
        try:
            return self._identifiers.index(device_id)
        except ValueError:
            return None
