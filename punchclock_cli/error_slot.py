import logging
import time
from dataclasses import dataclass
from typing import Optional

from punchclock_cli.errors import error_to_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportedError:
    error: BaseException
    source: str
    reported_at: float


class ErrorSlot:
    """
    The single most recent failure shown to the operator.

    Scan, fetch and sync share one slot, so whichever failed last is the one displayed.
    """

    def __init__(self) -> None:
        self._reported: Optional[ReportedError] = None

    def report(self, error: BaseException, source: str) -> None:
        logger.debug(f'{source} failed: {error_to_message(error)}')
        self._reported = ReportedError(error=error, source=source, reported_at=time.monotonic())

    def clear(self) -> None:
        self._reported = None

    @property
    def error(self) -> Optional[BaseException]:
        return self._reported.error if self._reported else None

    @property
    def reported_at(self) -> Optional[float]:
        return self._reported.reported_at if self._reported else None

    @property
    def source(self) -> Optional[str]:
        return self._reported.source if self._reported else None

    @property
    def message(self) -> Optional[str]:
        return error_to_message(self._reported.error) if self._reported else None
