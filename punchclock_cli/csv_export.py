import datetime
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from punchclock_cli.models import AttendanceRecord

logger = logging.getLogger(__name__)

CSV_HEADERS = ['User ID', 'User Name', 'Date', 'Time', 'Event', 'Status', 'Punch']
CSV_ENCODING = 'utf-8'


def _record_to_row(record: AttendanceRecord) -> List[str]:
    return [
        str(record.user_id),
        record.user_name,
        record.date,
        record.time,
        record.event,
        str(record.status),
        str(record.punch),
    ]


def records_to_csv(records: Sequence[AttendanceRecord]) -> bytes:
    """
    Render records as CSV, one double-quoted cell per field.

    Cell text is wrapped as-is: quotes, commas and newlines inside a value are not escaped.
    No records produce no output at all.
    """
    if not records:
        return b''

    lines = [','.join(CSV_HEADERS)]
    lines += [','.join(f'"{cell}"' for cell in _record_to_row(record)) for record in records]
    return '\n'.join(lines).encode(CSV_ENCODING)


def export_file_name(export_date: Optional[datetime.date] = None) -> str:
    export_date = export_date or datetime.date.today()
    return f'attendance_{export_date.isoformat()}.csv'


def export_records(records: Sequence[AttendanceRecord], output_dir: Path,
                   export_date: Optional[datetime.date] = None) -> Optional[Path]:
    """Write the records to output_dir. Returns the file path, or None (writing nothing) if there are no records."""
    content = records_to_csv(records)
    if not content:
        logger.debug('No attendance records to export')
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file_path = output_dir / export_file_name(export_date)
    with open(output_file_path, 'wb') as output_file:
        output_file.write(content)

    logger.debug(f'Exported {len(records)} record(s) to {output_file_path}')
    return output_file_path
