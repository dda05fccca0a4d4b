import argparse
import asyncio
import logging
import sys
from pathlib import Path

from prettytable import PrettyTable

from punchclock_cli.configure import load_configuration_from_file, prompt_user_to_choose_device, \
    print_devices_table, save_configuration_to_file
from punchclock_cli.errors import PunchclockCliCommandFailedException, PunchclockCliException, \
    PunchclockCliInvalidArgumentException, PunchclockCliSyncNotImplementedException
from punchclock_cli.orchestrator import Orchestrator
from punchclock_cli.utils import run_async_function_synchronously


class PunchclockCli:
    def __init__(self, verbose, orchestrator=None) -> None:
        self._verbose = verbose
        self._orchestrator = orchestrator or Orchestrator()
        configuration = load_configuration_from_file()
        self._orchestrator.load_inventory(configuration.devices, configuration.selected_device_id)

    @staticmethod
    def verify_duration_argument(arg):
        try:
            duration = float(arg)
        except ValueError:
            raise PunchclockCliInvalidArgumentException(f'Invalid argument "{arg}". Expected a number of seconds.')
        if duration <= 0:
            raise PunchclockCliInvalidArgumentException(f'Invalid argument "{arg}". Use a positive duration.')

        return duration

    def _raise_if_failed(self):
        if self._orchestrator.error_message:
            raise PunchclockCliCommandFailedException(self._orchestrator.error_message)

    def _save_configuration(self):
        save_configuration_to_file(self._orchestrator.devices, self._orchestrator.selected_device_id)

    async def _scan(self, max_duration):
        task = self._orchestrator.start_scan()
        if task is None:
            return True
        if max_duration is None:
            await task
            return True

        done, _ = await asyncio.wait({task}, timeout=max_duration)
        if not done:
            self._orchestrator.cancel_scan()
            return False
        return True

    def scan(self, args):
        print('Starting device discovery...')
        completed = run_async_function_synchronously(self._scan(args.max_duration))
        if not completed:
            print(f'Scan cancelled after {args.max_duration} seconds. Device list unchanged.')
            return
        self._raise_if_failed()

        entries = self._orchestrator.device_entries()
        if not entries:
            print('No biometric devices detected on this network.')
            self._save_configuration()
            return

        print(f'Found {len(entries)} biometric device(s).')
        if args.no_select:
            print_devices_table(entries)
        else:
            self._orchestrator.select_device(prompt_user_to_choose_device(entries))
        self._save_configuration()

    def devices(self, _):
        entries = self._orchestrator.device_entries()
        if not entries:
            print('No devices. Run "scan" first.')
            return
        print_devices_table(entries, self._orchestrator.selected_device_id)

    def select(self, args):
        device_id = None if args.none else args.device_id
        device = self._orchestrator.select_device(device_id)
        self._save_configuration()

        if device:
            print(f'Selected {self._orchestrator.selected_device_id}.')
        elif device_id:
            print(f'Device {device_id} not found. Selection cleared.')
        else:
            print('Selection cleared.')

    @staticmethod
    def _print_records(records):
        table = PrettyTable()
        table.field_names = ['User ID', 'User Name', 'Date', 'Time', 'Event', 'Status', 'Punch']
        for record in records:
            table.add_row([record.user_id, record.user_name, record.date, record.time, record.event,
                           record.status, record.punch])
        print(table)

    def fetch(self, args):
        device = self._orchestrator.selected_device
        if device:
            print(f'Fetching attendance from {device.ip}...')
        records = run_async_function_synchronously(self._orchestrator.fetch())
        self._raise_if_failed()

        if not records:
            print('No attendance records.')
            return
        self._print_records(records)
        print(f'Total attendance logs: {len(records)}')

        if args.export:
            output_file_path = self._orchestrator.export_csv(Path(args.output_dir or Path.cwd()))
            print(f'Attendance exported to {output_file_path}')

    def sync(self, _):
        run_async_function_synchronously(self._orchestrator.sync())
        if isinstance(self._orchestrator.error, PunchclockCliSyncNotImplementedException):
            print(self._orchestrator.error_message)
            return
        self._raise_if_failed()


def _parse_args():
    main_parser = argparse.ArgumentParser(epilog='For more information about a given command, use "<command> -h"')

    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument('--verbose', '-v', action='store_true', help='Verbose mode')

    subparsers = main_parser.add_subparsers()

    subparser = subparsers.add_parser('scan', parents=[common_parser],
                                      help='Scan the local network for biometric devices and choose one')
    subparser.set_defaults(func=PunchclockCli.scan)
    subparser.add_argument('--max-duration', metavar='SECONDS', type=PunchclockCli.verify_duration_argument,
                           help='Give up on the scan after this many seconds, keeping the previous device list')
    subparser.add_argument('--no-select', action='store_true', help='Only list the devices found')

    subparser = subparsers.add_parser('devices', parents=[common_parser], help='List devices from the last scan')
    subparser.set_defaults(func=PunchclockCli.devices)

    subparser = subparsers.add_parser('select', parents=[common_parser], help='Select a device from the last scan')
    subparser.set_defaults(func=PunchclockCli.select)
    selection = subparser.add_mutually_exclusive_group(required=True)
    selection.add_argument('device_id', nargs='?', help='Device ID as listed by "devices" (e.g. 192.168.1.201-0)')
    selection.add_argument('--none', action='store_true', help='Clear the selection')

    subparser = subparsers.add_parser('fetch', parents=[common_parser],
                                      help='Fetch attendance records from the selected device')
    subparser.set_defaults(func=PunchclockCli.fetch)
    subparser.add_argument('--export', action='store_true', help='Export the records to a CSV file')
    subparser.add_argument('--output-dir', help='CSV output directory. Defaults to the current directory')

    subparser = subparsers.add_parser('sync', parents=[common_parser], help='Synchronize the selected device')
    subparser.set_defaults(func=PunchclockCli.sync)

    if len(sys.argv) < 2:
        main_parser.print_help()
        sys.exit(0)

    return main_parser.parse_args()


def main():
    try:
        args = _parse_args()
        logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

        cli = PunchclockCli(args.verbose)
        args.func(cli, args)
    except PunchclockCliException as e:
        print(f'Error: {e}')
        sys.exit(1)


if __name__ == '__main__':
    main()
