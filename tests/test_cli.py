"""Unit tests for the command-line front end."""

import asyncio
import tempfile
import unittest
from argparse import Namespace
from pathlib import Path
from unittest.mock import patch

from punchclock_cli.cli import PunchclockCli
from punchclock_cli.csv_export import export_file_name, records_to_csv
from punchclock_cli.configure import Configuration
from punchclock_cli.errors import PunchclockCliCommandFailedException, PunchclockCliFetchException, \
    PunchclockCliInvalidArgumentException
from punchclock_cli.orchestrator import Orchestrator
from punchclock_cli.sync_stub import SyncStub

from fakes import make_device, make_record


class FailingClient:
    async def discover_devices(self):
        raise AssertionError('not expected')

    async def fetch_attendance(self, ip_address, port):
        raise PunchclockCliFetchException('Connection failed: refused')


class RecordingClient:
    def __init__(self, devices=(), records=()):
        self.devices = list(devices)
        self.records = list(records)
        self.fetched = []

    async def discover_devices(self):
        return self.devices

    async def fetch_attendance(self, ip_address, port):
        self.fetched.append((ip_address, port))
        return self.records


class StalledClient(RecordingClient):
    async def discover_devices(self):
        await asyncio.sleep(10)
        return [make_device(ip='10.0.0.9')]


class TestPunchclockCli(unittest.TestCase):

    def setUp(self):
        self.configuration = Configuration(devices=[make_device(ip='10.0.0.1'), make_device(ip='10.0.0.2')],
                                           selected_device_id='10.0.0.1-0')
        self.load_patcher = patch('punchclock_cli.cli.load_configuration_from_file', return_value=self.configuration)
        self.save_patcher = patch('punchclock_cli.cli.save_configuration_to_file')
        self.print_patcher = patch('builtins.print')
        self.load_patcher.start()
        self.save_mock = self.save_patcher.start()
        self.print_mock = self.print_patcher.start()

    def tearDown(self):
        self.load_patcher.stop()
        self.save_patcher.stop()
        self.print_patcher.stop()

    def _make_cli(self, client):
        return PunchclockCli(verbose=False, orchestrator=Orchestrator(client=client, sync_stub=SyncStub(0)))

    def _printed(self):
        return [str(call.args[0]) for call in self.print_mock.call_args_list if call.args]

    def test_restores_persisted_selection(self):
        cli = self._make_cli(RecordingClient())

        cli.devices(None)

        self.assertIn('10.0.0.1-0', self._printed()[-1])

    def test_select_unknown_device(self):
        cli = self._make_cli(RecordingClient())

        cli.select(Namespace(none=False, device_id='10.0.0.9-0'))

        self.save_mock.assert_called_once()
        self.assertEqual(self.save_mock.call_args.args[1], None)
        self.assertEqual(self._printed()[-1], 'Device 10.0.0.9-0 not found. Selection cleared.')

    def test_select_device(self):
        cli = self._make_cli(RecordingClient())

        cli.select(Namespace(none=False, device_id='10.0.0.2-1'))

        self.assertEqual(self.save_mock.call_args.args[1], '10.0.0.2-1')

    def test_fetch_prints_records(self):
        client = RecordingClient(records=[make_record(user_name='Alice')])
        cli = self._make_cli(client)

        cli.fetch(Namespace(export=False, output_dir=None))

        self.assertEqual(client.fetched, [('10.0.0.1', 4370)])
        self.assertTrue(any('Alice' in line for line in self._printed()))

    def test_fetch_failure_raises(self):
        cli = self._make_cli(FailingClient())

        with self.assertRaises(PunchclockCliCommandFailedException) as context:
            cli.fetch(Namespace(export=False, output_dir=None))

        self.assertEqual(str(context.exception), 'Connection failed: refused')

    def test_scan_without_prompt(self):
        client = RecordingClient(devices=[make_device(ip='10.0.0.7')])
        cli = self._make_cli(client)

        cli.scan(Namespace(max_duration=None, no_select=True))

        devices, selected_device_id = self.save_mock.call_args.args
        self.assertEqual([d.ip for d in devices], ['10.0.0.7'])
        self.assertIsNone(selected_device_id)

    def test_scan_max_duration_keeps_previous_devices(self):
        cli = self._make_cli(StalledClient())

        with patch.object(Orchestrator, 'cancel_scan', autospec=True,
                          side_effect=Orchestrator.cancel_scan) as cancel_mock:
            cli.scan(Namespace(max_duration=0.01, no_select=True))

        cancel_mock.assert_called_once()
        self.save_mock.assert_not_called()
        self.assertEqual([d.ip for d in cli._orchestrator.devices], ['10.0.0.1', '10.0.0.2'])
        self.assertEqual(cli._orchestrator.selected_device_id, '10.0.0.1-0')
        self.assertEqual(self._printed()[-1], 'Scan cancelled after 0.01 seconds. Device list unchanged.')

    def test_fetch_exports_csv(self):
        records = [make_record(user_name='Alice'), make_record(user_id=2, user_name='Bob')]
        cli = self._make_cli(RecordingClient(records=records))

        with tempfile.TemporaryDirectory() as output_dir:
            cli.fetch(Namespace(export=True, output_dir=output_dir))

            output_file_path = Path(output_dir) / export_file_name()
            self.assertTrue(output_file_path.name.startswith('attendance_'))
            self.assertEqual(output_file_path.read_bytes(), records_to_csv(records))
            self.assertEqual(self._printed()[-1], f'Attendance exported to {output_file_path}')

    def test_sync_prints_placeholder_message(self):
        cli = self._make_cli(RecordingClient())

        cli.sync(None)

        self.assertEqual(self._printed()[-1], 'Sync functionality will be implemented soon')

    def test_verify_duration_argument(self):
        self.assertEqual(PunchclockCli.verify_duration_argument('2.5'), 2.5)
        with self.assertRaises(PunchclockCliInvalidArgumentException):
            PunchclockCli.verify_duration_argument('soon')
        with self.assertRaises(PunchclockCliInvalidArgumentException):
            PunchclockCli.verify_duration_argument('0')


if __name__ == '__main__':
    unittest.main()
