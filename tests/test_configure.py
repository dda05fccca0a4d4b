"""Unit tests for persisting the last scan result and selection."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from punchclock_cli import config
from punchclock_cli.configure import (
    Configuration,
    load_configuration_from_file,
    print_devices_table,
    prompt_user_to_choose_device,
    save_configuration_to_file,
)
from punchclock_cli.errors import PunchclockCliNoDeviceSelectedException

from fakes import make_device


class TestConfigurationFile(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.path_patcher = patch.object(config, 'configuration_file_path', Path(self.tmp_dir.name) / 'config')
        self.path_patcher.start()

    def tearDown(self):
        self.path_patcher.stop()
        self.tmp_dir.cleanup()

    def test_missing_file_gives_empty_configuration(self):
        self.assertEqual(load_configuration_from_file(), Configuration(devices=[], selected_device_id=None))

    def test_save_and_load(self):
        devices = [make_device(ip='10.0.0.1'), make_device(ip='10.0.0.2', open_ports=[80])]

        save_configuration_to_file(devices, '10.0.0.2-1')
        configuration = load_configuration_from_file()

        self.assertEqual(configuration.devices, devices)
        self.assertEqual(configuration.selected_device_id, '10.0.0.2-1')


class TestDeviceChoice(unittest.TestCase):

    def setUp(self):
        self.entries = [('10.0.0.1-0', make_device(ip='10.0.0.1')), ('10.0.0.2-1', make_device(ip='10.0.0.2'))]

    def test_no_devices(self):
        with self.assertRaises(PunchclockCliNoDeviceSelectedException):
            prompt_user_to_choose_device([])

    @patch('builtins.print')
    def test_single_device_is_chosen_automatically(self, _):
        self.assertEqual(prompt_user_to_choose_device(self.entries[:1]), '10.0.0.1-0')

    @patch('builtins.print')
    @patch('builtins.input', return_value='1')
    def test_choice_by_index(self, input_mock, _):
        self.assertEqual(prompt_user_to_choose_device(self.entries), '10.0.0.2-1')
        input_mock.assert_called_once()

    @patch('builtins.print')
    @patch('builtins.input', return_value='5')
    def test_invalid_choice(self, *_):
        with self.assertRaises(PunchclockCliNoDeviceSelectedException):
            prompt_user_to_choose_device(self.entries)

    @patch('builtins.print')
    def test_table_marks_selection(self, print_mock):
        print_devices_table(self.entries, '10.0.0.2-1')

        table = str(print_mock.call_args.args[0])
        self.assertIn('10.0.0.2-1', table)
        self.assertIn('*', table)


if __name__ == '__main__':
    unittest.main()
