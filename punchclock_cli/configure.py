import pickle
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from prettytable import PrettyTable

from punchclock_cli import config
from punchclock_cli.errors import PunchclockCliNoDeviceSelectedException
from punchclock_cli.models import Device


@dataclass
class Configuration:
    devices: List[Device] = field(default_factory=list)
    selected_device_id: Optional[str] = None


def save_configuration_to_file(devices: Sequence[Device], selected_device_id: Optional[str]) -> None:
    with open(config.configuration_file_path, 'wb') as configuration_file:
        configuration = Configuration(devices=list(devices), selected_device_id=selected_device_id)
        pickle.dump(configuration, configuration_file)


def load_configuration_from_file() -> Configuration:
    try:
        with open(config.configuration_file_path, 'rb') as configuration_file:
            configuration = pickle.load(configuration_file)
        return configuration
    except FileNotFoundError:
        return Configuration()


def _ports_string(open_ports: Sequence[int]) -> str:
    return ', '.join(str(port) for port in open_ports) or '-'


def print_devices_table(entries: Sequence[Tuple[str, Device]], selected_device_id: Optional[str] = None) -> None:
    table = PrettyTable()
    table.field_names = ['', 'Device ID', 'IP address', 'MAC address', 'Open ports', 'Selected']
    for device_index, (device_id, device) in enumerate(entries):
        table.add_row([device_index, device_id, device.ip, device.mac, _ports_string(device.open_ports),
                       '*' if device_id == selected_device_id else ''])
    print(table)


def prompt_user_to_choose_device(entries: Sequence[Tuple[str, Device]]) -> str:
    if not entries:
        raise PunchclockCliNoDeviceSelectedException('No devices to choose from.')

    if len(entries) == 1:
        print('Only one device available.')
        choice_index = 0
    else:
        print_devices_table(entries)

        choice = input(f'Choose a device (0–{len(entries) - 1}): ')
        if choice.isdigit() and 0 <= int(choice) <= len(entries) - 1:
            choice_index = int(choice)
        else:
            print('Invalid choice. No device selected.')
            raise PunchclockCliNoDeviceSelectedException('Invalid device choice.')

    device_id, device = entries[choice_index]
    print(f'Choosing {device_id} ({device.mac}).')
    return device_id
