import asyncio
import ipaddress
import logging
import re
import socket
from typing import Dict, Iterable, List, Optional

from punchclock_cli import config
from punchclock_cli.errors import PunchclockCliDiscoveryException
from punchclock_cli.models import Device

logger = logging.getLogger(__name__)

ARP_TABLE_ENTRY_REGEX = r'(?P<ip>(?:\d{1,3}\.){3}\d{1,3})\D+?(?P<mac>(?:[0-9a-fA-F]{1,2}[:-]){5}[0-9a-fA-F]{1,2})'
ADDRESS_PROBE_TARGET = ('8.8.8.8', 80)


def get_local_ip_address() -> ipaddress.IPv4Address:
    # Connecting a UDP socket sends nothing but makes the OS pick the outgoing interface
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp_socket:
            udp_socket.connect(ADDRESS_PROBE_TARGET)
            local_address = udp_socket.getsockname()[0]
    except OSError as e:
        raise PunchclockCliDiscoveryException(f'Failed to determine local address: {e}')

    return ipaddress.IPv4Address(local_address)


def get_local_network() -> ipaddress.IPv4Network:
    local_ip_address = get_local_ip_address()
    return ipaddress.IPv4Network(f'{local_ip_address}/{config.network_prefix_length}', strict=False)


def normalize_mac_address(mac_address: str) -> str:
    octets = re.split(r'[:-]', mac_address)
    return ':'.join(octet.zfill(2) for octet in octets).upper()


def parse_arp_table(output: str) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    for line in output.splitlines():
        match_result = re.search(ARP_TABLE_ENTRY_REGEX, line)
        if not match_result:
            continue
        entries[match_result.group('ip')] = normalize_mac_address(match_result.group('mac'))
    return entries


async def read_arp_table() -> Dict[str, str]:
    try:
        process = await asyncio.create_subprocess_exec('arp', '-a',
                                                       stdout=asyncio.subprocess.PIPE,
                                                       stderr=asyncio.subprocess.DEVNULL)
        stdout, _ = await process.communicate()
    except OSError as e:
        logger.debug(f'ARP table unavailable: {e}')
        return {}

    return parse_arp_table(stdout.decode(errors='ignore'))


def is_biometric_device(mac_address: str, open_ports: Iterable[int]) -> bool:
    mac_address = mac_address.upper()
    if any(mac_address.startswith(prefix) for prefix in config.biometric_mac_prefixes):
        return True

    return any(port in config.biometric_ports for port in open_ports)


async def check_port(ip_address: str, port: int, timeout: float = config.port_probe_timeout_seconds) -> bool:
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(ip_address, port), timeout=timeout)
    except (OSError, asyncio.TimeoutError):
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        # The port answered; a failed close does not change that
        pass
    return True


async def find_open_ports(hosts: Iterable[str], ports: List[int]) -> Dict[str, List[int]]:
    semaphore = asyncio.Semaphore(config.maximum_concurrent_probes)

    async def probe(ip_address, port):
        async with semaphore:
            return await check_port(ip_address, port)

    hosts = list(hosts)
    probes = [(ip_address, port) for ip_address in hosts for port in ports]
    results = await asyncio.gather(*(probe(ip_address, port) for ip_address, port in probes))

    open_ports: Dict[str, List[int]] = {ip_address: [] for ip_address in hosts}
    for (ip_address, port), is_open in zip(probes, results):
        if is_open:
            open_ports[ip_address].append(port)
    return {ip_address: ports for ip_address, ports in open_ports.items() if ports}


async def discover_biometric_devices(network: Optional[ipaddress.IPv4Network] = None) -> List[Device]:
    if network is None:
        network = get_local_network()
    logger.info(f'Scanning network {network}')

    hosts = [str(host) for host in network.hosts()]
    open_ports_by_host = await find_open_ports(hosts, config.candidate_ports)
    logger.info(f'Found {len(open_ports_by_host)} active host(s)')

    # Probing populated the ARP cache for every host that answered
    mac_addresses = await read_arp_table()

    biometric_devices: List[Device] = []
    for ip_address, open_ports in open_ports_by_host.items():
        mac_address = mac_addresses.get(ip_address, config.unknown_mac_address)
        if is_biometric_device(mac_address, open_ports):
            logger.info(f'Biometric device detected at {ip_address} ({mac_address}), ports {open_ports}')
            biometric_devices.append(Device(ip=ip_address, mac=mac_address, open_ports=open_ports))
        else:
            logger.debug(f'{ip_address} ({mac_address}) is not a biometric device, ports {open_ports}')

    return biometric_devices
