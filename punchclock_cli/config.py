from pathlib import Path

default_terminal_port = 4370
candidate_ports = [80, 89, 8080, 23, 4370, 4360]
biometric_ports = [4370, 4360]
biometric_mac_prefixes = [
    '00:17:61',  # ZKTeco / ESSL / Realtime
    'AC:83:F3',  # ZKTeco newer models
    'F8:1D:78',  # Anviz / eSSL
    '3C:8C:F8',  # Matrix
    '64:09:80',  # Realand / BioTime OEMs
]
unknown_mac_address = 'Unknown'
network_prefix_length = 24
port_probe_timeout_seconds = 0.5
maximum_concurrent_probes = 256
discovery_timeout_seconds = 120
fetch_timeout_seconds = 90
terminal_timeout_seconds = 30
terminal_password = 0
sync_delay_seconds = 1
configuration_file_path = Path.home() / '.punchclockcli.config'
