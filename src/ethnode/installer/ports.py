"""Listening-port report built from ``netstat -tuln`` output"""

from typing import Dict, Iterable, List


def parse_listening(output: str, ports: Iterable[int]) -> Dict[int, List[str]]:
    """Map each port of interest to the netstat lines bound to it"""
    wanted = {int(p): [] for p in ports}

    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 4 or not parts[0].startswith(("tcp", "udp")):
            continue

        local = parts[3]
        _, _, port = local.rpartition(":")
        if port.isdigit() and int(port) in wanted:
            wanted[int(port)].append(line.strip())

    return wanted
