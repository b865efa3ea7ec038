import ipaddress
from typing import Mapping, Optional

UNSPECIFIED_ADDRESS = "0.0.0.0"
PRIVATE_LOCATION = "Private network"
UNKNOWN_LOCATION = "Unknown"


def client_ip_from_headers(
    headers: Mapping[str, str], peer_host: Optional[str] = None
) -> str:
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return peer_host or UNSPECIFIED_ADDRESS


def normalize_ip(ip: Optional[str]) -> str:
    if not ip:
        return UNSPECIFIED_ADDRESS
    if ip == "::1":
        return "127.0.0.1"
    return ip


def is_private_ip(ip: Optional[str]) -> bool:
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if address.version == 6:
        return address.is_loopback
    return address.is_loopback or any(
        address in network for network in _PRIVATE_V4_NETWORKS
    )


def location_label(ip: Optional[str]) -> str:
    return PRIVATE_LOCATION if is_private_ip(ip) else UNKNOWN_LOCATION


_PRIVATE_V4_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)
