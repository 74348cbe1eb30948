"""Source-address allowlist for webhook deliveries."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


class IPAllowlist:
    """CIDR ranges deliveries may come from (GitHub's ``hooks`` ranges)."""

    def __init__(self) -> None:
        """Start with no ranges; nothing is allowed until ranges are added."""
        self._networks: list[IPNetwork] = []

    def add_range(self, cidr: str) -> None:
        """Allow a CIDR range. Host bits are ignored."""
        self._networks.append(ipaddress.ip_network(cidr, strict=False))

    def add_ranges(self, cidrs: Iterable[str]) -> None:
        """Allow every range in ``cidrs``."""
        for cidr in cidrs:
            self.add_range(cidr)

    def clear(self) -> None:
        """Remove every range."""
        self._networks.clear()

    def __len__(self) -> int:
        return len(self._networks)

    def contains(self, address: str | None) -> bool:
        """Whether ``address`` falls in any range. Unparseable addresses never do."""
        if not address:
            return False
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
            ip = ip.ipv4_mapped
        return any(ip.version == net.version and ip in net for net in self._networks)
