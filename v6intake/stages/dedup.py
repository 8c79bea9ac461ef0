# v6intake/stages/dedup.py
from ipaddress import IPv6Address
from typing import Any, List, Set

from v6intake.core.models import AddressSet
from v6intake.core.plugin import BaseStage


class Deduplicator(BaseStage):
    """Drops repeated addresses, keeping the first occurrence of each."""
    name = "dedup"
    description = "Remove duplicate addresses, preserving first-seen order."

    def run(self, data: AddressSet, **kwargs: Any) -> AddressSet:
        addrs = data.addresses
        total = len(addrs)
        self.info("Now removing duplicates from list of IP addresses of length %d.", total)

        bar = self.add_progress_bar("dedup", total=total, description="Removing duplicates")
        seen: Set[bytes] = set()
        unique: List[IPv6Address] = []
        for i, addr in enumerate(addrs):
            self.emit_progress(i, total, "duplicate IPs")
            key = addr.packed
            if key not in seen:
                seen.add(key)
                unique.append(addr)
            self.update_progress_bar(bar)
        self.close_progress_bar(bar)

        self.info("Resulting list is %d long (removed %d duplicates).", len(unique), total - len(unique))
        return data.derive(unique)


def dedup(addresses: List[IPv6Address], emit_frequency: int = 100000) -> List[IPv6Address]:
    return Deduplicator(emit_frequency=emit_frequency)(AddressSet(name="dedup", addresses=addresses)).addresses
