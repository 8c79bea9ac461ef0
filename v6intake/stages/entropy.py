# v6intake/stages/entropy.py
import math
from ipaddress import IPv6Address
from typing import Any, Callable, List, Optional

from v6intake.core.models import AddressSet
from v6intake.core.plugin import BaseStage

ADDRESS_BITS = 128

# (packed address, bit length) -> score
EntropyFunction = Callable[[bytes, int], float]


def bit_entropy(packed: bytes, bit_length: int) -> float:
    """
    Shannon entropy (base 2) of the 0/1 distribution over the rightmost
    `bit_length` bits of `packed`.

    Returns 0.0 for a constant pattern and 1.0 for an even split of ones and
    zeroes.
    """
    if not 1 <= bit_length <= ADDRESS_BITS:
        raise ValueError(f"bit_length must be between 1 and {ADDRESS_BITS}, got {bit_length}")
    low_bits = int.from_bytes(packed, "big") & ((1 << bit_length) - 1)
    ones = bin(low_bits).count("1")
    if ones == 0 or ones == bit_length:
        return 0.0
    p = ones / bit_length
    q = 1.0 - p
    return -(p * math.log2(p) + q * math.log2(q))


class EntropyFilter(BaseStage):
    """
    Discards addresses whose low-order bits look randomly generated.

    An address is kept iff its score over the rightmost `bit_length` bits is
    strictly below `threshold`. Addresses with near-uniform low bits are most
    likely SLAAC/privacy addresses and say little about how a network is laid out.

    Because the comparison is strict, a threshold of 1.0 still drops addresses
    whose low bits are an exact even split of ones and zeroes (score 1.0). Use
    `math.inf` to keep every address.
    """
    name = "entropy"
    description = "Remove high-entropy (likely autoconfigured) addresses."

    def __init__(
        self,
        bit_length: int = 64,
        threshold: float = 0.6,
        entropy_fn: Optional[EntropyFunction] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        if not 1 <= bit_length <= ADDRESS_BITS:
            raise ValueError(f"bit_length must be between 1 and {ADDRESS_BITS}, got {bit_length}")
        self.bit_length = bit_length
        self.threshold = threshold
        self.entropy_fn = entropy_fn or bit_entropy

    def run(self, data: AddressSet, **kwargs: Any) -> AddressSet:
        addrs = data.addresses
        total = len(addrs)
        self.info(
            "Now removing high entropy IP addresses from list of length %d (%f threshold, %d bits).",
            total, self.threshold, self.bit_length,
        )

        bar = self.add_progress_bar("entropy", total=total, description="Filtering high entropy")
        kept: List[IPv6Address] = []
        for i, addr in enumerate(addrs):
            self.emit_progress(i, total, "high entropy IPs")
            if self.entropy_fn(addr.packed, self.bit_length) < self.threshold:
                kept.append(addr)
            self.update_progress_bar(bar)
        self.close_progress_bar(bar)

        self.info("Resulting list is %d long (removed %d high entropy addresses).", len(kept), total - len(kept))
        return data.derive(kept)


def filter_high_entropy(
    addresses: List[IPv6Address],
    bit_length: int,
    threshold: float,
    entropy_fn: Optional[EntropyFunction] = None,
    emit_frequency: int = 100000,
) -> List[IPv6Address]:
    stage = EntropyFilter(
        bit_length=bit_length,
        threshold=threshold,
        entropy_fn=entropy_fn,
        emit_frequency=emit_frequency,
    )
    return stage(AddressSet(name="entropy", addresses=addresses)).addresses
