# v6intake/stages/__init__.py
from .dedup import Deduplicator, dedup
from .entropy import EntropyFilter, bit_entropy, filter_high_entropy

__all__ = [
    "Deduplicator",
    "EntropyFilter",
    "bit_entropy",
    "dedup",
    "filter_high_entropy",
]
