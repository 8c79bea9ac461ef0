# v6intake/codec/__init__.py
from ipaddress import IPv6Address
from pathlib import Path
from typing import List, Union

from v6intake.core.registry import AddressEncoding, get_codec

from .base import AddressCodec
from .binary import BinaryCodec
from .text import TextCodec


def decode(path: Union[str, Path], encoding: Union[str, AddressEncoding]) -> List[IPv6Address]:
    """Reads the address file at `path`. Unknown encodings are read as text."""
    return get_codec(encoding).decode(path)


def encode(addresses: List[IPv6Address], encoding: Union[str, AddressEncoding]) -> bytes:
    return get_codec(encoding).encode(addresses)


__all__ = [
    "AddressCodec",
    "BinaryCodec",
    "TextCodec",
    "decode",
    "encode",
]
