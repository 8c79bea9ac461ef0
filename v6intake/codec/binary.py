# v6intake/codec/binary.py
from ipaddress import IPv6Address
from typing import List

from v6intake.codec.base import ADDRESS_LENGTH, AddressCodec
from v6intake.core.errors import FormatError
from v6intake.core.registry import AddressEncoding, codec


@codec(AddressEncoding.BIN)
class BinaryCodec(AddressCodec):
    """Concatenated 16-byte addresses in network byte order, no separators."""
    file_suffix = ".bin"

    def decode_bytes(self, raw: bytes, source: str = "<bytes>") -> List[IPv6Address]:
        trailing = len(raw) % ADDRESS_LENGTH
        if trailing:
            raise FormatError(
                f"Binary address file '{source}' is truncated: {len(raw)} bytes is not a multiple "
                f"of {ADDRESS_LENGTH} ({trailing} trailing bytes).",
                path=source,
            )
        return [
            IPv6Address(raw[offset:offset + ADDRESS_LENGTH])
            for offset in range(0, len(raw), ADDRESS_LENGTH)
        ]

    def encode(self, addresses: List[IPv6Address]) -> bytes:
        return b"".join(addr.packed for addr in addresses)
