# v6intake/codec/text.py
import ipaddress
import re
from ipaddress import IPv6Address
from typing import List

from v6intake.codec.base import AddressCodec
from v6intake.core.errors import FormatError
from v6intake.core.registry import AddressEncoding, codec

_BARE_HEX = re.compile(r"^[0-9a-fA-F]{32}$")


def parse_address(line: str) -> IPv6Address:
    """Parses standard IPv6 notation or 32 bare hex digits (no colons)."""
    if _BARE_HEX.match(line):
        return IPv6Address(int(line, 16))
    return IPv6Address(line)


@codec(AddressEncoding.TEXT)
class TextCodec(AddressCodec):
    """
    One address per line.

    Decoding accepts any notation ipaddress understands plus the bare 32-hex-digit
    form. Blank lines are skipped; anything else that fails to parse is an error.
    Encoding always writes the compressed notation, so text output does not
    reproduce the input formatting.
    """
    file_suffix = ".txt"

    def decode_bytes(self, raw: bytes, source: str = "<bytes>") -> List[IPv6Address]:
        try:
            text = raw.decode("ascii")
        except UnicodeDecodeError as err:
            raise FormatError(f"Text address file '{source}' contains non-ASCII data: {err}", path=source) from err

        addresses = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                addresses.append(parse_address(line))
            except ipaddress.AddressValueError as err:
                raise FormatError(
                    f"Invalid IPv6 address '{line}' on line {lineno} of '{source}': {err}",
                    path=source,
                    line=lineno,
                ) from err
        return addresses

    def encode(self, addresses: List[IPv6Address]) -> bytes:
        return "".join(f"{addr}\n" for addr in addresses).encode("ascii")
