# v6intake/codec/base.py
import logging
from abc import ABC, abstractmethod
from ipaddress import IPv6Address
from pathlib import Path
from typing import List, Union

from v6intake.core.errors import WorkspaceError
from v6intake.core.registry import AddressEncoding

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 16


class AddressCodec(ABC):
    """Converts between address lists and one on-disk encoding."""
    encoding: AddressEncoding
    file_suffix: str = ""

    @abstractmethod
    def decode_bytes(self, raw: bytes, source: str = "<bytes>") -> List[IPv6Address]:
        """Parses `raw`; `source` is only used in error messages."""
        ...

    @abstractmethod
    def encode(self, addresses: List[IPv6Address]) -> bytes:
        ...

    def decode(self, path: Union[str, Path]) -> List[IPv6Address]:
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as err:
            raise WorkspaceError(f"Could not read address file '{path}'", cause=err, filename=str(path)) from err
        addresses = self.decode_bytes(raw, source=str(path))
        logger.info("Successfully read %d addresses from %s file at '%s'.", len(addresses), self.encoding.value, path)
        return addresses
