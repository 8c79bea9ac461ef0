# v6intake/core/registry.py
import logging
from enum import Enum
from typing import Callable, Dict, Type, Union

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from v6intake.codec.base import AddressCodec

logger = logging.getLogger(__name__)


class AddressEncoding(str, Enum):
    BIN = "bin"
    TEXT = "text"


CODECS: Dict[AddressEncoding, Type["AddressCodec"]] = {}


def resolve_encoding(value: Union[str, AddressEncoding]) -> AddressEncoding:
    """
    Maps a user-supplied encoding name onto AddressEncoding.

    Exact match (case-insensitive, surrounding whitespace ignored) against the
    known names; anything else falls back to TEXT with a warning.
    """
    if isinstance(value, AddressEncoding):
        return value
    normalized = str(value).strip().lower()
    for encoding in AddressEncoding:
        if encoding.value == normalized:
            return encoding
    logger.warning("Unexpected address file encoding (%s). Defaulting to %s.", value, AddressEncoding.TEXT.value)
    return AddressEncoding.TEXT


def codec(encoding: AddressEncoding) -> Callable[[Type["AddressCodec"]], Type["AddressCodec"]]:
    """
    Decorator to register an AddressCodec class for an encoding.
    """
    def decorator(cls: Type["AddressCodec"]) -> Type["AddressCodec"]:
        from v6intake.codec.base import AddressCodec
        if not issubclass(cls, AddressCodec):
            raise TypeError(f"Codec class {cls.__module__}.{cls.__name__} must extend v6intake.codec.base.AddressCodec")

        if encoding in CODECS:
            logger.warning(
                f"Codec for '{encoding.value}' is being overridden. "
                f"Original: {CODECS[encoding].__module__}.{CODECS[encoding].__name__}, "
                f"New: {cls.__module__}.{cls.__name__}"
            )

        CODECS[encoding] = cls
        cls.encoding = encoding

        logger.debug(f"Registered codec {cls.__name__} for encoding '{encoding.value}'")
        return cls
    return decorator


def get_codec(value: Union[str, AddressEncoding]) -> "AddressCodec":
    """Returns a codec instance for `value`, falling back to text for unknown names."""
    # Importing the package registers the built-in codecs
    import v6intake.codec  # noqa: F401

    encoding = resolve_encoding(value)
    return CODECS[encoding]()
