# v6intake/workspace/writer.py
import contextlib
import logging
import threading
from ipaddress import IPv6Address
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from v6intake.core.errors import WorkspaceError
from v6intake.core.metrics import MetricsCollector
from v6intake.core.registry import AddressEncoding, get_codec

logger = logging.getLogger(__name__)

WRITE_TIMER = "results.file_write.time"
RECORDS_COUNTER = "results.records_written"


class ResultWriter:
    """
    Appends addresses to result files.

    Only one write per path runs at a time: each path gets its own lock, held
    for as long as the append handle is open. A path's lock is dropped once no
    write to it is running or waiting.
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or MetricsCollector()
        # resolved path -> (lock, writers holding or waiting on it)
        self._locks: Dict[Path, Tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextlib.contextmanager
    def _locked(self, path: Path) -> Iterator[None]:
        key = path.resolve()
        with self._locks_guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def append(
        self,
        addresses: List[IPv6Address],
        path: Union[str, Path],
        encoding: Union[str, AddressEncoding] = AddressEncoding.TEXT,
    ) -> int:
        """
        Appends `addresses` to `path`, creating the file if needed.

        Unknown encodings are written as text (with a warning).

        Returns:
            int: Number of records written.
        """
        path = Path(path)
        payload = get_codec(encoding).encode(addresses)
        logger.info("Updating file at path '%s' with %d newly-found IP addresses.", path, len(addresses))

        with self._locked(path):
            try:
                with self.metrics.timer(WRITE_TIMER):
                    with open(path, "ab") as handle:
                        handle.write(payload)
                        handle.flush()
            except OSError as err:
                logger.error("Error thrown when writing addresses to path '%s': %s", path, err)
                raise WorkspaceError("Could not write result file", cause=err, filename=str(path)) from err

        self.metrics.increment(RECORDS_COUNTER, len(addresses))
        logger.info("Finished writing %d addresses to '%s'.", len(addresses), path)
        return len(addresses)
