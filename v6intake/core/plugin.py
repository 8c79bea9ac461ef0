# v6intake/core/plugin.py
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import tqdm

from v6intake.core.models import AddressSet

# Handles for progress bars are their names
ProgressBarHandle = str


class BaseStage(ABC):
    """
    Base class for the list-processing stages of the intake pipeline.

    A stage takes an AddressSet and returns a new AddressSet. It never
    mutates its input. Stages report progress in two ways: a log line every
    `emit_frequency` items (always), and tqdm progress bars (only when enabled).
    """
    name: str
    description: Optional[str] = None

    logger: logging.Logger
    emit_frequency: int
    _progress_bars_enabled: bool
    _progress_bars: Dict[ProgressBarHandle, Any]

    def __init__(self, emit_frequency: int = 100000, progress_bars_enabled: bool = False, **kwargs: Any):
        """
        Args:
            emit_frequency (int): Log a progress line every this many items.
            progress_bars_enabled (bool): If True, show tqdm progress bars as well.
            **kwargs: Absorbs keyword arguments not handled by a concrete stage.
        """
        if emit_frequency < 1:
            raise ValueError(f"emit_frequency must be at least 1, got {emit_frequency}")
        # Handlers and levels are configured by the entry point (see cli.main)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self.emit_frequency = emit_frequency
        self._progress_bars_enabled = progress_bars_enabled
        self._progress_bars = {}

    # --- Logging Methods ---
    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, *args, exc_info=exc_info, **kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def emit_progress(self, index: int, total: int, action: str) -> None:
        """Logs 'Processing i out of n' on every emit_frequency-th item, starting at 0."""
        if index % self.emit_frequency == 0:
            self.info("Processing %d out of %d for %s.", index, total, action)

    # --- Progress Bar Management Methods ---
    def add_progress_bar(
        self,
        name: str,
        total: Optional[int] = None,
        description: Optional[str] = None,
        unit: str = "addr",
        leave: bool = False,
    ) -> Optional[ProgressBarHandle]:
        """
        Adds a new progress bar.

        Returns:
            Optional[ProgressBarHandle]: The handle of the bar, or None if bars are disabled.
        """
        if not self._progress_bars_enabled:
            return None
        if name in self._progress_bars:
            self.warning("Progress bar with name '%s' already exists. Returning existing handle.", name)
            return name
        self._progress_bars[name] = tqdm.tqdm(
            total=total,
            desc=description or name,
            unit=unit,
            leave=leave,
            dynamic_ncols=True,
            miniters=max(1, (total or 0) // 100),
        )
        return name

    def update_progress_bar(self, handle: Optional[ProgressBarHandle], advance: int = 1) -> None:
        if handle is None or handle not in self._progress_bars:
            return
        self._progress_bars[handle].update(advance)

    def close_progress_bar(self, handle: Optional[ProgressBarHandle]) -> None:
        if handle is None or handle not in self._progress_bars:
            return
        self._progress_bars.pop(handle).close()

    def close_all_progress_bars(self) -> None:
        for name in list(self._progress_bars.keys()):
            self.close_progress_bar(name)

    @abstractmethod
    def run(self, data: AddressSet, **kwargs: Any) -> AddressSet:
        """Process `data` and return a new AddressSet."""
        ...

    def __call__(self, data: AddressSet, **kwargs: Any) -> AddressSet:
        try:
            return self.run(data, **kwargs)
        finally:
            self.close_all_progress_bars()
