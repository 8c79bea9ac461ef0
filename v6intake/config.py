# v6intake/config.py
import datetime
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from v6intake.core.errors import WorkspaceError

logger = logging.getLogger(__name__)


class IntakeConfig(BaseModel):
    """
    Settings for one intake run. Frozen: nothing may change them mid-run.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    min_addresses: int = Field(default=1000, ge=0)
    entropy_bit_length: int = Field(default=64, ge=1, le=128)
    entropy_threshold: float = 0.6
    emit_frequency: int = Field(default=100000, ge=1)
    output_encoding: str = "text"

    base_output_directory: str = "output"
    model_dir_name: str = "models"
    ping_result_dir_name: str = "ping_results"
    state_file_name: str = "state.txt"
    # relative names live under the base directory and are cleared by a reset
    output_file_name: str = "discovered_addresses"

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "IntakeConfig":
        """Loads a JSON config file. Raises pydantic.ValidationError on bad values."""
        path = Path(path)
        try:
            text = path.read_text()
        except OSError as err:
            raise WorkspaceError(f"Could not read config file '{path}'", cause=err, filename=str(path)) from err
        logger.debug("Loading configuration from %s", path)
        return cls.model_validate_json(text)

    def with_overrides(self, overrides: Dict[str, Any]) -> "IntakeConfig":
        """Returns a validated copy with every non-None override applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        return type(self).model_validate({**self.model_dump(), **updates})

    @property
    def workspace(self) -> "Workspace":
        return Workspace(self)


class Workspace:
    """Paths of the durable artifacts under the base output directory."""

    def __init__(self, config: IntakeConfig):
        self.config = config
        self.base_dir = Path(config.base_output_directory)
        self.model_dir = self.base_dir / config.model_dir_name
        self.ping_result_dir = self.base_dir / config.ping_result_dir_name
        self.state_file = self.base_dir / config.state_file_name
        self.output_file = self.base_dir / config.output_file_name

    def ensure(self) -> None:
        """Creates the base directory and its subdirectories if missing."""
        for path in (self.base_dir, self.model_dir, self.ping_result_dir):
            if path.is_dir():
                continue
            logger.info("No directory found at path '%s'. Creating now.", path)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as err:
                raise WorkspaceError(f"Could not create directory '{path}'", cause=err, filename=str(path)) from err

    @staticmethod
    def timed_file_path(directory: Path, suffix: str = "") -> Path:
        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return Path(directory) / f"{ts}{suffix}"

    @staticmethod
    def most_recent_file(directory: Path) -> Optional[Path]:
        """Newest regular file in `directory` by mtime, or None if there is none."""
        directory = Path(directory)
        if not directory.is_dir():
            return None
        newest: Optional[Path] = None
        newest_time = -1.0
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file(follow_symlinks=False):
                    continue
                mtime = entry.stat(follow_symlinks=False).st_mtime
                if mtime > newest_time:
                    newest_time = mtime
                    newest = Path(entry.path)
        return newest
