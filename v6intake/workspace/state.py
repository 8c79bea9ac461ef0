# v6intake/workspace/state.py
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Union

from v6intake.core.errors import FormatError, IllegalTransition, WorkspaceError

logger = logging.getLogger(__name__)


class PipelinePhase(Enum):
    """Stages of the scan cycle, in the order they normally run."""
    GEN_ADDRESSES = "GEN_ADDRESSES"
    PING_ADDRESSES = "PING_ADDRESSES"
    NETWORK_GROUP = "NETWORK_GROUP"
    PING_NETWORKS = "PING_NETWORKS"
    NETWORK_BLACKLIST = "NETWORK_BLACKLIST"
    CLEAN_PING_RESULTS = "CLEAN_PING_RESULTS"
    UPDATE_MODEL = "UPDATE_MODEL"
    UPDATE_ADDRESS_FILE = "UPDATE_ADDRESS_FILE"
    EMIT_METRICS = "EMIT_METRICS"


INITIAL_PHASE = PipelinePhase.GEN_ADDRESSES

# Phase an intake run leaves behind: the supplied list stands in for
# generated-and-pinged addresses.
INTAKE_PHASE = PipelinePhase.NETWORK_GROUP

TRANSITIONS: Dict[PipelinePhase, FrozenSet[PipelinePhase]] = {
    PipelinePhase.GEN_ADDRESSES: frozenset({PipelinePhase.PING_ADDRESSES, INTAKE_PHASE}),
    PipelinePhase.PING_ADDRESSES: frozenset({PipelinePhase.NETWORK_GROUP}),
    PipelinePhase.NETWORK_GROUP: frozenset({PipelinePhase.PING_NETWORKS}),
    PipelinePhase.PING_NETWORKS: frozenset({PipelinePhase.NETWORK_BLACKLIST}),
    PipelinePhase.NETWORK_BLACKLIST: frozenset({PipelinePhase.CLEAN_PING_RESULTS}),
    PipelinePhase.CLEAN_PING_RESULTS: frozenset({PipelinePhase.UPDATE_MODEL}),
    PipelinePhase.UPDATE_MODEL: frozenset({PipelinePhase.UPDATE_ADDRESS_FILE}),
    PipelinePhase.UPDATE_ADDRESS_FILE: frozenset({PipelinePhase.EMIT_METRICS}),
    PipelinePhase.EMIT_METRICS: frozenset({PipelinePhase.GEN_ADDRESSES}),
}


def can_transition(current: PipelinePhase, target: PipelinePhase) -> bool:
    return target in TRANSITIONS[current]


class PhaseStateStore:
    """
    The state file: one PipelinePhase, stored as its name on a single line.

    Writes go to a temp file in the same directory which is then renamed over
    the state file, so a reader sees either the old or the new value.
    A missing file reads as INITIAL_PHASE.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> PipelinePhase:
        try:
            raw = self.path.read_text(encoding="ascii")
        except FileNotFoundError:
            logger.debug("No state file at '%s'. Assuming %s.", self.path, INITIAL_PHASE.value)
            return INITIAL_PHASE
        except UnicodeDecodeError as err:
            raise FormatError(f"State file '{self.path}' is not ASCII", path=str(self.path)) from err
        except OSError as err:
            raise WorkspaceError("Could not read state file", cause=err, filename=str(self.path)) from err

        value = raw.strip()
        try:
            return PipelinePhase(value)
        except ValueError as err:
            raise FormatError(f"State file '{self.path}' holds unknown phase '{value}'", path=str(self.path)) from err

    def write(self, phase: PipelinePhase) -> None:
        tmp_path = self.path.with_name(f".{self.path.name}.tmp.{os.getpid()}")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="ascii") as handle:
                handle.write(f"{phase.value}\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except OSError as err:
            logger.error("Error thrown when attempting to update state file at path '%s': %s", self.path, err)
            raise WorkspaceError("Could not write state file", cause=err, filename=str(self.path)) from err
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    logger.warning("Could not remove temporary state file '%s'.", tmp_path)
        logger.info("Successfully updated state file at path '%s' to %s.", self.path, phase.value)

    def advance(self, target: PipelinePhase) -> PipelinePhase:
        """
        Moves the stored phase to `target` if the transition table allows it.

        Returns:
            PipelinePhase: The phase that was stored before the move.
        """
        current = self.read()
        if not can_transition(current, target):
            raise IllegalTransition(f"Cannot move pipeline phase from {current.value} to {target.value}")
        self.write(target)
        return current
