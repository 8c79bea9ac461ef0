# v6intake/pipeline.py
"""
The intake pipeline: turns an operator-supplied address file into the
starting point of a fresh scan campaign.

Order of operations (nothing on disk changes before step 6):

  1. confirm that prior state may be wiped
  2. load + decode the input file
  3. remove duplicates
  4. remove high entropy addresses
  5. if too few addresses remain, confirm again
  6. delete every file in the workspace
  7. write an empty model
  8. write the surviving addresses as ping results and append them to the
     running output address file
  9. advance the phase file

A refusal at 1 or 5 ends the run in ABORTED. Any other error ends it in FAILED
and is re-raised; nothing is retried or rolled back.
"""
import logging
from enum import Enum
from ipaddress import IPv6Address
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Union

from v6intake.codec import decode
from v6intake.config import IntakeConfig, Workspace
from v6intake.confirm import Confirmer
from v6intake.core.errors import ConfirmationDeclined, IllegalTransition, InsufficientAddresses, WorkspaceError
from v6intake.core.metrics import MetricsCollector
from v6intake.core.models import AddressSet, IntakeSummary
from v6intake.core.registry import AddressEncoding, get_codec, resolve_encoding
from v6intake.stages.dedup import Deduplicator
from v6intake.stages.entropy import EntropyFilter, EntropyFunction
from v6intake.workspace.model import ModelBootstrap
from v6intake.workspace.reset import reset_workspace
from v6intake.workspace.state import INTAKE_PHASE, PhaseStateStore
from v6intake.workspace.writer import ResultWriter

logger = logging.getLogger(__name__)


class IntakeState(Enum):
    CONFIRMING = "confirming"
    LOADING = "loading"
    DEDUPLICATING = "deduplicating"
    FILTERING = "filtering"
    THRESHOLD_CHECK = "threshold_check"
    RESETTING_WORKSPACE = "resetting_workspace"
    BOOTSTRAPPING = "bootstrapping"
    WRITING = "writing"
    ADVANCING_STATE = "advancing_state"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


TERMINAL_STATES = frozenset({IntakeState.DONE, IntakeState.ABORTED, IntakeState.FAILED})

_FAIL = IntakeState.FAILED
_ABORT = IntakeState.ABORTED

INTAKE_TRANSITIONS: Dict[IntakeState, FrozenSet[IntakeState]] = {
    IntakeState.CONFIRMING: frozenset({IntakeState.LOADING, _ABORT, _FAIL}),
    IntakeState.LOADING: frozenset({IntakeState.DEDUPLICATING, _FAIL}),
    IntakeState.DEDUPLICATING: frozenset({IntakeState.FILTERING, _FAIL}),
    IntakeState.FILTERING: frozenset({IntakeState.THRESHOLD_CHECK, _FAIL}),
    IntakeState.THRESHOLD_CHECK: frozenset({IntakeState.RESETTING_WORKSPACE, _ABORT, _FAIL}),
    IntakeState.RESETTING_WORKSPACE: frozenset({IntakeState.BOOTSTRAPPING, _FAIL}),
    IntakeState.BOOTSTRAPPING: frozenset({IntakeState.WRITING, _FAIL}),
    IntakeState.WRITING: frozenset({IntakeState.ADVANCING_STATE, _FAIL}),
    IntakeState.ADVANCING_STATE: frozenset({IntakeState.DONE, _FAIL}),
    IntakeState.DONE: frozenset(),
    IntakeState.ABORTED: frozenset(),
    IntakeState.FAILED: frozenset(),
}


class IntakePipeline:
    """
    Runs one intake over a workspace.

    The confirmer decides both approval gates; pass a ScriptedConfirmer or
    AutoConfirmer for non-interactive use.
    """

    def __init__(
        self,
        config: IntakeConfig,
        confirmer: Confirmer,
        metrics: Optional[MetricsCollector] = None,
        writer: Optional[ResultWriter] = None,
        entropy_fn: Optional[EntropyFunction] = None,
        progress_bars_enabled: bool = False,
    ):
        self.config = config
        self.confirmer = confirmer
        self.metrics = metrics or MetricsCollector()
        self.writer = writer or ResultWriter(self.metrics)
        self.workspace = Workspace(config)
        self.state_store = PhaseStateStore(self.workspace.state_file)
        self.deduplicator = Deduplicator(
            emit_frequency=config.emit_frequency,
            progress_bars_enabled=progress_bars_enabled,
        )
        self.entropy_filter = EntropyFilter(
            bit_length=config.entropy_bit_length,
            threshold=config.entropy_threshold,
            entropy_fn=entropy_fn,
            emit_frequency=config.emit_frequency,
            progress_bars_enabled=progress_bars_enabled,
        )
        self.state = IntakeState.CONFIRMING
        self.history: List[IntakeState] = [self.state]

    def _enter(self, state: IntakeState) -> None:
        if state not in INTAKE_TRANSITIONS[self.state]:
            raise IllegalTransition(f"Intake cannot move from {self.state.value} to {state.value}")
        logger.debug("Intake state %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def run(self, input_path: Union[str, Path], encoding: Union[str, AddressEncoding] = AddressEncoding.TEXT) -> IntakeSummary:
        input_path = Path(input_path)
        input_encoding = resolve_encoding(encoding)
        self.state = IntakeState.CONFIRMING
        self.history = [self.state]

        try:
            with self.metrics.timer("intake.run.time"):
                return self._run(input_path, input_encoding)
        except ConfirmationDeclined as err:
            logger.warning("Intake aborted by operator: %s", err)
            self._enter(IntakeState.ABORTED)
            raise
        except Exception:
            if self.state not in TERMINAL_STATES:
                self._enter(IntakeState.FAILED)
            raise

    def _run(self, input_path: Path, input_encoding: AddressEncoding) -> IntakeSummary:
        self.confirm_clean_up(input_path)

        self._enter(IntakeState.LOADING)
        loaded = AddressSet(
            name=str(input_path),
            description=f"Addresses loaded from {input_encoding.value} file",
            addresses=decode(input_path, input_encoding),
        )
        self.metrics.increment("intake.addresses.loaded", len(loaded))

        self._enter(IntakeState.DEDUPLICATING)
        unique = self.deduplicator(loaded)
        self.metrics.increment("intake.addresses.unique", len(unique))

        self._enter(IntakeState.FILTERING)
        surviving = self.entropy_filter(unique)
        self.metrics.increment("intake.addresses.surviving", len(surviving))

        self._enter(IntakeState.THRESHOLD_CHECK)
        # read before the reset below deletes the state file
        previous_phase = self.state_store.read()
        if len(surviving) < self.config.min_addresses:
            self.confirm_too_few(len(surviving))

        self._enter(IntakeState.RESETTING_WORKSPACE)
        files_deleted = reset_workspace(self.workspace.base_dir)

        self._enter(IntakeState.BOOTSTRAPPING)
        model_path = ModelBootstrap(self.workspace).bootstrap(f"Model from {input_path}")

        self._enter(IntakeState.WRITING)
        results_path = self.write_new_addresses(surviving.addresses)
        output_path = self.update_address_file(surviving.addresses)

        self._enter(IntakeState.ADVANCING_STATE)
        self.state_store.advance(INTAKE_PHASE)

        self._enter(IntakeState.DONE)
        logger.info("Intake of '%s' complete. Pipeline phase is now %s.", input_path, INTAKE_PHASE.value)
        return IntakeSummary(
            input_path=str(input_path),
            input_encoding=input_encoding.value,
            loaded=len(loaded),
            unique=len(unique),
            surviving=len(surviving),
            files_deleted=files_deleted,
            model_path=str(model_path),
            results_path=str(results_path),
            output_path=str(output_path),
            previous_phase=previous_phase.value,
            phase=INTAKE_PHASE.value,
        )

    def confirm_clean_up(self, input_path: Path) -> None:
        prompt = (
            f"Provided input file at path '{input_path}'. Starting with an input file requires "
            f"cleaning up all existing state from previous runs. Continue?"
        )
        abort_message = (
            f"Exiting. Please backup all existing state (all directories under "
            f"'{self.workspace.base_dir}') and try again."
        )
        self.confirmer.confirm(prompt, abort_message)

    def confirm_too_few(self, count: int) -> None:
        minimum = self.config.min_addresses
        prompt = (
            f"The resulting list of addresses is only {count} long, and we recommend having "
            f"at least {minimum} to get good results. Continue?"
        )
        abort_message = "Exiting. Please add more addresses to your input list and try again."
        try:
            self.confirmer.confirm(prompt, abort_message)
        except ConfirmationDeclined as err:
            raise InsufficientAddresses(str(err), count=count, minimum=minimum) from err

    def write_new_addresses(self, addresses: List[IPv6Address]) -> Path:
        codec = get_codec(self.config.output_encoding)
        output_path = Workspace.timed_file_path(self.workspace.ping_result_dir, codec.file_suffix)
        logger.info("Writing %d IP addresses to file at path '%s'.", len(addresses), output_path)
        self.writer.append(addresses, output_path, codec.encoding)
        logger.info("Successfully wrote IP address list to '%s'.", output_path)
        return output_path

    def update_address_file(self, addresses: List[IPv6Address]) -> Path:
        output_path = self.workspace.output_file
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise WorkspaceError(
                f"Could not create directory for output file '{output_path}'", cause=err, filename=str(output_path)
            ) from err
        self.writer.append(addresses, output_path, self.config.output_encoding)
        return output_path
