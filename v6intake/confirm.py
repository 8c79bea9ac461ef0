# v6intake/confirm.py
import logging
from typing import Iterable, List, Optional, Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from v6intake.core.errors import ConfirmationDeclined

logger = logging.getLogger(__name__)


class Confirmer(Protocol):
    def confirm(self, prompt: str, abort_message: str) -> None:
        """Returns on approval; raises ConfirmationDeclined(abort_message) otherwise."""
        ...


class TerminalConfirmer:
    """Asks the operator on the terminal. Anything but an explicit yes declines."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def confirm(self, prompt: str, abort_message: str) -> None:
        try:
            approved = Confirm.ask(escape(prompt), console=self.console, default=False)
        except (EOFError, KeyboardInterrupt):
            approved = False
        if not approved:
            raise ConfirmationDeclined(abort_message)


class AutoConfirmer:
    """Approves everything. Used for --yes / unattended runs."""

    def confirm(self, prompt: str, abort_message: str) -> None:
        logger.info("Auto-approving: %s", prompt)


class ScriptedConfirmer:
    """
    Replays a fixed list of answers and records each prompt it was shown.
    Running out of answers counts as declining.
    """

    def __init__(self, answers: Iterable[bool]):
        self._answers = list(answers)
        self.prompts: List[str] = []

    def confirm(self, prompt: str, abort_message: str) -> None:
        self.prompts.append(prompt)
        approved = self._answers.pop(0) if self._answers else False
        if not approved:
            raise ConfirmationDeclined(abort_message)
