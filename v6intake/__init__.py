# v6intake/__init__.py
from .config import IntakeConfig, Workspace
from .confirm import AutoConfirmer, Confirmer, ScriptedConfirmer, TerminalConfirmer
from .core.errors import (
    ConfirmationDeclined,
    FormatError,
    IllegalTransition,
    InsufficientAddresses,
    IntakeError,
    WorkspaceError,
)
from .pipeline import IntakePipeline, IntakeState
from .workspace.state import PhaseStateStore, PipelinePhase

__version__ = "0.1.0"

__all__ = [
    "AutoConfirmer",
    "ConfirmationDeclined",
    "Confirmer",
    "FormatError",
    "IllegalTransition",
    "InsufficientAddresses",
    "IntakeConfig",
    "IntakeError",
    "IntakePipeline",
    "IntakeState",
    "PhaseStateStore",
    "PipelinePhase",
    "ScriptedConfirmer",
    "TerminalConfirmer",
    "Workspace",
    "WorkspaceError",
]
