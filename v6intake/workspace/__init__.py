# v6intake/workspace/__init__.py
from .model import ModelBootstrap, load_model, save_model
from .reset import reset_workspace
from .state import INITIAL_PHASE, INTAKE_PHASE, TRANSITIONS, PhaseStateStore, PipelinePhase
from .writer import ResultWriter

__all__ = [
    "INITIAL_PHASE",
    "INTAKE_PHASE",
    "TRANSITIONS",
    "ModelBootstrap",
    "PhaseStateStore",
    "PipelinePhase",
    "ResultWriter",
    "load_model",
    "reset_workspace",
    "save_model",
]
