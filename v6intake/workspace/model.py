# v6intake/workspace/model.py
import logging
import pickle
from pathlib import Path
from typing import Union

from v6intake.config import Workspace
from v6intake.core.errors import FormatError, WorkspaceError
from v6intake.core.models import StatisticalModel

logger = logging.getLogger(__name__)

MODEL_SUFFIX = ".model"


def save_model(model: StatisticalModel, path: Union[str, Path]) -> None:
    path = Path(path)
    try:
        with open(path, "wb") as f:
            pickle.dump(model, f)
    except OSError as err:
        logger.error("Error thrown when saving model '%s' to file '%s': %s", model.name, path, err)
        raise WorkspaceError(f"Could not save model '{model.name}'", cause=err, filename=str(path)) from err


def load_model(path: Union[str, Path]) -> StatisticalModel:
    path = Path(path)
    try:
        with open(path, "rb") as f:
            model = pickle.load(f)
    except OSError as err:
        raise WorkspaceError("Could not read model file", cause=err, filename=str(path)) from err
    except Exception as err:
        # corrupt pickles surface as anything from UnpicklingError to ValueError or ImportError
        raise FormatError(f"Model file '{path}' is corrupt: {err}", path=str(path)) from err
    if not isinstance(model, StatisticalModel):
        raise FormatError(f"Model file '{path}' holds a {type(model).__name__}, not a StatisticalModel", path=str(path))
    return model


class ModelBootstrap:
    """Writes the empty model that a fresh scan campaign starts from."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def bootstrap(self, name: str) -> Path:
        logger.info("Now creating a blank statistical model.")
        model = StatisticalModel(name=name)
        self.workspace.ensure()
        output_path = Workspace.timed_file_path(self.workspace.model_dir, MODEL_SUFFIX)
        logger.info("Writing blank statistical model with name '%s' to file '%s'.", model.name, output_path)
        save_model(model, output_path)
        return output_path
