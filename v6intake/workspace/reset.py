# v6intake/workspace/reset.py
import logging
import os
from pathlib import Path
from typing import Union

from v6intake.core.errors import WorkspaceError

logger = logging.getLogger(__name__)


def reset_workspace(base_dir: Union[str, Path]) -> int:
    """
    Deletes every regular file below `base_dir`, recursively. Directories stay.

    Stops at the first file that cannot be removed and raises WorkspaceError.
    Files removed before that point are not restored, so after a failure the
    workspace must be treated as being in an unknown state.

    Returns:
        int: The number of files deleted.
    """
    base_dir = Path(base_dir)
    logger.info("Now deleting all regular files (recursively) starting in directory '%s'.", base_dir)
    if not base_dir.exists():
        logger.info("Directory '%s' does not exist. Nothing to delete.", base_dir)
        return 0

    def _walk_error(err: OSError) -> None:
        raise err

    deleted = 0
    try:
        for root, _dirs, files in os.walk(base_dir, onerror=_walk_error):
            for file_name in sorted(files):
                path = os.path.join(root, file_name)
                if os.path.islink(path) or not os.path.isfile(path):
                    continue
                logger.debug("Deleting '%s'.", path)
                os.remove(path)
                deleted += 1
    except OSError as err:
        logger.error("Error thrown when deleting files under directory '%s' after %d deletions: %s", base_dir, deleted, err)
        raise WorkspaceError(
            f"Failed to reset workspace '{base_dir}' after deleting {deleted} files",
            cause=err,
        ) from err

    logger.info("Successfully deleted %d files.", deleted)
    return deleted
