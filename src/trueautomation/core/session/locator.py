import logging
import shutil
from typing import Optional

from .constants import TRUEAUTOMATION_EXE
from .errors import ExecutableNotFoundError

logger = logging.getLogger(__name__)


def locate(explicit_path: Optional[str] = None) -> str:
    """
    Returns the path of the trueautomation executable.

    An explicit path is returned unchanged without checking that it exists.
    Otherwise PATH is searched, and a missing executable is fatal.
    """
    if explicit_path:
        logger.debug(f"Using configured trueautomation executable: {explicit_path}")
        return str(explicit_path)

    found = shutil.which(TRUEAUTOMATION_EXE)
    if not found:
        raise ExecutableNotFoundError(
            "The TrueAutomation.IO executable can not be found. Please install TrueAutomation.IO client"
        )
    logger.debug(f"Found trueautomation executable at: {found}")
    return found
