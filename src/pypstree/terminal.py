"""Terminal width detection."""

import logging
import shutil

from pypstree.config import MAX_LINE, Config

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 80


def terminal_width(wide: bool = False) -> int:
    """Return the terminal width, or ``MAX_LINE - 1`` for wide output."""
    if wide:
        return MAX_LINE - 1
    return shutil.get_terminal_size(fallback=(DEFAULT_COLUMNS, 24)).columns


def detect_columns(config: Config) -> int:
    """
    Compute the column budget for rendered lines.

    The graphics mode escapes do not take screen space, so their length is
    added on top of the terminal width.
    """
    columns = terminal_width(config.wide)
    if columns == 0:
        columns = MAX_LINE - 1

    chars = config.tree_chars
    columns += len(chars.sg) + len(chars.eg)
    columns = min(columns, MAX_LINE - 1)

    logger.debug("columns: %d", columns)
    return columns
