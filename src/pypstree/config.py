"""Runtime configuration and line-drawing character sets."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum

from pypstree.errors import InvalidGraphicsError

MAX_LINE = 8192
ROOT_OWNER = "root"


class Graphics(IntEnum):
    """Line-drawing character set variants."""

    ASCII = 0
    PC850 = 1
    VT100 = 2
    UTF8 = 3


@dataclass(slots=True, frozen=True)
class TreeChars:
    """Glyphs used to draw one tree line."""

    s2: str  # between branch and pid
    p: str  # same, when the process has children
    pgl: str  # process group leader
    npgl: str  # not a process group leader
    bar_c: str  # branch to a child with later siblings
    bar: str  # vertical continuation
    bar_l: str  # branch to the last child
    sg: str = ""  # enter graphics mode
    eg: str = ""  # exit graphics mode
    init: str = ""  # written once before the first line
    encoding: str | None = None  # output encoding, None for the stream default


TREE_CHARS: dict[Graphics, TreeChars] = {
    Graphics.ASCII: TreeChars("--", "-+", "=", "-", "|", "|", "\\"),
    # Code page 850 box characters, written as cp850 bytes
    Graphics.PC850: TreeChars("──", "─┬", "·", "─", "├", "│", "└", encoding="cp850"),
    Graphics.VT100: TreeChars("qq", "qw", "`", "q", "t", "x", "m", "\016", "\017", "\033(B\033)0"),
    Graphics.UTF8: TreeChars("──", "─┬", "=", "─", "├", "│", "└"),
}


def tree_chars_for(value: int) -> TreeChars:
    """Return the character set for a graphics selector."""
    try:
        return TREE_CHARS[Graphics(value)]
    except ValueError:
        raise InvalidGraphicsError(value) from None


def default_graphics(environ: Mapping[str, str] | None = None) -> Graphics:
    """Pick UTF-8 glyphs when the locale says so, ASCII otherwise."""
    if environ is None:
        environ = os.environ
    for key in ("LC_ALL", "LC_CTYPE", "LANG"):
        if "UTF-8" in environ.get(key, "").upper():
            return Graphics.UTF8
    return Graphics.ASCII


@dataclass(slots=True)
class Config:
    """Options shared by the tree builder, selector and renderer."""

    show_all: bool = False
    owner: str | None = None
    exclude_root: bool = False
    search_pids: list[int] = field(default_factory=list)
    search_texts: list[str] = field(default_factory=list)
    max_depth: int = 100
    columns: int = MAX_LINE - 1
    graphics: Graphics = Graphics.ASCII
    wide: bool = False
    debug: bool = False
    self_pid: int = field(default_factory=os.getpid)

    @property
    def tree_chars(self) -> TreeChars:
        """Character set for the configured graphics variant."""
        return tree_chars_for(self.graphics)
