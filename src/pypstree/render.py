"""Text rendering of a pruned process tree."""

from collections.abc import Iterable, Iterator

from pypstree.config import Config
from pypstree.models import NO_INDEX, ProcessRecord, ProcessStore


class TreeRenderer:
    """
    Render a process tree as lines of text.

    Walks the store depth-first from a root index, producing one line per
    selected record. The root of a walk is always shown, selected or not.
    Lines are cut to ``columns - 1`` characters and nodes at or below
    ``max_depth`` are left out. A negative ``max_depth`` means no limit.
    """

    def __init__(self, store: ProcessStore, config: Config) -> None:
        """
        Initialize the renderer.

        Args:
            store: Store that has been built, marked and pruned.
            config: Supplies max depth, column count and glyphs.
        """
        self._store = store
        self._config = config
        self._chars = config.tree_chars

    def format_line(self, record: ProcessRecord, prefix: str, is_root: bool, has_children: bool) -> str:
        """Build the text line for one record."""
        chars = self._chars

        if is_root:
            branch = ""
        elif record.sibling_index != NO_INDEX:
            branch = chars.bar_c
        else:
            branch = chars.bar_l

        parent_glyph = chars.p if has_children else chars.s2
        group_glyph = chars.pgl if record.is_group_leader else chars.npgl
        thread = f"[{record.threads}]" if record.threads > 1 else ""

        line = (
            f"{chars.sg}{prefix}{branch}{parent_glyph}{group_glyph}{chars.eg}"
            f" {record.pid:05d} {record.owner} {thread}{record.command_line}"
        )

        limit = self._config.columns - 1
        if len(line) > limit:
            line = line[: max(limit, 0)]
        return line

    def _children(self, index: int) -> list[int]:
        """Selected children of a record, in sibling-chain order."""
        children = []
        child = self._store[index].child_index
        while child != NO_INDEX:
            if self._store[child].selected:
                children.append(child)
            child = self._store[child].sibling_index
        return children

    def _child_prefix(self, record: ProcessRecord, prefix: str, is_root: bool) -> str:
        if is_root:
            return " "
        if record.sibling_index != NO_INDEX:
            return prefix + self._chars.bar + " "
        return prefix + "  "

    def render(self, root_index: int) -> Iterator[str]:
        """Yield the lines of the tree below ``root_index`` in pre-order."""
        max_depth = self._config.max_depth
        # (index, prefix, depth)
        stack = [(root_index, "", 0)]

        while stack:
            index, prefix, depth = stack.pop()
            if 0 <= max_depth <= depth:
                continue

            record = self._store[index]
            is_root = depth == 0
            children = self._children(index)

            yield self.format_line(record, prefix, is_root, bool(children))

            child_prefix = self._child_prefix(record, prefix, is_root)
            for child in reversed(children):
                stack.append((child, child_prefix, depth + 1))


def render_forest(store: ProcessStore, config: Config, root_indices: Iterable[int]) -> Iterator[str]:
    """Render one walk per root index, in the given order."""
    renderer = TreeRenderer(store, config)
    for root_index in root_indices:
        yield from renderer.render(root_index)
