"""Data models for pypstree."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

NO_INDEX = -1


@dataclass(slots=True)
class ProcessRecord:
    """A process as read from the system, plus its position in the tree."""

    pid: int
    ppid: int
    pgid: int
    uid: int
    owner: str
    command_line: str
    threads: int = 1

    # Tree shape, filled in by pypstree.tree
    parent_index: int = NO_INDEX
    child_index: int = NO_INDEX
    sibling_index: int = NO_INDEX
    selected: bool = False

    @property
    def is_group_leader(self) -> bool:
        """True when the process leads its own process group."""
        return self.pid == self.pgid


class ProcessStore:
    """
    Flat, fixed-order collection of process records.

    All tree links are indices into this store. Records are never reordered
    or removed once loaded.
    """

    def __init__(self, records: Iterable[ProcessRecord] = ()) -> None:
        self._records: list[ProcessRecord] = list(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> ProcessRecord:
        return self._records[index]

    def index_of(self, pid: int) -> int:
        """
        Return the index of the last record with the given PID.

        Searching backward makes the most recently listed record win when
        a PID was reused.
        """
        for index in range(len(self._records) - 1, -1, -1):
            if self._records[index].pid == pid:
                return index
        return NO_INDEX

    def reset(self) -> None:
        """Clear all tree links and selection flags."""
        for record in self._records:
            record.parent_index = NO_INDEX
            record.child_index = NO_INDEX
            record.sibling_index = NO_INDEX
            record.selected = False
