"""Process tree construction, branch selection and pruning."""

import logging

from pypstree.config import ROOT_OWNER, Config
from pypstree.errors import NoRootError
from pypstree.models import NO_INDEX, ProcessRecord, ProcessStore

logger = logging.getLogger(__name__)


def build_tree(store: ProcessStore) -> None:
    """
    Link every record to its parent, children and siblings.

    Children are chained in store order. A record whose parent is missing, or
    which is its own parent, stays a root.
    """
    # Last child of each parent, so appending to a chain does not rescan it
    tails: dict[int, int] = {}

    for index, record in enumerate(store):
        parent_index = store.index_of(record.ppid)
        if parent_index == index or parent_index == NO_INDEX:
            continue

        record.parent_index = parent_index
        parent = store[parent_index]
        if parent.child_index == NO_INDEX:
            parent.child_index = index
        else:
            tail = tails.get(parent_index)
            if tail is None:
                tail = parent.child_index
                while store[tail].sibling_index != NO_INDEX:
                    tail = store[tail].sibling_index
            store[tail].sibling_index = index
        tails[parent_index] = index


def matches(record: ProcessRecord, config: Config) -> bool:
    """Check a record against the active selection criteria."""
    if config.owner and record.owner == config.owner:
        return True
    if config.exclude_root and record.owner != ROOT_OWNER:
        return True
    if record.pid in config.search_pids:
        return True
    if record.pid != config.self_pid:
        return any(text in record.command_line for text in config.search_texts)
    return False


def mark_children(store: ProcessStore, index: int) -> None:
    """Select a record and its whole subtree."""
    stack = [index]
    while stack:
        current = stack.pop()
        record = store[current]
        record.selected = True
        child = record.child_index
        while child != NO_INDEX:
            stack.append(child)
            child = store[child].sibling_index


def mark_ancestors(store: ProcessStore, index: int) -> None:
    """Select every ancestor of a record."""
    parent = store[index].parent_index
    while parent != NO_INDEX:
        store[parent].selected = True
        parent = store[parent].parent_index


def mark_processes(store: ProcessStore, config: Config) -> None:
    """Select the records to display under the configured criteria."""
    if config.show_all:
        for record in store:
            record.selected = True
        return

    for index, record in enumerate(store):
        if matches(record, config):
            logger.debug("pid %d matches, marking its branch", record.pid)
            mark_ancestors(store, index)
            mark_children(store, index)


def _next_selected(store: ProcessStore, index: int) -> int:
    while index != NO_INDEX and not store[index].selected:
        index = store[index].sibling_index
    return index


def drop_unselected(store: ProcessStore) -> None:
    """
    Unlink unselected records from the tree.

    Child and sibling links of selected records are moved forward past any
    unselected records. Links of unselected records are left alone, they are
    unreachable afterwards.
    """
    for record in store:
        if record.selected:
            record.child_index = _next_selected(store, record.child_index)
            record.sibling_index = _next_selected(store, record.sibling_index)


def find_root_pid(store: ProcessStore) -> int:
    """
    Pick the PID to start rendering from.

    Tries, in order: PID 1, a process with parent 0, a process with parent 1,
    a process that is its own parent.

    Raises:
        NoRootError: If no record qualifies.
    """
    checks = (
        lambda r: r.pid == 1,
        lambda r: r.ppid == 0,
        lambda r: r.ppid == 1,
        lambda r: r.pid == r.ppid,
    )
    for check in checks:
        for record in store:
            if check(record):
                return record.pid
    raise NoRootError()
