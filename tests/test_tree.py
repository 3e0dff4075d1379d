"""Tests for tree building, selection and pruning."""

import pytest
from conftest import make_record, make_store

from pypstree.config import Config
from pypstree.errors import NoRootError
from pypstree.models import NO_INDEX, ProcessStore
from pypstree.tree import (
    build_tree,
    drop_unselected,
    find_root_pid,
    mark_children,
    mark_processes,
    matches,
)


def children_of(store: ProcessStore, index: int) -> list[int]:
    """Follow the child/sibling chain of a record."""
    result = []
    child = store[index].child_index
    while child != NO_INDEX:
        result.append(child)
        child = store[child].sibling_index
    return result


def links(store: ProcessStore) -> list[tuple[int, int, int]]:
    """Snapshot the tree links of every record."""
    return [(r.parent_index, r.child_index, r.sibling_index) for r in store]


def selected_pids(store: ProcessStore) -> set[int]:
    return {r.pid for r in store if r.selected}


class TestBuildTree:
    """Tests for build_tree."""

    def test_parent_indices_with_arbitrary_order(self):
        """Test every record points at the store slot of its parent."""
        store = make_store([(4, 2), (1, 0), (3, 1), (6, 3), (2, 1), (5, 2)])
        build_tree(store)

        for record in store:
            parent_slot = store.index_of(record.ppid)
            if parent_slot == NO_INDEX:
                assert record.parent_index == NO_INDEX
            else:
                assert record.parent_index == parent_slot
                assert store[record.parent_index].pid == record.ppid

    def test_children_are_exactly_the_records_with_that_ppid(self):
        """Test the sibling chain holds exactly a record's children."""
        store = make_store([(4, 2), (1, 0), (3, 1), (6, 3), (2, 1), (5, 2)])
        build_tree(store)

        for index, record in enumerate(store):
            expected = {i for i, r in enumerate(store) if r.ppid == record.pid and i != index}
            assert set(children_of(store, index)) == expected

    def test_children_in_discovery_order(self):
        """Test later records are appended to the end of the sibling chain."""
        store = make_store([(1, 0), (30, 1), (20, 1), (10, 1)])
        build_tree(store)

        assert children_of(store, 0) == [1, 2, 3]

    def test_missing_parent_is_root(self):
        """Test a record whose parent is not listed stays unlinked."""
        store = make_store([(1, 0), (50, 40)])
        build_tree(store)

        assert store[1].parent_index == NO_INDEX
        assert children_of(store, 0) == []

    def test_self_parented_is_root(self):
        """Test a record that is its own parent is not its own child."""
        store = make_store([(0, 0), (1, 0)])
        build_tree(store)

        assert store[0].parent_index == NO_INDEX
        assert children_of(store, 0) == [1]
        assert store[1].parent_index == 0

    def test_pid_reuse_attaches_to_later_record(self):
        """Test that a child attaches to the higher-index of two records sharing a pid."""
        store = make_store([(5, 1), (1, 0), (5, 1), (9, 5)])
        build_tree(store)

        assert store[3].parent_index == 2
        assert children_of(store, 2) == [3]
        assert children_of(store, 0) == []

    def test_empty_store(self):
        """Test building an empty store is a no-op."""
        store = ProcessStore()
        build_tree(store)

        assert len(store) == 0


@pytest.fixture
def deep_store() -> ProcessStore:
    """
    1 -> 2 -> 3 -> 4 -> 7
    1 -> 5 -> 6
    """
    store = ProcessStore(
        [
            make_record(1, 0, command_line="/sbin/init"),
            make_record(2, 1, command_line="sshd"),
            make_record(5, 1, command_line="cron", owner="alice"),
            make_record(3, 2, command_line="bash --needle"),
            make_record(6, 5, command_line="backup.sh"),
            make_record(4, 3, command_line="vim"),
            make_record(7, 4, command_line="python"),
        ]
    )
    build_tree(store)
    return store


class TestMatches:
    """Tests for the selection criteria."""

    def test_no_criteria_matches_nothing(self, config):
        """Test an empty config selects nothing."""
        assert not matches(make_record(1, 0), config)

    def test_owner(self, config):
        """Test the owner criterion."""
        config.owner = "alice"
        assert matches(make_record(1, 0, owner="alice"), config)
        assert not matches(make_record(2, 0, owner="bob"), config)

    def test_exclude_root(self, config):
        """Test the non-root criterion."""
        config.exclude_root = True
        assert matches(make_record(1, 0, owner="bob"), config)
        assert not matches(make_record(2, 0, owner="root"), config)

    def test_pid(self, config):
        """Test the pid criterion."""
        config.search_pids = [42]
        assert matches(make_record(42, 1), config)
        assert not matches(make_record(43, 1), config)

    def test_substring(self, config):
        """Test the substring criterion."""
        config.search_texts = ["needle"]
        assert matches(make_record(1, 0, command_line="haystack needle hay"), config)
        assert not matches(make_record(2, 0, command_line="haystack"), config)

    def test_substring_skips_own_process(self, config):
        """Test a search never matches the searching process itself."""
        config.search_texts = ["needle"]
        own = make_record(config.self_pid, 1, command_line="pypstree needle")
        assert not matches(own, config)

    def test_own_process_still_matches_pid(self, config):
        """Test the own-process exclusion only applies to text searches."""
        config.search_pids = [config.self_pid]
        assert matches(make_record(config.self_pid, 1), config)


class TestMarkProcesses:
    """Tests for mark_processes and its propagation."""

    def test_show_all(self, deep_store, config):
        """Test show_all selects every record."""
        config.show_all = True
        mark_processes(deep_store, config)

        assert all(r.selected for r in deep_store)

    def test_substring_marks_ancestors_and_descendants(self, deep_store, config):
        """Test a nested match selects its ancestors and subtree only."""
        config.search_texts = ["needle"]
        mark_processes(deep_store, config)

        assert selected_pids(deep_store) == {1, 2, 3, 4, 7}

    def test_owner_marks_branch(self, deep_store, config):
        """Test an owner match selects its branch."""
        config.owner = "alice"
        mark_processes(deep_store, config)

        assert selected_pids(deep_store) == {1, 5, 6}

    def test_criteria_are_combined(self, deep_store, config):
        """Test criteria are ORed together."""
        config.owner = "alice"
        config.search_pids = [4]
        mark_processes(deep_store, config)

        assert selected_pids(deep_store) == {1, 2, 3, 4, 5, 6, 7}

    def test_no_match_selects_nothing(self, deep_store, config):
        """Test nothing is selected when nothing matches."""
        config.search_texts = ["absent"]
        mark_processes(deep_store, config)

        assert selected_pids(deep_store) == set()

    def test_marking_is_idempotent(self, deep_store, config):
        """Test marking twice gives the same selection."""
        config.search_texts = ["needle"]
        mark_processes(deep_store, config)
        first = selected_pids(deep_store)
        mark_processes(deep_store, config)

        assert selected_pids(deep_store) == first

    def test_mark_children_handles_deep_chains(self):
        """Test descendant marking does not recurse per level."""
        depth = 2000
        store = ProcessStore(make_record(pid, pid - 1) for pid in range(1, depth + 1))
        build_tree(store)

        mark_children(store, 0)

        assert all(r.selected for r in store)


class TestDropUnselected:
    """Tests for drop_unselected."""

    def test_links_skip_unselected(self, deep_store, config):
        """Test pruned links only reach selected records."""
        config.search_texts = ["needle"]
        mark_processes(deep_store, config)
        drop_unselected(deep_store)

        init = deep_store[0]
        assert deep_store[init.child_index].pid == 2
        # pid 5 was the next sibling of pid 2
        assert deep_store[init.child_index].sibling_index == NO_INDEX

    def test_first_child_advances_past_unselected(self, config):
        """Test an unselected first child is skipped."""
        store = make_store([(1, 0), (5, 1), (2, 1), (3, 2)])
        build_tree(store)
        config.search_pids = [3]
        mark_processes(store, config)
        drop_unselected(store)

        assert store[0].child_index == 2
        assert children_of(store, 0) == [2]

    def test_unselected_links_untouched(self, deep_store, config):
        """Test records that are not selected keep their links."""
        config.search_texts = ["needle"]
        mark_processes(deep_store, config)
        before = links(deep_store)
        drop_unselected(deep_store)
        after = links(deep_store)

        for index, record in enumerate(deep_store):
            if not record.selected:
                assert before[index] == after[index]

    def test_pruning_is_idempotent(self, deep_store, config):
        """Test pruning an already pruned store changes nothing."""
        config.owner = "alice"
        mark_processes(deep_store, config)
        drop_unselected(deep_store)
        once = links(deep_store)
        drop_unselected(deep_store)

        assert links(deep_store) == once

    def test_show_all_keeps_structure(self, deep_store, config):
        """Test nothing is pruned when everything is selected."""
        before = links(deep_store)
        config.show_all = True
        mark_processes(deep_store, config)
        drop_unselected(deep_store)

        assert links(deep_store) == before


class TestFindRootPid:
    """Tests for find_root_pid."""

    def test_pid_one_wins_over_ppid_zero(self):
        """Test pid 1 is chosen even when a ppid 0 record comes first."""
        assert find_root_pid(make_store([(7, 0), (1, 0)])) == 1

    def test_ppid_zero(self):
        """Test a record with parent 0 comes next."""
        assert find_root_pid(make_store([(8, 1), (7, 0)])) == 7

    def test_ppid_one(self):
        """Test a record with parent 1 comes before a self-parented one."""
        assert find_root_pid(make_store([(9, 9), (8, 1)])) == 8

    def test_self_parented(self):
        """Test a self-parented record is the last resort."""
        assert find_root_pid(make_store([(10, 4), (9, 9)])) == 9

    def test_first_match_in_store_order(self):
        """Test the first qualifying record in store order is picked."""
        assert find_root_pid(make_store([(12, 0), (11, 0)])) == 12

    def test_no_root(self):
        """Test an unusable process table is fatal."""
        with pytest.raises(NoRootError):
            find_root_pid(make_store([(10, 4), (11, 10)]))

    def test_empty_store(self):
        """Test an empty store has no root."""
        with pytest.raises(NoRootError):
            find_root_pid(ProcessStore())
