"""Shared fixtures for pypstree tests."""

import pytest

from pypstree.config import Config
from pypstree.models import ProcessRecord, ProcessStore


def make_record(pid: int, ppid: int, **kwargs) -> ProcessRecord:
    """Build a record with defaults for the fields a test does not care about."""
    fields = {"pgid": pid, "uid": 0, "owner": "root", "command_line": f"proc{pid}"}
    fields.update(kwargs)
    return ProcessRecord(pid=pid, ppid=ppid, **fields)


def make_store(pairs) -> ProcessStore:
    """Build a store from (pid, ppid) pairs."""
    return ProcessStore(make_record(pid, ppid) for pid, ppid in pairs)


@pytest.fixture
def config() -> Config:
    """A config that matches nothing, with a fake own pid."""
    return Config(self_pid=999999)
