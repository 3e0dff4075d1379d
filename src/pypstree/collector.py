"""Process enumeration for pypstree."""

import io
import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path

import psutil

from pypstree.models import ProcessRecord
from pypstree.users import lookup_owner

logger = logging.getLogger(__name__)

STDIN_SOURCE = "-"


def _process_group(pid: int) -> int:
    try:
        return os.getpgid(pid)
    except (OSError, AttributeError):
        return 0


def collect_processes() -> list[ProcessRecord]:
    """
    Collect records for all running processes.

    Uses psutil.process_iter() with the oneshot() context manager.
    Processes that vanish or cannot be read are skipped.
    """
    records: list[ProcessRecord] = []

    attrs = ["pid", "ppid", "name", "username", "uids", "num_threads", "cmdline"]

    for proc in psutil.process_iter(attrs=attrs):
        try:
            with proc.oneshot():
                info = proc.info

                cmdline = info.get("cmdline") or []
                command_line = " ".join(cmdline) if cmdline else info.get("name") or ""

                uids = info.get("uids")
                uid = uids.real if uids else -1
                owner = info.get("username") or (lookup_owner(uid) if uid >= 0 else "?")

                record = ProcessRecord(
                    pid=info["pid"],
                    ppid=info.get("ppid") or 0,
                    pgid=_process_group(info["pid"]),
                    uid=uid,
                    owner=owner,
                    command_line=command_line,
                    threads=max(info.get("num_threads") or 1, 1),
                )
                records.append(record)

        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue

    logger.debug("collected %d processes", len(records))
    return records


def parse_ps_line(line: str) -> ProcessRecord | None:
    """
    Parse one line of ``ps -eo uid,pid,ppid,pgid,args`` output.

    A non-numeric first column is taken to be the owner name itself, as
    printed by ``ps -o user``. Returns None for lines that cannot be parsed.
    """
    fields = line.split(None, 4)
    if len(fields) < 4:
        return None

    try:
        pid = int(fields[1])
        ppid = int(fields[2])
        pgid = int(fields[3])
    except ValueError:
        return None

    try:
        uid = int(fields[0])
        owner = lookup_owner(uid)
    except ValueError:
        uid = -1
        owner = fields[0]

    command_line = fields[4].strip() if len(fields) > 4 else ""
    return ProcessRecord(
        pid=pid,
        ppid=ppid,
        pgid=pgid,
        uid=uid,
        owner=owner,
        command_line=command_line,
    )


def parse_ps_output(lines: Iterable[str]) -> list[ProcessRecord]:
    """Parse ``ps`` output, skipping the header and malformed lines."""
    records: list[ProcessRecord] = []
    iterator = iter(lines)
    next(iterator, None)  # header

    for number, line in enumerate(iterator, start=2):
        if not line.strip():
            continue
        record = parse_ps_line(line)
        if record is None:
            logger.debug("skipping malformed line %d: %r", number, line)
            continue
        records.append(record)

    return records


def _read_stdin() -> list[ProcessRecord]:
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return parse_ps_output(sys.stdin)

    stream = io.TextIOWrapper(buffer, encoding="utf-8", errors="replace")
    try:
        return parse_ps_output(stream)
    finally:
        # Leave sys.stdin usable
        stream.detach()


def read_processes(source: str | None = None) -> list[ProcessRecord]:
    """
    Read process records.

    Args:
        source: Path to a file holding ``ps`` output, ``-`` for stdin, or
            None to enumerate the running system.
    """
    if source is None:
        return collect_processes()
    if source == STDIN_SOURCE:
        return _read_stdin()
    with Path(source).open(encoding="utf-8", errors="replace") as handle:
        return parse_ps_output(handle)
