"""pypstree - command line entry point."""

import argparse
import logging
import os
import sys
from collections.abc import Iterable, Sequence
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pypstree.collector import read_processes
from pypstree.config import Config, Graphics, TreeChars, default_graphics, tree_chars_for
from pypstree.errors import PstreeError
from pypstree.models import NO_INDEX, ProcessStore
from pypstree.render import render_forest
from pypstree.terminal import detect_columns
from pypstree.tree import build_tree, drop_unselected, find_root_pid, mark_processes
from pypstree.users import validate_owner

__version__ = "1.0.0"

logger = logging.getLogger("pypstree")

# Diagnostics go to stderr, the tree goes to stdout
console = Console(stderr=True)


def setup_logging(debug: bool = False) -> None:
    """Send log records to stderr through rich."""
    handler = RichHandler(console=console, show_time=False, show_path=debug)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        prog="pypstree",
        description=(
            "Show running processes as a tree. The tree is rooted at each pid "
            "given, or at init if none is given. A non-numeric target shows "
            "the branches whose command line contains it."
        ),
    )
    parser.add_argument("targets", nargs="*", metavar="pid|string", help="pid to start from or text to search for")
    parser.add_argument("-a", "--all", dest="show_all", action="store_true", help="show all processes")
    parser.add_argument("-u", "--user", dest="owner", help="show only branches containing processes of USER")
    parser.add_argument(
        "-U", "--no-root", dest="exclude_root", action="store_true",
        help="don't show branches containing only root processes",
    )
    parser.add_argument(
        "-l", "--level", dest="max_depth", type=int, default=100,
        help="print tree to N levels deep (negative for no limit)",
    )
    parser.add_argument("-w", "--wide", action="store_true", help="wide output, not truncated to window width")
    parser.add_argument(
        "-g", "--graphics", type=int, default=None,
        help="graphics chars (0=ASCII, 1=IBM-850, 2=VT100, 3=UTF-8)",
    )
    parser.add_argument("-i", "--input", dest="source", help="read 'ps -eo uid,pid,ppid,pgid,args' output from FILE (- for stdin)")
    parser.add_argument("-d", "--debug", action="store_true", help="print debugging info to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Turn parsed arguments into a Config."""
    graphics = default_graphics() if args.graphics is None else args.graphics
    tree_chars_for(graphics)

    config = Config(
        show_all=args.show_all,
        owner=args.owner,
        exclude_root=args.exclude_root,
        max_depth=args.max_depth,
        graphics=Graphics(graphics),
        wide=args.wide,
        debug=args.debug,
    )
    if config.show_all:
        config.owner = None
    return config


def resolve_targets(targets: Sequence[str], store: ProcessStore, config: Config) -> None:
    """
    Sort command line targets into pid and substring filters.

    A number is a pid filter only if some record has that pid, otherwise it
    is searched for as text like any other target. With no targets and no
    filter options the tree of the parent process is shown.
    """
    for target in targets:
        try:
            pid = int(target)
        except ValueError:
            config.search_texts.append(target)
            continue
        if store.index_of(pid) == NO_INDEX:
            logger.debug("pid %d not found, searching for %r instead", pid, target)
            config.search_texts.append(target)
        else:
            config.search_pids.append(pid)

    if targets or config.show_all or config.owner or config.exclude_root:
        return

    parent_pid = os.getppid()
    if store.index_of(parent_pid) != NO_INDEX:
        config.search_pids.append(parent_pid)


def root_indices(store: ProcessStore, config: Config) -> list[int]:
    """Return the store indices to start rendering from."""
    if config.search_pids:
        return [store.index_of(pid) for pid in dict.fromkeys(config.search_pids)]
    return [store.index_of(find_root_pid(store))]


def dump_store(store: ProcessStore, title: str, selected_only: bool = False) -> None:
    """Print the store links as a table when debugging."""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    table = Table(title=title, header_style="bold magenta")
    for header in ("idx", "parentIdx", "childIdx", "PID", "PPID", "PROCESS"):
        table.add_column(header)

    for index, record in enumerate(store):
        if selected_only and not record.selected:
            continue
        table.add_row(
            str(index),
            str(record.parent_index),
            str(record.child_index),
            str(record.pid),
            str(record.ppid),
            record.command_line,
        )
    console.print(table)


def _encode(text: str, encoding: str) -> bytes:
    # psutil keeps undecodable argv bytes as lone surrogates
    try:
        return text.encode(encoding, errors="surrogateescape")
    except UnicodeEncodeError:
        return text.encode(encoding, errors="replace")


def write_lines(lines: Iterable[str], chars: TreeChars, stream: TextIO | None = None) -> None:
    """Write the init string and the tree lines."""
    if stream is None:
        stream = sys.stdout

    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        stream.write(chars.init)
        for line in lines:
            stream.write(line + "\n")
        return

    encoding = chars.encoding or stream.encoding or "utf-8"
    stream.flush()
    buffer.write(_encode(chars.init, encoding))
    for line in lines:
        buffer.write(_encode(line + "\n", encoding))
    buffer.flush()


def run(args: argparse.Namespace) -> int:
    """Run the pipeline for parsed arguments and return the exit status."""
    config = config_from_args(args)
    if config.owner:
        validate_owner(config.owner)

    try:
        records = read_processes(args.source)
    except OSError as exc:
        logger.error("cannot read processes: %s", exc)
        return 1

    logger.debug("nProcs = %d", len(records))
    if not records:
        logger.warning("no processes read")
        return 0

    store = ProcessStore(records)
    resolve_targets(args.targets, store, config)
    config.columns = detect_columns(config)

    build_tree(store)
    dump_store(store, "tree")
    mark_processes(store, config)
    dump_store(store, "marked", selected_only=True)
    drop_unselected(store)
    dump_store(store, "pruned", selected_only=True)

    roots = root_indices(store, config)
    write_lines(render_forest(store, config, roots), config.tree_chars)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for pypstree."""
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        return run(args)
    except PstreeError as exc:
        logger.error("pypstree: %s", exc)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
