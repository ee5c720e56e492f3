"""
Command-line interface for vocab-deck.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import load_settings
from .exceptions import (
    ConfigError,
    DatabaseError,
    DuplicateWordError,
    EntryNotFoundError,
    NoPendingRestoreError,
    SnapshotError,
    ValidationError,
)
from .models import Entry, RestoreMode, SaveStatus
from .session import StudySession


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the vocab-deck CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"\n  [CONFIG ERROR] {e}")
        return 1
    if args.db:
        settings.db_path = args.db

    level = "DEBUG" if args.verbose else settings.log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        session = StudySession.from_settings(settings)
    except DatabaseError as e:
        print(f"\n  [DATABASE ERROR] {e}")
        return 1

    with session:
        code = args.func(session, args)
        if session.flush() is SaveStatus.FAILED:
            print(f"\n  [SAVE FAILED] {session.writer.last_error}")
            return 1
    return code


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="vocab-deck",
        description="Vocabulary flashcards with fair random rounds and backups",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (vocab-deck)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file (default: ~/.vocab_deck/config.yaml)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        help="Database file (overrides settings)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # add command
    add_parser = subparsers.add_parser("add", help="Add a word")
    add_parser.add_argument("word", help="English word or phrase")
    add_parser.add_argument("pos", help="Part of speech, e.g. 'n.'")
    add_parser.add_argument("translation", help="Translation shown on the back")
    add_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Update the word if it already exists",
    )
    add_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    add_parser.set_defaults(func=cmd_add)

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Edit a word by id")
    edit_parser.add_argument("entry_id", help="Entry id (see 'list --ids')")
    edit_parser.add_argument("--word", help="New word")
    edit_parser.add_argument("--pos", help="New part of speech")
    edit_parser.add_argument("--translation", help="New translation")
    edit_parser.set_defaults(func=cmd_edit)

    # remove command
    remove_parser = subparsers.add_parser("remove", help="Remove a word by id")
    remove_parser.add_argument("entry_id", help="Entry id (see 'list --ids')")
    remove_parser.set_defaults(func=cmd_remove)

    # list command
    list_parser = subparsers.add_parser("list", help="List words")
    list_parser.add_argument(
        "query",
        nargs="?",
        default="",
        help="Filter by word or translation",
    )
    list_parser.add_argument(
        "--ids",
        action="store_true",
        help="Show entry ids",
    )
    list_parser.set_defaults(func=cmd_list)

    # study command
    study_parser = subparsers.add_parser("study", help="Study cards")
    study_parser.add_argument(
        "-n",
        type=int,
        default=None,
        help="Print N cards and exit instead of an interactive session",
    )
    study_parser.set_defaults(func=cmd_study)

    # export command
    export_parser = subparsers.add_parser("export", help="Export a backup")
    export_parser.add_argument(
        "--file",
        type=Path,
        metavar="DIR",
        help="Write a dated JSON file into DIR instead of printing a token",
    )
    export_parser.set_defaults(func=cmd_export)

    # restore command
    restore_parser = subparsers.add_parser("restore", help="Restore a backup")
    restore_parser.add_argument("token", nargs="?", help="Backup token")
    restore_parser.add_argument("--file", type=Path, help="JSON backup file")
    restore_parser.add_argument(
        "--mode",
        choices=[m.value for m in RestoreMode],
        default=RestoreMode.MERGE.value,
        help="merge (default) keeps your words; overwrite replaces them",
    )
    restore_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompts",
    )
    restore_parser.set_defaults(func=cmd_restore)

    # check command
    check_parser = subparsers.add_parser("check", help="Validate stored data")
    check_parser.set_defaults(func=cmd_check)

    return parser


def cmd_add(session: StudySession, args: argparse.Namespace) -> int:
    """Handle add command."""
    existing = session.find_word(args.word)
    try:
        if existing is None:
            entry = session.add_word(args.word, args.pos, args.translation)
            print(f"Added: {_format_entry(entry)}")
            return 0
        if not args.overwrite:
            print(f"\n  [ERROR] {existing.word!r} already exists (use --overwrite)")
            return 1
        if not args.yes and not _confirm(f"Overwrite {existing.word!r}?"):
            print("Aborted.")
            return 1
        entry, _ = session.upsert_word(args.word, args.pos, args.translation)
    except (ValidationError, DuplicateWordError) as e:
        print(f"\n  [ERROR] {e}")
        return 1
    print(f"Updated: {_format_entry(entry)}")
    return 0


def cmd_edit(session: StudySession, args: argparse.Namespace) -> int:
    """Handle edit command."""
    try:
        entry = session.edit_word(
            args.entry_id,
            word=args.word,
            pos=args.pos,
            translation=args.translation,
        )
    except (EntryNotFoundError, ValidationError, DuplicateWordError) as e:
        print(f"\n  [ERROR] {e}")
        return 1
    print(f"Saved: {_format_entry(entry)}")
    return 0


def cmd_remove(session: StudySession, args: argparse.Namespace) -> int:
    """Handle remove command."""
    try:
        entry = session.remove_word(args.entry_id)
    except EntryNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1
    print(f"Removed: {_format_entry(entry)}")
    return 0


def cmd_list(session: StudySession, args: argparse.Namespace) -> int:
    """Handle list command."""
    rows = session.search(args.query)
    if not rows:
        print("No words yet." if not len(session.store) else "No matches.")
        return 0

    id_col = f"{'ID':<18}" if args.ids else ""
    print(f"{id_col}{'Word':<24} {'POS':<8} {'Seen':>5}  Translation")
    print("-" * (80 if args.ids else 62))
    for entry in rows:
        id_col = f"{entry.id:<18}" if args.ids else ""
        print(
            f"{id_col}{entry.word:<24} {entry.pos:<8} "
            f"{session.exposure(entry.id):>5}  {entry.translation}"
        )
    print(f"\n{len(rows)} of {len(session.store)} word(s)")
    return 0


def cmd_study(session: StudySession, args: argparse.Namespace) -> int:
    """Handle study command."""
    if not len(session.store):
        print("No words yet. Add some with 'vocab-deck add'.")
        return 1

    if args.n is not None:
        for _ in range(args.n):
            _print_card(session, session.next_card())
        return 0

    print("Enter: next   p: previous   f: flip   q: quit")
    entry = session.next_card()
    _print_card(session, entry, show_back=False)
    while True:
        try:
            response = input("> ").strip().lower()
        except EOFError:
            break
        if response == "q":
            break
        if response == "f":
            _print_card(session, session.current_card)
            continue
        if response == "p":
            entry = session.prev_card()
            if entry is None:
                print("  (start of history)")
                continue
        else:
            entry = session.next_card()
        _print_card(session, entry, show_back=False)
    return 0


def cmd_export(session: StudySession, args: argparse.Namespace) -> int:
    """Handle export command."""
    if args.file:
        path = session.export_file(args.file)
        print(f"Wrote {path}")
    else:
        print(session.export_token())
    return 0


def cmd_restore(session: StudySession, args: argparse.Namespace) -> int:
    """Handle restore command."""
    if bool(args.token) == bool(args.file):
        print("\n  [ERROR] Give exactly one of a backup token or --file")
        return 1

    try:
        token = session.import_file(args.file) if args.file else args.token
        report = session.preview_restore(token, args.mode)
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1
    except SnapshotError as e:
        print(f"\n  [BACKUP ERROR] {e}")
        return 1

    print()
    print(report.describe())

    if not args.yes:
        if not _confirm("\nRestore this backup?") or not _confirm(
            "Really restore? This cannot be undone."
        ):
            session.cancel_restore()
            print("Aborted.")
            return 1

    try:
        session.confirm_restore()
    except NoPendingRestoreError as e:
        print(f"\n  [ERROR] {e}")
        return 1
    print(f"\nRestore complete: {len(session.store)} word(s).")
    return 0


def cmd_check(session: StudySession, args: argparse.Namespace) -> int:
    """Handle check command."""
    results = session.validate()
    if not results:
        print("No problems found.")
        return 0

    errors = [r for r in results if r.severity == "ERROR"]
    for result in results:
        tag = "[ERROR]" if result.severity == "ERROR" else "[WARN] "
        print(f"  {tag} {result.rule_id} {result.entity_id}: {result.message}")
    print(f"\nFound {len(errors)} error(s), {len(results) - len(errors)} warning(s)")
    return 1 if errors else 0


def _confirm(prompt: str) -> bool:
    response = input(f"{prompt} [y/N] ")
    return response.lower() in ("y", "yes")


def _format_entry(entry: Entry) -> str:
    return f"{entry.word} ({entry.pos}) {entry.translation}"


def _print_card(
    session: StudySession, entry: Optional[Entry], show_back: bool = True
) -> None:
    if entry is None:
        print("  (no card)")
        return
    seen, total = session.round_progress
    back = f"  {entry.pos}  {entry.translation}" if show_back else ""
    print(f"  [{seen}/{total}] {entry.word}{back}")


if __name__ == "__main__":
    sys.exit(main())
