"""dbprops CLI: inspect and batch-edit the properties of a document group."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional, Tuple


def _split_pair(text: str, flag: str) -> Tuple[str, Optional[str]]:
    """Split NAME=VALUE; the value is None when there is no '='."""
    if "=" not in text:
        return text, None
    name, value = text.split("=", 1)
    if not name.strip():
        raise ValueError(f"{flag} expects NAME=VALUE, got '{text}'")
    return name, value


def _describe_event(event) -> str:
    if event.change_type == "PROPERTY_REMOVED":
        return f"  - delete {event.old_value}"
    if event.change_type == "PROPERTY_ADDED":
        return f"  + add {event.new_value} (default: {event.details['default']!r})"
    if event.change_type == "PROPERTY_RENAMED":
        return f"  ~ rename {event.old_value} -> {event.new_value}"
    return f"  > move {event.details['key']} ({event.old_value} -> {event.new_value})"


def main():
    """Main CLI entry point for dbprops commands."""
    # Get version for --version argument (handle PackageNotFoundError)
    try:
        dbprops_version = get_version("dbprops")
    except PackageNotFoundError:
        dbprops_version = "dev"

    parser = argparse.ArgumentParser(
        prog="dbprops",
        description="dbprops: reconcile frontmatter properties across a folder or tag of notes"
    )
    parser.add_argument("--version", action="version", version=f"dbprops {dbprops_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log progress and debug details to stderr."
    )
    parent_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config JSON (defaults to $DBPROPS_CONFIG or ~/.dbprops/config.json)"
    )
    parent_parser.add_argument(
        "root",
        type=Path,
        help="Vault root directory"
    )

    # Selector arguments (folder or tag)
    selector_parser = argparse.ArgumentParser(add_help=False)
    selector_group = selector_parser.add_mutually_exclusive_group(required=True)
    selector_group.add_argument(
        "--folder",
        default=None,
        help="Select the notes directly inside this folder ('/' for the vault root)"
    )
    selector_group.add_argument(
        "--tag",
        default=None,
        help="Select every note carrying this tag"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # folders / tags commands
    for name, what in (("folders", "folders"), ("tags", "tags")):
        choices_parser = subparsers.add_parser(
            name,
            help=f"List the {what} a selection can use",
            parents=[parent_parser]
        )
        choices_parser.add_argument(
            "--match",
            default=None,
            help=f"Fuzzy-match {what} against this text"
        )
        choices_parser.add_argument(
            "--limit",
            type=int,
            default=20,
            help="Maximum number of fuzzy matches"
        )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show the unified property schema of a selection",
        parents=[parent_parser, selector_parser]
    )
    show_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the schema as canonical JSON"
    )

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Edit the property schema of a selection and rewrite every note",
        parents=[parent_parser, selector_parser]
    )
    apply_parser.add_argument(
        "--add",
        action="append",
        default=[],
        metavar="NAME[=DEFAULT]",
        help="Add a property (DEFAULT is parsed as YAML)"
    )
    apply_parser.add_argument(
        "--delete",
        action="append",
        default=[],
        metavar="KEY",
        help="Delete a property from every note"
    )
    apply_parser.add_argument(
        "--rename",
        action="append",
        default=[],
        metavar="OLD=NEW",
        help="Rename a property in every note"
    )
    apply_parser.add_argument(
        "--order",
        default=None,
        metavar="K1,K2,...",
        help="Move these properties to the front, in this order"
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the pending changes without writing"
    )
    apply_parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from .config import load_config
    from .source import VaultSource

    try:
        if args.config is not None and not args.config.exists():
            raise FileNotFoundError(f"Config file not found: {args.config}")
        config = load_config(args.config)
        root = Path(args.root).resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"Vault root not found: {root}")
        source = VaultSource(root, suffixes=config.suffixes, backup=config.backup)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    def _resolve_selector():
        from .selection import choose
        from .source import FolderSelector, TagSelector, ROOT_FOLDER, normalize_tag

        if args.folder is not None:
            query = args.folder.strip().strip("/") or ROOT_FOLDER
            choice = choose(query, source.list_folders(), threshold=config.fuzzy_threshold)
            if choice is None:
                raise ValueError(f"No folder matching '{args.folder}'")
            if choice != query and not args.quiet:
                print(f"Using folder: {choice}")
            return FolderSelector(folder="" if choice == ROOT_FOLDER else choice)

        query = normalize_tag(args.tag)
        choice = choose(query, source.list_tags(), threshold=config.fuzzy_threshold)
        if choice is None:
            raise ValueError(f"No tag matching '{args.tag}'")
        if choice != query and not args.quiet:
            print(f"Using tag: #{choice}")
        return TagSelector(tag=choice)

    if args.command in ("folders", "tags"):
        from .selection import rank_choices

        choices = source.list_folders() if args.command == "folders" else source.list_tags()
        if args.match:
            choices = [c for c, _ in rank_choices(args.match, choices, limit=args.limit,
                                                  threshold=config.fuzzy_threshold)]
        for choice in choices:
            print(choice)
        if not choices:
            sys.exit(1)
    elif args.command == "show":
        from .api import open_session
        from .errors import DocumentReadError
        from ._internal.canonical_json import canonical_dumps

        try:
            selector = _resolve_selector()
            session = open_session(source, selector, config)
            properties = session.schema.properties

            if args.json:
                print(canonical_dumps({
                    "selector": selector.model_dump(),
                    "documents": [ref.path for ref in session.refs],
                    "properties": [
                        {"key": p.key, "type": p.type, "reserved": p.key in config.reserved_keys}
                        for p in properties
                    ],
                }))
                return

            if not args.quiet:
                print(f"{len(session.refs)} documents, {len(properties)} properties")
                for prop in properties:
                    marker = " (reserved)" if prop.key in config.reserved_keys else ""
                    print(f"  {prop.key}: {prop.type}{marker}")
        except (FileNotFoundError, ValueError, DocumentReadError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "apply":
        import yaml

        from .api import open_session, save
        from .errors import DocumentReadError, DocumentWriteError
        from .kernel.render import load_yaml
        from .kernel.types import infer_type
        from .progress import ConsoleProgress, NullProgress

        try:
            selector = _resolve_selector()
            session = open_session(source, selector, config)
        except (FileNotFoundError, ValueError, DocumentReadError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if not session.can_save:
            if not args.quiet:
                print("No documents selected; nothing to save.")
            return

        schema = session.schema
        rejected: List[str] = []

        def _edit(result, description: str) -> None:
            if not result.applied:
                rejected.append(f"{description}: {result.code.value}")

        def _id_of(key: str) -> Optional[str]:
            prop = schema.find(key.strip())
            return prop.id if prop is not None else None

        try:
            for key in args.delete:
                _edit(schema.delete(_id_of(key) or ""), f"delete {key}")
            for pair in args.rename:
                old, new = _split_pair(pair, "--rename")
                if new is None:
                    raise ValueError(f"--rename expects OLD=NEW, got '{pair}'")
                _edit(schema.rename(_id_of(old) or "", new), f"rename {old}")
            for pair in args.add:
                name, raw_default = _split_pair(pair, "--add")
                if raw_default is None or not raw_default.strip():
                    result = schema.add(name, config.add_default_value, config.add_default_type)
                else:
                    try:
                        default = load_yaml(raw_default)
                    except yaml.YAMLError as e:
                        raise ValueError(f"Default for '{name}' is not valid YAML: {e}") from e
                    result = schema.add(name, default, infer_type(default).value)
                _edit(result, f"add {name}")
            if args.order:
                placed = 0
                for key in (k.strip() for k in args.order.split(",")):
                    if not key:
                        continue
                    result = schema.reorder(_id_of(key) or "", placed)
                    _edit(result, f"order {key}")
                    if result.applied:
                        placed += 1
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        for line in rejected:
            print(f"Warning: skipped {line}", file=sys.stderr)

        changes = schema.changes()
        if not args.quiet:
            print(f"{len(session.refs)} documents, {len(changes)} changes")
            for event in changes:
                print(_describe_event(event))
            print("Properties: " + ", ".join(schema.keys))

        if args.dry_run:
            if not args.quiet:
                print("[OK] Dry run, nothing written")
            return

        if not args.yes:
            try:
                answer = input(f"Rewrite the properties of {len(session.refs)} documents? This cannot be undone. [y/N] ")
            except EOFError:
                answer = ""
            if answer.strip().lower() not in ("y", "yes"):
                print("Aborted, nothing written", file=sys.stderr)
                sys.exit(1)

        progress = NullProgress() if args.quiet else ConsoleProgress(sys.stderr)
        try:
            report = save(session, source, progress=progress, config=config)
        except DocumentWriteError as e:
            written = len(e.report.written) if e.report is not None else 0
            print(f"Error: {e}", file=sys.stderr)
            print(f"  Written before failure: {written}", file=sys.stderr)
            sys.exit(1)
        except (OSError, DocumentReadError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if not args.quiet:
            print(f"[{'OK' if report.ok else 'FAILED'}] Save complete")
            print(f"  Written: {len(report.written)}/{report.total}")
        if report.failed:
            for failure in report.failed:
                print(f"  Failed: {failure.document}: {failure.error}", file=sys.stderr)
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
