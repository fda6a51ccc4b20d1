"""Command-line interface for the concept hierarchy."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional

from concept_hierarchy.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_STATE_PATH,
    ConfigError,
    HierarchyConfig,
    get_default_config,
    load_config,
    save_config,
)
from concept_hierarchy.coordinator import ModelCoordinator, RebuildStatus
from concept_hierarchy.errors import MalformedDocumentError
from concept_hierarchy.incremental import (
    HierarchyState,
    get_changed_documents,
    load_state,
    save_state,
    tracked_documents,
    update_state_hashes,
)
from concept_hierarchy.query import (
    ClassificationQuery,
    get_summary,
    load_hierarchy_index,
    load_snapshot,
)
from concept_hierarchy.references import ReferenceResolver
from concept_hierarchy.snapshot import HierarchySnapshot
from concept_hierarchy.store import FileDocumentStore, document_id


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1
    FILE_SYSTEM_ERROR = 2
    PARTIAL_SUCCESS = 3  # built, but issues were recorded
    HIERARCHY_ERROR = 4  # rebuild failed, e.g. a cycle


def _config_path(config_path: Optional[str]) -> Path:
    if config_path:
        return Path(config_path)
    return Path.cwd() / DEFAULT_CONFIG_PATH


def _get_config(config_path: Optional[str]) -> HierarchyConfig:
    """Load config from --config or .concepts/config.yaml, else defaults."""
    return load_config(_config_path(config_path))


def _snapshot_path(config: HierarchyConfig, root: Path) -> Path:
    return root / config.output.snapshot_file


def _query_for(config: HierarchyConfig, snapshot: Optional[HierarchySnapshot]) -> ClassificationQuery:
    return ClassificationQuery(
        snapshot,
        function_concept=config.classification.function_concept,
        value_domain_concept=config.classification.value_domain_concept,
    )


def _print_issues(snapshot: HierarchySnapshot) -> None:
    for issue in snapshot.issues:
        location = f" ({issue.document})" if issue.document else ""
        print(f"  [{issue.kind.value}] {issue.message}{location}")


def cmd_build(args: argparse.Namespace) -> int:
    """Rebuild the hierarchy and write the snapshot index."""
    try:
        config = _get_config(args.config)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    root = Path.cwd()
    snapshot_path = _snapshot_path(config, root)
    state_path = root / DEFAULT_STATE_PATH
    incremental = getattr(args, "incremental", False)

    if not config.root:
        print("No root document configured. Run 'concept-hierarchy set-root <file>' first.")
        return ExitCode.SUCCESS

    if incremental:
        print("Building concept hierarchy (incremental)...")
        state = load_state(state_path)
        previous = load_snapshot(snapshot_path)
        if previous is not None and state.document_hashes:
            changed = get_changed_documents(tracked_documents(previous), state)
            if not changed:
                print("  No documents changed since last build, skipping rebuild")
                return ExitCode.SUCCESS
            print(f"  {len(changed)} documents changed since last build")
    else:
        print("Building concept hierarchy...")
        state = HierarchyState()

    store = FileDocumentStore(root)
    coordinator = ModelCoordinator(store, config, project_name=config.resolved_project_name(root))
    result = coordinator.rebuild()

    if result.status == RebuildStatus.FAILED:
        print(json.dumps(result.error.to_json()), file=sys.stderr)
        if result.error.error_type == "document_not_found":
            return ExitCode.FILE_SYSTEM_ERROR
        return ExitCode.HIERARCHY_ERROR
    if result.status == RebuildStatus.NOTHING_TO_DO:
        print("Nothing to build")
        return ExitCode.SUCCESS

    snapshot = result.snapshot
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    snapshot_path.write_text(json.dumps(snapshot.to_index(), indent=2))

    update_state_hashes(tracked_documents(snapshot), state)
    save_state(state, state_path)

    print(f"  Resolved {len(snapshot.included_documents)} included documents")
    print(f"  Defined {len(snapshot.concepts)} concepts")
    print(f"Output: {snapshot_path}")

    if snapshot.issues:
        print(f"{len(snapshot.issues)} issues recorded:")
        _print_issues(snapshot)
        return ExitCode.PARTIAL_SUCCESS
    return ExitCode.SUCCESS


def cmd_set_root(args: argparse.Namespace) -> int:
    """Persist the root document in the configuration."""
    config_path = _config_path(args.config)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    root = Path.cwd().resolve()
    target = (root / args.path).resolve()
    if not target.is_file():
        print(f"Root document not found: {args.path}", file=sys.stderr)
        return ExitCode.FILE_SYSTEM_ERROR

    try:
        config.root = target.relative_to(root).as_posix()
    except ValueError:
        config.root = target.as_posix()

    save_config(config, config_path)
    print(f"Root document set to {config.root}")
    return ExitCode.SUCCESS


def cmd_query(args: argparse.Namespace) -> int:
    """Query the built hierarchy."""
    try:
        config = _get_config(args.config)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    root = Path.cwd()
    snapshot_path = _snapshot_path(config, root)
    index = load_hierarchy_index(snapshot_path)
    snapshot = load_snapshot(snapshot_path) if index is not None else None
    if snapshot is None:
        print("Hierarchy index not found. Run 'concept-hierarchy build' first.")
        return ExitCode.FILE_SYSTEM_ERROR

    query = _query_for(config, snapshot)

    if getattr(args, "summary", False):
        print(json.dumps(get_summary(index), indent=2))

    elif args.document:
        doc = document_id(root / args.document)
        for name in sorted(snapshot.concepts_by_document.get(doc, ())):
            print(name)

    elif args.concept:
        name = args.concept
        if args.descendant_of:
            result = {
                "concept": name,
                "ancestor": args.descendant_of,
                "result": query.is_descendant_of(name, args.descendant_of),
            }
            print(json.dumps(result, indent=2))
        elif args.is_function:
            print(json.dumps({"concept": name, "is_function": query.is_function(name)}, indent=2))
        elif args.is_value_domain:
            print(json.dumps({"concept": name, "is_value_domain": query.is_value_domain(name)}, indent=2))
        elif args.ancestors:
            for ancestor in query.ancestors_of(name):
                print(ancestor)
        else:
            result = {
                "concept": name,
                "is_concept": query.is_concept(name),
                "defined_in": snapshot.defined_in(name),
                "direct_parents": list(snapshot.direct_parents.get(name, ())),
            }
            print(json.dumps(result, indent=2))

    else:
        print("Please specify --concept, --document, or --summary")
        return ExitCode.CONFIG_ERROR

    return ExitCode.SUCCESS


def cmd_refs(args: argparse.Namespace) -> int:
    """List the document references found in one file."""
    try:
        config = _get_config(args.config)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    root = Path.cwd()
    store = FileDocumentStore(root)
    doc = document_id(root / args.path)

    try:
        content = store.read(doc)
    except MalformedDocumentError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.FILE_SYSTEM_ERROR
    if content is None:
        print(f"Document not found: {args.path}", file=sys.stderr)
        return ExitCode.FILE_SYSTEM_ERROR

    snapshot = load_snapshot(_snapshot_path(config, root))
    resolver = ReferenceResolver(
        store,
        config,
        lambda: snapshot,
        project_name=config.resolved_project_name(root),
    )
    references = resolver.find_references(doc, content)
    print(json.dumps([ref.to_json() for ref in references], indent=2))
    return ExitCode.SUCCESS


def cmd_status(args: argparse.Namespace) -> int:
    """Show hierarchy status."""
    try:
        config = _get_config(args.config)
    except ConfigError as e:
        print(json.dumps(e.to_json()), file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    root = Path.cwd()
    snapshot_path = _snapshot_path(config, root)

    print("Concept Hierarchy Status")
    print("=" * 40)
    print(f"\nRoot document: {config.root or 'NOT CONFIGURED'}")

    index = load_hierarchy_index(snapshot_path)
    if index:
        summary = get_summary(index)
        print(f"\nHierarchy Index: {snapshot_path}")
        print(f"  Generated: {summary['generated']}")
        print(f"  Concepts: {summary['concept_count']}")
        print(f"  Documents: {summary['document_count']}")
        print(f"  Issues: {summary['issue_count']}")
    else:
        print("\nHierarchy Index: NOT FOUND")
        print(f"  Expected at: {snapshot_path}")
        print("\nRun 'concept-hierarchy build' to create it.")

    state = load_state(root / DEFAULT_STATE_PATH)
    if state.last_build:
        print(f"\nLast build: {state.last_build} ({len(state.document_hashes)} documents tracked)")

    return ExitCode.SUCCESS


def cmd_init(_args: argparse.Namespace) -> int:
    """Initialize the hierarchy tooling in the current project."""
    root = Path.cwd()
    config_path = root / DEFAULT_CONFIG_PATH
    cache_dir = (root / DEFAULT_STATE_PATH).parent

    print("Initializing concept hierarchy...")

    cache_dir.mkdir(parents=True, exist_ok=True)
    print(f"  Created {cache_dir}/")

    if config_path.exists():
        print(f"  Config already exists: {config_path}")
    else:
        save_config(get_default_config(), config_path)
        print(f"  Created {config_path} with defaults")

    gitignore_path = root / ".gitignore"
    cache_pattern = ".concepts/cache/"
    if gitignore_path.exists():
        content = gitignore_path.read_text()
        if cache_pattern not in content:
            with open(gitignore_path, "a") as f:
                f.write(f"\n# Concept hierarchy build cache\n{cache_pattern}\n")
            print(f"  Added {cache_pattern} to .gitignore")
    else:
        gitignore_path.write_text(f"# Concept hierarchy build cache\n{cache_pattern}\n")
        print(f"  Created .gitignore with {cache_pattern}")

    print("\nConcept hierarchy initialized! Next steps:")
    print("  1. Run 'concept-hierarchy set-root <file>' to choose the root document")
    print("  2. Run 'concept-hierarchy build' to build the hierarchy")
    print("  3. Query with 'concept-hierarchy query --concept <name>'")

    return ExitCode.SUCCESS


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    """Add --config argument to a parser."""
    parser.add_argument(
        "--config",
        "-c",
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="concept-hierarchy",
        description="Build and query concept hierarchies spread over JSON documents",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Initialize the hierarchy tooling in the current project")

    set_root_parser = subparsers.add_parser("set-root", help="Set the root document")
    _add_config_arg(set_root_parser)
    set_root_parser.add_argument("path", help="Path to the root JSON document")

    build_parser = subparsers.add_parser("build", help="Rebuild the hierarchy")
    _add_config_arg(build_parser)
    build_parser.add_argument(
        "--incremental",
        action="store_true",
        help="Skip the rebuild when no tracked document changed",
    )

    query_parser = subparsers.add_parser("query", help="Query the hierarchy")
    _add_config_arg(query_parser)
    query_parser.add_argument("--concept", help="Concept to query")
    query_parser.add_argument("--descendant-of", help="Check whether --concept derives from this concept")
    query_parser.add_argument("--is-function", action="store_true", help="Check whether --concept is a function")
    query_parser.add_argument(
        "--is-value-domain", action="store_true", help="Check whether --concept is a value domain"
    )
    query_parser.add_argument("--ancestors", action="store_true", help="List all ancestors of --concept")
    query_parser.add_argument("--document", help="List concepts defined in a document")
    query_parser.add_argument("--summary", action="store_true", help="Show summary stats")

    refs_parser = subparsers.add_parser("refs", help="List document references in a file")
    _add_config_arg(refs_parser)
    refs_parser.add_argument("path", help="Path to a JSON document")

    status_parser = subparsers.add_parser("status", help="Show hierarchy status")
    _add_config_arg(status_parser)

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "init": cmd_init,
        "set-root": cmd_set_root,
        "build": cmd_build,
        "query": cmd_query,
        "refs": cmd_refs,
        "status": cmd_status,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
