"""Command line interface for snomed-query."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .concept_index import summarize_index
from .config import load_settings, setup_logging
from .errors import ConceptNotFoundError, QueryError
from .evaluator import ConceptResult
from .exporter import export_index
from .query_service import ConceptQueryService

EXIT_QUERY_ERROR = 1
EXIT_NOT_FOUND = 2


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Expression constraint queries over a concept snapshot")
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=settings.snapshot_path,
        help="Path to the concept snapshot (.json or .jsonl)",
    )
    parser.add_argument(
        "--root-id",
        type=int,
        default=settings.root_id,
        help="Root concept id (default: the snapshot root, else its single parentless concept)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("inspect", help="Show index statistics")

    query_parser = subparsers.add_parser("query", help="Evaluate an expression constraint")
    query_parser.add_argument("--expression", "-e", required=True, help="Expression constraint, e.g. '<<404684003'")

    concept_parser = subparsers.add_parser("concept", help="Show a single concept")
    concept_parser.add_argument("--id", type=int, required=True, help="Concept id")

    ancestors_parser = subparsers.add_parser("ancestors", help="List ancestors of a concept")
    ancestors_parser.add_argument("--id", type=int, required=True, help="Concept id")

    descendants_parser = subparsers.add_parser("descendants", help="List descendants of a concept")
    descendants_parser.add_argument("--id", type=int, required=True, help="Concept id")

    list_parser = subparsers.add_parser("list", help="List the first concepts of the index")
    list_parser.add_argument("--limit", type=int, default=10, help="How many concepts to show")

    export_parser = subparsers.add_parser("export", help="Export the index as JSON files")
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Destination directory for the export",
    )

    return parser.parse_args(argv)


def _print_results(results: List[ConceptResult], as_json: bool) -> None:
    if as_json:
        print(json.dumps([result.to_dict() for result in results], indent=2))
        return
    print(f"{len(results)} concepts")
    for result in results:
        print(f"  {result.id} |{result.fsn}|")


def cmd_inspect(service: ConceptQueryService, as_json: bool) -> None:
    summary = summarize_index(service.index)
    if as_json:
        print(json.dumps({"root": service.root_id, **summary}, indent=2))
        return
    print(f"Root: {service.root_id}")
    for key, value in summary.items():
        print(f"  {key}: {value}")


def cmd_export(service: ConceptQueryService, output_dir: Path) -> None:
    outputs = export_index(service.index, output_dir)
    print(f"Index exported to {output_dir}")
    for kind, path in outputs.items():
        print(f"  - {kind}: {path}")


def run(args: argparse.Namespace) -> int:
    service = ConceptQueryService.from_snapshot(args.snapshot, root_id=args.root_id)

    try:
        if args.command == "inspect":
            cmd_inspect(service, args.json)
        elif args.command == "query":
            _print_results(service.evaluate(args.expression), args.json)
        elif args.command == "concept":
            _print_results([service.retrieve_concept(args.id)], args.json)
        elif args.command == "ancestors":
            _print_results(service.retrieve_ancestors(args.id), args.json)
        elif args.command == "descendants":
            _print_results(service.retrieve_descendants(args.id), args.json)
        elif args.command == "list":
            _print_results(service.retrieve_concepts(args.limit), args.json)
        elif args.command == "export":
            cmd_export(service, args.output_dir)
        else:
            raise ValueError(f"Unknown command: {args.command}")
    except ConceptNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except QueryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_QUERY_ERROR
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose, load_settings().log_level)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
