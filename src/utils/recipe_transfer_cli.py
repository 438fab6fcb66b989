"""
CLI for portable recipe export and import.

Usage:
    python -m src.utils.recipe_transfer_cli export 12
    python -m src.utils.recipe_transfer_cli export 12 13 14 -o backup.zip
    python -m src.utils.recipe_transfer_cli preview cocktail-daiquiri.json
    python -m src.utils.recipe_transfer_cli import cocktail-daiquiri.json --auto
    python -m src.utils.recipe_transfer_cli import export.zip --resolutions res.json

Exit Codes:
    0 - Success
    1 - Conflict (a cocktail or entity name already exists)
    2 - Failure (import or export error)
    3 - Invalid arguments, invalid document, or file not found
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.services.database import initialize_app_database
from src.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from src.services.recipe_transfer import (
    REFERENCE_KINDS,
    ImportPreview,
    build_default_resolutions,
    confirm_import,
    export_recipes_archive,
    load_documents,
    preview_import,
    write_recipe_file,
)

# Exit code constants
EXIT_SUCCESS = 0
EXIT_CONFLICT = 1
EXIT_FAILURE = 2
EXIT_INVALID_ARGS = 3

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool) -> None:
    """Send service logs to stderr; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_preview(preview: ImportPreview) -> None:
    """Print a human-readable match summary."""
    cocktail = preview.cocktail
    status = "already exists" if cocktail.already_exists else "new"
    print(f"Cocktail: {cocktail.name} ({status})")

    for kind in REFERENCE_KINDS:
        results = preview.results(kind)
        if not results:
            continue
        print(f"  {kind.capitalize()}:")
        for match in results:
            if match.is_matched:
                print(f"    [matched] {match.key} -> ID {match.existing_match['id']}")
            else:
                print(f"    [missing] {match.key}")


def _load_resolutions(path: str) -> Dict[str, Any]:
    resolution_path = Path(path)
    if not resolution_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with open(resolution_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError([f"Invalid JSON in {resolution_path.name}: {e}"])


def run_export(cocktail_ids: List[int], output: Optional[str]) -> int:
    """Export one cocktail to JSON, or several to a ZIP archive."""
    if len(cocktail_ids) == 1:
        path = write_recipe_file(cocktail_ids[0], output_dir=output or ".")
    else:
        path = export_recipes_archive(cocktail_ids, output_path=output)
    print(f"Exported {len(cocktail_ids)} cocktail(s) to {path}")
    return EXIT_SUCCESS


def run_preview(file_path: str, as_json: bool) -> int:
    """Preview every document in the file."""
    documents = load_documents(file_path)
    previews = [preview_import(document) for document in documents]

    if as_json:
        print(json.dumps([preview.to_dict() for preview in previews], indent=2, ensure_ascii=False))
    else:
        for preview in previews:
            print_preview(preview)
    return EXIT_SUCCESS


def run_import(file_path: str, resolutions_path: Optional[str], auto: bool) -> int:
    """Confirm every document in the file; conflicts do not stop later documents."""
    documents = load_documents(file_path)
    shared_resolutions = _load_resolutions(resolutions_path) if resolutions_path else None

    imported = 0
    conflicts = 0
    failures = 0

    for document in documents:
        name = document["recipe"]["name"]
        try:
            if auto:
                resolutions = build_default_resolutions(preview_import(document))
            else:
                resolutions = shared_resolutions
            cocktail = confirm_import(document, resolutions)
        except ConflictError as e:
            conflicts += 1
            print(f"Conflict: {name}: {e}", file=sys.stderr)
            continue
        except ServiceError as e:
            failures += 1
            print(f"Error: {name}: {e}", file=sys.stderr)
            continue

        imported += 1
        print(f"Imported '{cocktail['name']}' (ID: {cocktail['id']})")

    print(f"Imported {imported}, conflicts {conflicts}, failed {failures}")
    if failures:
        return EXIT_FAILURE
    if conflicts:
        return EXIT_CONFLICT
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bar-catalog",
        description="Export and import cocktails as portable recipe documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s export 12                          # Write cocktail-<name>.json
  %(prog)s export 12 13 -o backup.zip         # Write a ZIP archive
  %(prog)s preview cocktail-daiquiri.json     # Show matched/missing entities
  %(prog)s import export.zip --auto           # Reuse matches, create the rest
  %(prog)s import cocktail.json --resolutions res.json

Exit Codes:
  0 - Success
  1 - Conflict (name already exists)
  2 - Failure
  3 - Invalid arguments, invalid document, or file not found
        """,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export cocktails")
    export_parser.add_argument("cocktail_ids", nargs="+", type=int, metavar="COCKTAIL_ID")
    export_parser.add_argument(
        "-o",
        "--output",
        help="Output directory for one cocktail, archive path for several",
    )

    preview_parser = subparsers.add_parser("preview", help="Preview an import")
    preview_parser.add_argument("file", help="Path to a .json document or .zip archive")
    preview_parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print the preview as JSON",
    )

    import_parser = subparsers.add_parser("import", help="Import cocktails")
    import_parser.add_argument("file", help="Path to a .json document or .zip archive")
    mode = import_parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--resolutions",
        help="JSON file of resolutions applied to every document",
    )
    mode.add_argument(
        "--auto",
        action="store_true",
        help="Reuse matched entities and create missing ones with defaults",
    )

    return parser


def main(args=None):
    """Main CLI entry point."""
    parsed_args = build_parser().parse_args(args)
    configure_logging(parsed_args.verbose)

    # Initialize database
    initialize_app_database()

    try:
        if parsed_args.command == "export":
            return run_export(parsed_args.cocktail_ids, parsed_args.output)
        if parsed_args.command == "preview":
            return run_preview(parsed_args.file, parsed_args.as_json)
        return run_import(parsed_args.file, parsed_args.resolutions, parsed_args.auto)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    except (ValidationError, NotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    except ConflictError as e:
        print(f"Conflict: {e}", file=sys.stderr)
        return EXIT_CONFLICT

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
