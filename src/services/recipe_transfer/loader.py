"""
Load portable recipe documents from disk.

Accepts a single ``.json`` document or a ``.zip`` archive of documents as
written by export_recipes_archive. Inside an archive, members that are not
JSON, cannot be parsed, or fail validation are skipped with a warning so
one bad member does not block the rest.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Union

from src.services.exceptions import ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_transfer.document import validate_document

logger = get_service_logger(__name__)


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError([f"Invalid JSON in {path.name}: {e}"])
    validate_document(data)
    return data


def _load_archive(path: Path) -> List[Dict[str, Any]]:
    documents = []
    try:
        archive = zipfile.ZipFile(path)
    except zipfile.BadZipFile as e:
        raise ValidationError([f"Invalid ZIP archive {path.name}: {e}"])

    with archive:
        for member in archive.namelist():
            if member.endswith("/") or not member.lower().endswith(".json"):
                logger.debug(f"Skipping non-JSON archive member: {member}")
                continue
            try:
                data = json.loads(archive.read(member).decode("utf-8"))
                validate_document(data)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                log_operation(
                    logger,
                    "load_documents",
                    "member_unreadable",
                    level=logging.WARNING,
                    member=member,
                    error=str(e),
                )
                continue
            except ValidationError as e:
                log_operation(
                    logger,
                    "load_documents",
                    "member_invalid",
                    level=logging.WARNING,
                    member=member,
                    errors=e.errors,
                )
                continue
            documents.append(data)

    return documents


def load_documents(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load and validate documents from a .json file or a .zip archive.

    Args:
        file_path: Path to the file

    Returns:
        List of wire documents (one for a .json file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If a .json file is invalid, the archive is unreadable,
            or the extension is neither .json nor .zip
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        documents = [_load_json_file(path)]
    elif suffix == ".zip":
        documents = _load_archive(path)
    else:
        raise ValidationError([f"Unsupported file type '{path.suffix}': expected .json or .zip"])

    log_operation(logger, "load_documents", "success", path=str(path), count=len(documents))
    return documents
