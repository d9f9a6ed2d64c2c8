"""Loads exported trade/transfer records from JSON files.

Structural validation lives here, at the collaborator boundary: a file that
is missing, is not JSON or does not have the expected shape raises
RecordLoadError. Individual noisy records (bad prices, other symbols, zero
amounts) are left for the ledger builder to filter.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from schemas.records import RecordBundle

logger = logging.getLogger(__name__)


class RecordLoadError(ValueError):
    """A record file could not be read or has the wrong structure."""

    def __init__(self, message: str, path: Path | str = ""):
        self.path = str(path)
        super().__init__(message)


def parse_record_bundle(payload, source: Path | str = "<memory>") -> RecordBundle:
    """Validate a decoded JSON payload into a RecordBundle.

    Accepts ``{"transactions": [...], "transfers": [...]}`` or a bare list,
    which is read as transactions only.
    """
    if isinstance(payload, list):
        payload = {"transactions": payload}
    if not isinstance(payload, dict):
        raise RecordLoadError(
            f"{source}: expected an object or a list of transactions, "
            f"got {type(payload).__name__}",
            source,
        )
    try:
        return RecordBundle.model_validate(payload)
    except ValidationError as e:
        raise RecordLoadError(
            f"{source}: {e.error_count()} invalid record field(s): {e}", source
        ) from e


def load_record_bundle(path: Path | str) -> RecordBundle:
    """Read and validate a JSON record file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RecordLoadError(f"{path}: cannot read file ({e.strerror or e})", path) from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordLoadError(
            f"{path}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}", path
        ) from e

    bundle = parse_record_bundle(payload, path)
    logger.info(
        "Loaded %d transactions and %d transfers from %s",
        len(bundle.transactions),
        len(bundle.transfers),
        path,
    )
    return bundle
