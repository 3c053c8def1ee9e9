"""Artifact storage for reconciliation inputs and reports.

Reports are written as JSON with a SHA256 content hash so a stored run can
be re-read later and checked for tampering. Input datasets are plain JSON
documents read from disk.
"""

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Union

from core.models.refs import DataReference


def _compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash of bytes."""
    return hashlib.sha256(data).hexdigest()


def _to_jsonable(obj: Any) -> Any:
    # Pydantic models serialize Decimals as strings in JSON mode
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    return obj


def put_json(obj: Any, path: Path, ensure_parent: bool = True) -> DataReference:
    """Store a JSON-serializable object and return a DataReference.

    Args:
        obj: Object to serialize to JSON (dict or Pydantic model)
        path: File path where the artifact will be stored
        ensure_parent: Create parent directories if they don't exist

    Returns:
        DataReference with artifact metadata for retrieval

    Raises:
        TypeError: If object is not JSON-serializable
    """
    path = Path(path)
    if ensure_parent:
        path.parent.mkdir(parents=True, exist_ok=True)

    json_bytes = json.dumps(_to_jsonable(obj), indent=2).encode("utf-8")
    path.write_bytes(json_bytes)

    return DataReference(
        storage_uri=str(path.absolute()),
        content_hash=_compute_sha256(json_bytes),
        content_type="application/json",
        size_bytes=len(json_bytes),
        stored_at=datetime.utcnow(),
    )


def get_json(ref: DataReference, validate_hash: bool = True) -> Any:
    """Retrieve JSON artifact from a DataReference.

    Args:
        ref: DataReference pointing to the artifact
        validate_hash: Verify content hash matches reference

    Returns:
        Deserialized JSON object

    Raises:
        FileNotFoundError: If artifact path doesn't exist
        ValueError: If hash validation fails
    """
    path = Path(ref.storage_uri)

    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {ref.storage_uri}")

    json_bytes = path.read_bytes()

    if validate_hash:
        actual_hash = _compute_sha256(json_bytes)
        if actual_hash != ref.content_hash:
            raise ValueError(
                f"Hash mismatch for {ref.storage_uri}: "
                f"expected {ref.content_hash}, got {actual_hash}"
            )

    return json.loads(json_bytes.decode("utf-8"))


def read_json_file(path: Union[str, Path]) -> Any:
    """Read a JSON document that has no stored reference (e.g. an input batch).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


class ArtifactStore:
    """Artifact store with configurable base path.

    Provides a convenient wrapper around the put/get functions
    with a consistent base directory.
    """

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def put_json(self, obj: Any, relative_path: str) -> DataReference:
        """Store JSON artifact relative to base path."""
        return put_json(obj, self.base_path / relative_path)

    def get_json(self, ref: DataReference, validate_hash: bool = True) -> Any:
        """Retrieve JSON artifact."""
        return get_json(ref, validate_hash)

    def report_path(self, run_id: str) -> str:
        """Relative path used for a run's report."""
        return f"reports/reconciliation_{run_id}.json"
