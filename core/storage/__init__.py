"""Core storage - artifact storage abstraction."""

from core.storage.artifacts import (
    put_json,
    get_json,
    read_json_file,
    ArtifactStore,
)

__all__ = [
    "put_json",
    "get_json",
    "read_json_file",
    "ArtifactStore",
]
