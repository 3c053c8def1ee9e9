"""Data reference and report models for artifact storage and tracking."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field


class DataReference(BaseModel):
    """Reference to a stored artifact with metadata for retrieval and verification.

    Attributes:
        storage_uri: Absolute file path to the artifact
        content_hash: SHA256 hash of the content for integrity verification
        content_type: MIME type (e.g., "application/json")
        size_bytes: Size of the artifact in bytes
        stored_at: Timestamp when the artifact was stored
    """
    storage_uri: str = Field(..., description="Absolute file path to the artifact")
    content_hash: str = Field(..., description="SHA256 hash of content")
    content_type: str = Field(default="application/json", description="MIME type")
    size_bytes: int = Field(..., description="Size in bytes")
    stored_at: datetime = Field(default_factory=datetime.utcnow, description="Storage timestamp")


class ReconciliationRunReport(BaseModel):
    """Outcome of one reconciliation run, in a JSON-friendly shape.

    Attributes:
        run_id: Identifier used for log correlation
        generated_at: When the report was built
        rules: Rules the run used (serialized)
        summary: Counts per status and per issue type
        percentages: Share of payments per status (0-100)
        results: Serialized per-payment results
    """
    run_id: str = Field(..., description="Run identifier")
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    rules: dict = Field(default_factory=dict, description="Rules used for the run")
    summary: dict = Field(default_factory=dict, description="Summary counts")
    percentages: dict = Field(default_factory=dict, description="Status percentages")
    results: list[dict] = Field(default_factory=list, description="Per-payment results")
