"""Reconciliation rules: algorithm toggles, thresholds and score weights.

Rules are immutable values passed explicitly into every engine call. The
module-level DEFAULT_RULES is a frozen instance; derive variants with
ReconciliationRules.with_overrides() rather than mutating anything.

Rules can also be loaded from a JSON file (snake_case or the camelCase keys
used by the rules panel export) and tuned from environment variables:

    RECON_RULES_PATH            JSON rules file merged over the defaults
    RECON_MIN_CONFIDENCE        overrides thresholds.min_confidence_score
    RECON_AMOUNT_TOLERANCE_PCT  overrides thresholds.amount_match_tolerance

A .env file at the project root is loaded first when present.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from core.storage.artifacts import read_json_file


ENV_PATH = Path(__file__).resolve().parents[1] / ".env"


class RulesConfigError(ValueError):
    """Raised when a rules file or environment override is invalid."""


class _RulesBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )


class EnabledRules(_RulesBase):
    """Which matching algorithms are switched on."""
    exact_reference_match: bool = Field(default=True, description="Pick the invoice named in the reference note")
    fuzzy_customer_match: bool = Field(default=True, description="Scan all invoices when the reference match is weak")
    amount_tolerance: bool = Field(default=True, description="Excuse valid partial payments from amount mismatches")
    duplicate_detection: bool = Field(default=True, description="Flag payments sharing reference and amount")
    partial_payment_matching: bool = Field(default=True, description="Award proportional amount points to partial payments")
    date_proximity: bool = Field(default=True, description="Award points for payments near the due date")


class Thresholds(_RulesBase):
    """Numeric thresholds. Percentages are expressed as 0-100."""
    min_confidence_score: float = Field(default=50, ge=0, description="Min score for a match")
    name_match_sensitivity: float = Field(default=70, ge=0, le=100, description="Min name similarity (%) before flagging")
    amount_match_tolerance: float = Field(default=1, ge=0, description="Allowed amount deviation (% of invoice)")
    date_difference_threshold: float = Field(default=7, ge=0, description="Max days between payment and due date")
    partial_payment_min_percentage: float = Field(default=25, ge=0, le=100, description="Min share of invoice for a partial payment")


class Weights(_RulesBase):
    """Points awarded per matching signal (nominally summing to 100)."""
    reference_match: float = Field(default=50, ge=0)
    amount_match: float = Field(default=30, ge=0)
    name_match: float = Field(default=20, ge=0)
    date_match: float = Field(default=10, ge=0)


class ReconciliationRules(_RulesBase):
    """Complete rule set for one reconciliation run."""
    enabled_rules: EnabledRules = Field(default_factory=EnabledRules)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    weights: Weights = Field(default_factory=Weights)

    def with_overrides(self, **sections: Dict[str, Any]) -> "ReconciliationRules":
        """Return a copy with some fields replaced.

        Each keyword names a section and maps to the fields to change:

            rules.with_overrides(thresholds={"min_confidence_score": 80})
        """
        data = self.model_dump()
        for key, values in sections.items():
            section = _field_name(ReconciliationRules, key)
            if isinstance(values, BaseModel):
                values = values.model_dump()
            section_model = ReconciliationRules.model_fields[section].annotation
            data[section] = {
                **data[section],
                **{_field_name(section_model, k): v for k, v in dict(values).items()},
            }
        try:
            return ReconciliationRules.model_validate(data)
        except ValidationError as e:
            raise RulesConfigError(f"Invalid rules override: {e}") from e

    @property
    def max_score(self) -> float:
        """Score of a perfect match."""
        w = self.weights
        return w.reference_match + w.amount_match + w.name_match + w.date_match


DEFAULT_RULES = ReconciliationRules()


# =============================================================================
# Loading
# =============================================================================

_ENV_OVERRIDES = {
    "RECON_MIN_CONFIDENCE": ("thresholds", "min_confidence_score"),
    "RECON_AMOUNT_TOLERANCE_PCT": ("thresholds", "amount_match_tolerance"),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def rules_from_dict(data: Dict[str, Any], base: ReconciliationRules = DEFAULT_RULES) -> ReconciliationRules:
    """Build rules from a (possibly partial) mapping merged over `base`.

    Raises:
        RulesConfigError: If a key is unknown or a value is out of range
    """
    if not isinstance(data, dict):
        raise RulesConfigError(f"Rules must be a JSON object, got {type(data).__name__}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        section = _field_name(ReconciliationRules, key)
        if not isinstance(value, dict):
            raise RulesConfigError(f"Rules section {key!r} must be an object")
        section_model = ReconciliationRules.model_fields[section].annotation
        normalized[section] = {
            _field_name(section_model, field_key): field_value
            for field_key, field_value in value.items()
        }
    try:
        return ReconciliationRules.model_validate(_deep_merge(base.model_dump(), normalized))
    except ValidationError as e:
        raise RulesConfigError(f"Invalid rules: {e}") from e


def _field_name(model: type, key: str) -> str:
    """Map a snake_case or camelCase key onto the model's field name."""
    for name in model.model_fields:
        if key in (name, to_camel(name)):
            return name
    raise RulesConfigError(f"Unknown rules key for {model.__name__}: {key}")


def load_rules(path: Optional[Union[str, Path]] = None) -> ReconciliationRules:
    """Load rules from a JSON file and environment overrides.

    Args:
        path: Rules file; falls back to RECON_RULES_PATH, then to defaults

    Returns:
        ReconciliationRules merged over DEFAULT_RULES

    Raises:
        RulesConfigError: If the file or an override is invalid
    """
    if ENV_PATH.exists():
        load_dotenv(ENV_PATH)

    rules = DEFAULT_RULES
    rules_path = path or os.getenv("RECON_RULES_PATH")
    if rules_path:
        try:
            data = read_json_file(rules_path)
        except (FileNotFoundError, ValueError) as e:
            raise RulesConfigError(str(e)) from e
        rules = rules_from_dict(data, base=rules)

    for env_name, (section, field_name) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            value = float(raw)
        except ValueError:
            raise RulesConfigError(f"{env_name} must be a number, got {raw!r}")
        rules = rules.with_overrides(**{section: {field_name: value}})

    return rules
