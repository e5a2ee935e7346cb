"""uscf_lookup.config

YAML-based settings for member lookups.

Responsibilities:
  - Load and validate a settings file (see config/lookup.yml)
  - Fill defaults for keys the file omits
  - Apply CLI overrides on top of file values

Usage:
    from pathlib import Path
    from uscf_lookup.config import load_settings

    settings = load_settings(Path("config/lookup.yml"))
    settings = settings.with_overrides(error_policy="raise")
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from uscf_lookup.shared import ERROR_POLICY_ABSORB, SENTINEL, VALID_ERROR_POLICIES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://www.uschess.org/msa/MbrDtlMain.php"
DEFAULT_MAX_BATCH_SIZE = 5


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SettingsValidationError(ValueError):
    """Raised when a YAML settings file fails schema validation."""


# ---------------------------------------------------------------------------
# LookupSettings dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LookupSettings:
    """Validated lookup settings; defaults match the public directory."""

    base_url: str = DEFAULT_BASE_URL
    sentinel: str = SENTINEL
    error_policy: str = ERROR_POLICY_ABSORB
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    request_delay_seconds: float = 1.0
    request_jitter_seconds: float = 0.5
    user_agent: str = "uscf-lookup/1.0"

    def with_overrides(self, **overrides: Any) -> LookupSettings:
        """Return a copy with every non-None override applied and re-validated."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        merged = {**asdict(self), **changes}
        validate_settings(merged)
        return replace(self, **changes)


KNOWN_KEYS = frozenset(LookupSettings.__dataclass_fields__)


# ---------------------------------------------------------------------------
# Loader + validator
# ---------------------------------------------------------------------------

def load_settings(yaml_path: Path | None = None) -> LookupSettings:
    """Load, validate, and return LookupSettings from a YAML file.

    Args:
        yaml_path: Path to the settings file. None returns the defaults.

    Raises:
        SettingsValidationError: If any key is unknown or has an invalid value.
        FileNotFoundError: If the YAML file does not exist.
    """
    if yaml_path is None:
        return LookupSettings()
    raw = yaml_path.read_text(encoding="utf-8")
    data: dict[str, Any] = yaml.safe_load(raw) or {}
    validate_settings(data)
    return LookupSettings(**data)


def _require_number(data: dict[str, Any], key: str, minimum: float, exclusive: bool) -> None:
    if key not in data:
        return
    val = data[key]
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise SettingsValidationError(f"'{key}' value '{val}' is not numeric.")
    if val < minimum or (exclusive and val == minimum):
        op = ">" if exclusive else ">="
        raise SettingsValidationError(f"'{key}' value {val} must be {op} {minimum}.")


def _require_int(data: dict[str, Any], key: str, minimum: int) -> None:
    if key not in data:
        return
    val = data[key]
    if isinstance(val, bool) or not isinstance(val, int):
        raise SettingsValidationError(f"'{key}' value '{val}' is not an integer.")
    if val < minimum:
        raise SettingsValidationError(f"'{key}' value {val} must be >= {minimum}.")


def _require_text(data: dict[str, Any], key: str) -> None:
    if key not in data:
        return
    val = data[key]
    if not isinstance(val, str) or not val.strip():
        raise SettingsValidationError(f"'{key}' must be a non-empty string.")


def validate_settings(data: dict[str, Any]) -> None:
    """Raise SettingsValidationError if data does not match the settings schema.

    Validates:
      - root is a mapping with no unknown keys
      - base_url is an http(s) URL
      - error_policy is one of the allowed values
      - numeric limits (batch size, attempts, timeout, delays)
    """
    if not isinstance(data, dict):
        raise SettingsValidationError("YAML root must be a mapping.")

    unknown = set(data.keys()) - KNOWN_KEYS
    if unknown:
        raise SettingsValidationError(f"Unknown settings keys: {sorted(unknown)}")

    for key in ("base_url", "sentinel", "user_agent", "error_policy"):
        _require_text(data, key)

    base_url = data.get("base_url")
    if base_url is not None and not base_url.startswith("http"):
        raise SettingsValidationError(f"'base_url' must be an http(s) URL, got '{base_url}'.")

    policy = data.get("error_policy")
    if policy is not None and policy not in VALID_ERROR_POLICIES:
        raise SettingsValidationError(
            f"Invalid error_policy '{policy}'. Must be one of {sorted(VALID_ERROR_POLICIES)}."
        )

    _require_int(data, "max_batch_size", 1)
    _require_int(data, "max_attempts", 1)
    _require_number(data, "timeout_seconds", 0, exclusive=True)
    _require_number(data, "request_delay_seconds", 0, exclusive=False)
    _require_number(data, "request_jitter_seconds", 0, exclusive=False)
