import json
import math
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from ratewindow.core.utils import duration_to_seconds

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)

# (multiplier, divisor); dividing keeps "50ms" equal to 0.05
_UNIT_SECONDS = {
    "ms": (1, 1000),
    "s": (1, 1),
    "m": (60, 1),
    "h": (3600, 1),
}


def parse_duration(raw: Any) -> float:
    """Parse a duration into seconds.

    Accepts a ``timedelta``, a number of seconds, or a string such as
    ``"250ms"``, ``"1.5s"``, ``"2m"`` or ``"1h"`` (no unit means seconds).
    """
    if isinstance(raw, str):
        match = _DURATION_RE.match(raw)
        if not match:
            raise ValueError(f"Invalid duration: {raw!r}")
        value, unit = match.groups()
        multiplier, divisor = _UNIT_SECONDS[(unit or "s").lower()]
        return float(value) * multiplier / divisor
    try:
        return duration_to_seconds(raw)
    except TypeError as e:
        raise ValueError(str(e)) from e


def _parse_count(raw: Any) -> int:
    if isinstance(raw, str):
        return int(raw.strip())
    # bool is an int subclass; 2.7 must not become 2
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"Max executions must be an integer, got {raw!r}")
    if not math.isfinite(raw) or int(raw) != raw:
        raise ValueError(f"Max executions must be an integer, got {raw!r}")
    return int(raw)


def _parse_limit_item(item: Any) -> tuple[float, int]:
    if isinstance(item, dict):
        window = item.get("window", item.get("time"))
        max_executions = item.get("max_executions", item.get("max"))
        if window is None or max_executions is None:
            raise ValueError(f"Limit object needs 'window' and 'max_executions': {item!r}")
        return parse_duration(window), _parse_count(max_executions)
    if isinstance(item, (list, tuple)) and len(item) == 2:
        return parse_duration(item[0]), _parse_count(item[1])
    if isinstance(item, str):
        # "<duration>:<max>"; split on the last colon so "1.5s:10" works
        window, sep, max_executions = item.rpartition(":")
        if not sep or not window:
            raise ValueError(f"Limit must look like '<duration>:<max>', got {item!r}")
        return parse_duration(window), _parse_count(max_executions)
    raise ValueError(f"Unsupported limit entry: {item!r}")


def parse_limits(raw: Any) -> list[tuple[float, int]]:
    """Parse a limits setting into ``(window_seconds, max_executions)`` pairs.

    Supported forms:
        - list of pairs or ``{"window": ..., "max_executions": ...}`` objects
        - JSON text of the above
        - ``"1s:5, 1m:100"`` (comma or whitespace separated)
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [_parse_limit_item(item) for item in raw]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    if raw.startswith(("[", "{")):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON for limits: {e}") from e
        if isinstance(parsed, dict):
            parsed = [parsed]
        return parse_limits(parsed)

    return [_parse_limit_item(part) for part in re.split(r"[,\s]+", raw) if part]


class Settings(BaseSettings):
    """Throttler settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Limits applied by the default throttler, e.g. THROTTLE_LIMITS="1s:10, 1m:300"
    # NoDecode keeps pydantic-settings from insisting on JSON.
    throttle_limits: Annotated[list[tuple[float, int]], NoDecode] = [(1.0, 10)]
    throttle_name: str = "throttler"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("throttle_limits", mode="before")
    @classmethod
    def decode_throttle_limits(cls, v: Any) -> list[tuple[float, int]]:
        return parse_limits(v)

    @field_validator("throttle_limits")
    @classmethod
    def validate_limits_positive(cls, v: list[tuple[float, int]]) -> list[tuple[float, int]]:
        """Validate every window is positive and allows at least one execution."""
        if not v:
            raise ValueError("throttle_limits must contain at least one limit")
        for window, max_executions in v:
            if window <= 0:
                raise ValueError("Limit windows must be positive")
            if max_executions < 1:
                raise ValueError("Limit max executions must be at least 1")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
