"""Configuration loading from environment variables and memplus.toml."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_WORKSPACE = Path.home() / ".memplus"
_CONFIG_FILENAME = "memplus.toml"
_ENV_REF_RE = re.compile(r"\$\{([^}]+)\}")

DEFAULT_MODEL = "claude-haiku-4-5"


@dataclass
class ExtractionConfig:
    """LLM extraction backend. An empty engine name disables it."""

    engine: str = "anthropic_api"
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    timeout: float = 20.0


@dataclass
class MemplusConfig:
    """Top-level memplus configuration."""

    auto_capture: bool = True
    auto_recall: bool = True
    debug: bool = False
    summary_max_bullets: int = 3
    min_capture_chars: int = 20
    max_recall_results: int = 5
    min_recall_score: float = 0.2
    profile_frequency: int = 5
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    workspace: Path = _DEFAULT_WORKSPACE
    log_level: str = "INFO"


def read_number(
    value: object, fallback: float, low: float | None = None, high: float | None = None
) -> float:
    """Coerce *value* to a number, clamped to [low, high]; *fallback* if unusable."""
    parsed = fallback
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            pass
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        parsed = fallback
    if low is not None and parsed < low:
        return low
    if high is not None and parsed > high:
        return high
    return parsed


def read_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
    return default


def read_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def resolve_env_vars(value: str | None) -> str | None:
    """Expand ``${VAR}`` references. Raises ValueError for unset variables."""
    if not value:
        return None

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1)
        env_value = os.getenv(name)
        if not env_value:
            raise ValueError(f"Environment variable {name} is not set")
        return env_value

    return _ENV_REF_RE.sub(_sub, value)


def load_config(config_path: Path | None = None) -> MemplusConfig:
    """Load configuration from environment variables and optional memplus.toml.

    Priority: environment variables > memplus.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memplus/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_WORKSPACE / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    extraction_data = file_data.get("extraction", {})
    if not isinstance(extraction_data, dict):
        extraction_data = {}

    def setting(env: str, key: str, data: dict = file_data) -> object:
        return os.getenv(env, data.get(key))

    engine = os.getenv("MEMPLUS_ENGINE", extraction_data.get("engine", "anthropic_api"))
    api_key = resolve_env_vars(read_string(extraction_data.get("api_key")))

    return MemplusConfig(
        auto_capture=read_bool(setting("MEMPLUS_AUTO_CAPTURE", "auto_capture"), True),
        auto_recall=read_bool(setting("MEMPLUS_AUTO_RECALL", "auto_recall"), True),
        debug=read_bool(setting("MEMPLUS_DEBUG", "debug"), False),
        summary_max_bullets=int(
            read_number(setting("MEMPLUS_SUMMARY_MAX_BULLETS", "summary_max_bullets"), 3, 1, 10)
        ),
        min_capture_chars=int(
            read_number(setting("MEMPLUS_MIN_CAPTURE_CHARS", "min_capture_chars"), 20, 0, 5000)
        ),
        max_recall_results=int(
            read_number(setting("MEMPLUS_MAX_RECALL_RESULTS", "max_recall_results"), 5, 1, 20)
        ),
        min_recall_score=read_number(
            setting("MEMPLUS_MIN_RECALL_SCORE", "min_recall_score"), 0.2, 0, 1
        ),
        profile_frequency=int(
            read_number(setting("MEMPLUS_PROFILE_FREQUENCY", "profile_frequency"), 5, 0, 100)
        ),
        extraction=ExtractionConfig(
            engine=(engine or "").strip(),
            model=os.getenv("MEMPLUS_MODEL", read_string(extraction_data.get("model")) or DEFAULT_MODEL),
            api_key=api_key or os.getenv("ANTHROPIC_API_KEY"),
            timeout=read_number(
                setting("MEMPLUS_TIMEOUT", "timeout", extraction_data), 20.0, 1, 120
            ),
        ),
        workspace=Path(
            os.getenv("MEMPLUS_WORKSPACE", file_data.get("workspace", str(_DEFAULT_WORKSPACE)))
        ).expanduser(),
        log_level=os.getenv("MEMPLUS_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
