from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from hardshipdocs.core.errors import ConfigurationError

DEFAULT_CACHE_FILENAME = "cache.json"
DEFAULT_OUTPUT_DIRNAME = "output"


@dataclass(frozen=True)
class AppSettings:
    completion_endpoint: str | None
    completion_api_key: str | None
    layout_endpoint: str | None
    layout_api_key: str | None
    cache_path: Path
    output_dir: Path
    poll_interval_seconds: float = 2.0
    poll_timeout_seconds: float | None = 600.0
    poll_backoff: float = 1.0
    http_timeout_seconds: float = 120.0
    use_cache: bool = True

    def require_completion(self) -> tuple[str, str]:
        if not self.completion_endpoint or not self.completion_api_key:
            raise ConfigurationError(
                "AZURE_OPENAI_ENDPOINT and AZURE_API_KEY must be set to call the language model"
            )
        return self.completion_endpoint, self.completion_api_key

    def require_layout(self) -> tuple[str, str]:
        if not self.layout_endpoint or not self.layout_api_key:
            raise ConfigurationError(
                "DOC_INTELLIGENCE_ENDPOINT and DOC_INTELLIGENCE_API_KEY must be set to run layout analysis"
            )
        return self.layout_endpoint, self.layout_api_key


def load_settings(env_file: Path | None = None, working_dir: Path | None = None) -> AppSettings:
    if env_file is not None:
        if not env_file.exists():
            raise ConfigurationError(f"Environment file not found: {env_file}")
        load_dotenv(env_file)
    else:
        load_dotenv()

    root = (working_dir or Path.cwd()).expanduser().resolve()

    return AppSettings(
        completion_endpoint=_read_str_env("AZURE_OPENAI_ENDPOINT"),
        completion_api_key=_read_str_env("AZURE_API_KEY"),
        layout_endpoint=_read_str_env("DOC_INTELLIGENCE_ENDPOINT"),
        layout_api_key=_read_str_env("DOC_INTELLIGENCE_API_KEY"),
        cache_path=_read_path_env("HARDSHIP_CACHE_PATH", root / DEFAULT_CACHE_FILENAME),
        output_dir=_read_path_env("HARDSHIP_OUTPUT_DIR", root / DEFAULT_OUTPUT_DIRNAME),
        poll_interval_seconds=_read_float_env("HARDSHIP_POLL_INTERVAL_SECONDS", 2.0),
        poll_timeout_seconds=_read_optional_float_env("HARDSHIP_POLL_TIMEOUT_SECONDS", 600.0),
        poll_backoff=max(1.0, _read_float_env("HARDSHIP_POLL_BACKOFF", 1.0)),
        http_timeout_seconds=_read_float_env("HARDSHIP_HTTP_TIMEOUT_SECONDS", 120.0),
        use_cache=_read_bool_env("HARDSHIP_USE_CACHE", True),
    )


def _read_str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _read_path_env(name: str, default: Path) -> Path:
    raw = _read_str_env(name)
    if raw is None:
        return default
    return Path(raw).expanduser().resolve()


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _read_optional_float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"", "0", "none", "off"}:
        return None
    try:
        value = float(normalized)
    except ValueError:
        return default
    return value if value > 0 else default
