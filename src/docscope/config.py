"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from dotenv import load_dotenv

DEFAULT_FOLDERS = "./documents"
DEFAULT_EXCLUDE_PATTERNS = "node_modules,*.app,*.dmg,*.pkg,.git,.DS_Store"
DEFAULT_MODEL = "gpt-3.5-turbo"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def split_csv(value: str | Sequence[str] | None) -> List[str]:
    """Split a comma separated specification into trimmed, non-empty items."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def _parse_bool(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


@dataclass(slots=True)
class AppConfig:
    folders: List[str] = field(default_factory=lambda: split_csv(DEFAULT_FOLDERS))
    exclude_patterns: List[str] = field(default_factory=lambda: split_csv(DEFAULT_EXCLUDE_PATTERNS))
    watch: bool = False
    base_dir: Path | None = None
    stability_threshold: float = 2.0
    poll_interval: float = 0.1
    context_chars: int = 100
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    openai_timeout: float = 60.0
    openai_max_retries: int = 2
    host: str = "127.0.0.1"
    port: int = 3000

    def resolve_base_dir(self) -> Path:
        if self.base_dir is None:
            return Path.cwd()
        return Path(self.base_dir).expanduser().absolute()

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a configuration from environment variables.

        When ``env`` is omitted the process environment is used, after
        loading a ``.env`` file if one is present.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        defaults = cls()
        base_dir = env.get("DOCSCOPE_BASE_DIR")
        return cls(
            folders=split_csv(env.get("DOCUMENTS_FOLDERS", DEFAULT_FOLDERS)),
            exclude_patterns=split_csv(env.get("EXCLUDE_PATTERNS", DEFAULT_EXCLUDE_PATTERNS)),
            watch=_parse_bool(env.get("WATCH_DOCUMENTS")),
            base_dir=Path(base_dir) if base_dir else None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_model=env.get("OPENAI_MODEL", defaults.openai_model),
            host=env.get("HOST", defaults.host),
            port=int(env.get("PORT", defaults.port)),
        )
