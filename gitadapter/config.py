"""Process-level settings for the git configuration adapter."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .platform import (
    find_executable,
    get_platform_specific_defaults,
    normalize_path,
    validate_git_availability,
)

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")

# Formats handled without the caddy binary
NATIVE_FORMATS = ("json",)


@dataclass(frozen=True)
class Settings:
    """Settings resolved once at startup and threaded through every call."""

    # Where clones live when the input names no clone_path
    clone_root: Path = field(default_factory=lambda: get_platform_specific_defaults()['clone_root'])
    default_ref: str = "master"
    entry_file: str = "Caddyfile"
    namespace_clones: bool = True

    # Downstream configuration interpreter
    config_format: str = "caddyfile"
    caddy_bin: str = "caddy"
    loader_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        object.__setattr__(self, "clone_root", normalize_path(self.clone_root))
        object.__setattr__(self, "log_level", self.log_level.upper())

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")

        if not self.default_ref.strip():
            raise ValueError("default_ref must not be empty")

        if not self.entry_file.strip():
            raise ValueError("entry_file must not be empty")

        if not self.config_format.strip():
            raise ValueError("config_format must not be empty")

        if self.loader_timeout <= 0:
            raise ValueError("loader_timeout must be positive")


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def load_configuration() -> Settings:
    """Load settings from GITADAPTER_* environment variables and a .env file."""
    load_dotenv()

    try:
        defaults = get_platform_specific_defaults()

        return Settings(
            clone_root=Path(os.getenv("GITADAPTER_CLONE_ROOT", str(defaults['clone_root']))),
            default_ref=os.getenv("GITADAPTER_DEFAULT_REF", defaults['default_ref']),
            entry_file=os.getenv("GITADAPTER_ENTRY_FILE", defaults['entry_file']),
            namespace_clones=_parse_bool(
                "GITADAPTER_NAMESPACE_CLONES", os.getenv("GITADAPTER_NAMESPACE_CLONES", "true")
            ),
            config_format=os.getenv("GITADAPTER_CONFIG_FORMAT", defaults['config_format']),
            caddy_bin=os.getenv("GITADAPTER_CADDY_BIN", defaults['caddy_bin']),
            loader_timeout=float(os.getenv("GITADAPTER_LOADER_TIMEOUT", str(defaults['loader_timeout']))),
            log_level=os.getenv("GITADAPTER_LOG_LEVEL", defaults['log_level']),
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")


def validate_configuration(settings: Settings) -> List[str]:
    """Check the environment the settings point at; return ERROR:/WARNING: lines."""
    errors = []

    try:
        settings.clone_root.mkdir(parents=True, exist_ok=True)
        if not os.access(settings.clone_root, os.W_OK):
            errors.append(f"ERROR: Clone root is not writable: {settings.clone_root}")
    except OSError as e:
        errors.append(f"ERROR: Cannot access clone root {settings.clone_root}: {e}")

    git_ok, git_error = validate_git_availability()
    if not git_ok:
        errors.append(f"ERROR: {git_error}")

    if settings.config_format not in NATIVE_FORMATS and find_executable(settings.caddy_bin) is None:
        errors.append(
            f"WARNING: '{settings.caddy_bin}' not found on PATH; "
            f"loading '{settings.config_format}' configuration will fail"
        )

    if not settings.namespace_clones:
        logging.getLogger('gitadapter.config').debug(
            "Clone namespacing disabled; distinct remotes must use distinct clone paths"
        )

    return errors
