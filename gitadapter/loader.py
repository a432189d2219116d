"""Configuration loaders: turn the synchronized entry file into host configuration."""

import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, Optional, Protocol

from .errors import DownstreamLoadError

CADDY_ADAPTERS = ("caddyfile", "nginx", "yaml", "toml", "cue", "hcl")


class ConfigLoader(Protocol):
    """Loads a configuration file in a named format and returns host config bytes."""

    def load(self, path: Path, format_name: str) -> bytes:
        ...


def _read_entry_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise DownstreamLoadError(f"entry file {path} does not exist", cause=e)
    except OSError as e:
        raise DownstreamLoadError(f"entry file {path} could not be read: {e}", cause=e)


class JSONFileLoader:
    """Passes a native JSON configuration through after checking it parses."""

    def load(self, path: Path, format_name: str) -> bytes:
        body = _read_entry_file(path)
        try:
            json.loads(body)
        except ValueError as e:
            raise DownstreamLoadError(f"{path} is not valid JSON: {e}", cause=e)
        return body


class CaddyAdaptLoader:
    """Runs ``caddy adapt`` to convert the entry file into Caddy's JSON config."""

    def __init__(self, caddy_bin: str = "caddy", timeout: float = 30.0):
        self.caddy_bin = caddy_bin
        self.timeout = timeout
        self.logger = logging.getLogger('gitadapter.loader')

    def load(self, path: Path, format_name: str) -> bytes:
        if not path.is_file():
            raise DownstreamLoadError(f"entry file {path} does not exist")

        command = [self.caddy_bin, "adapt", "--config", str(path), "--adapter", format_name]
        self.logger.debug(f"Running {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                cwd=str(path.parent),
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise DownstreamLoadError(f"caddy executable '{self.caddy_bin}' not found", cause=e)
        except subprocess.TimeoutExpired as e:
            raise DownstreamLoadError(f"caddy adapt timed out after {self.timeout}s", cause=e)

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            self.logger.error(f"caddy adapt failed for {path}: {stderr}")
            raise DownstreamLoadError(f"caddy adapt failed for {path}: {stderr}")

        # caddy reports non-fatal adapter warnings on stderr
        if result.stderr:
            self.logger.warning(result.stderr.decode("utf-8", errors="replace").strip())

        return result.stdout


_loaders: Dict[str, ConfigLoader] = {}


def register_loader(format_name: str, loader: ConfigLoader) -> None:
    """Register a loader for a format name, replacing any previous one."""
    _loaders[format_name] = loader


def get_loader(format_name: str) -> ConfigLoader:
    try:
        return _loaders[format_name]
    except KeyError:
        raise DownstreamLoadError(f"no configuration loader registered for format '{format_name}'")


def load_config(path: Path, format_name: str, loader: Optional[ConfigLoader] = None) -> bytes:
    """Load ``path`` with ``loader``, or with the registered loader for the format."""
    loader = loader or get_loader(format_name)
    return loader.load(path, format_name)


def register_default_loaders(caddy_bin: str = "caddy", timeout: float = 30.0) -> None:
    """Register the JSON passthrough and the caddy-backed loaders."""
    register_loader("json", JSONFileLoader())
    caddy = CaddyAdaptLoader(caddy_bin, timeout)
    for name in CADDY_ADAPTERS:
        register_loader(name, caddy)


register_default_loaders()
