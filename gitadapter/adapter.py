"""The git configuration adapter: resolve, synchronize, load."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import Settings
from .git_sync.synchronizer import SyncResult, synchronize
from .loader import ConfigLoader, load_config
from .resolver import SyncOptions, resolve_options


@dataclass
class AdapterWarning:
    """A non-fatal problem found while adapting configuration."""
    file: str
    line: int
    directive: str
    message: str


class GitAdapter:
    """
    Sources host configuration from a git repository.

    The adapter body names the repository; every call brings the local
    clone up to date before the entry file is loaded, so the returned
    configuration always reflects the remote reference at call time.
    """

    def __init__(self, settings: Optional[Settings] = None, loader: Optional[ConfigLoader] = None):
        self.settings = settings or Settings()
        self.loader = loader
        self.logger = logging.getLogger('gitadapter.adapter')
        self.last_sync: Optional[SyncResult] = None

    def resolve(self, body: Union[bytes, str]) -> SyncOptions:
        return resolve_options(body, self.settings)

    def adapt(self, body: Union[bytes, str], options: Optional[Dict[str, Any]] = None) -> Tuple[bytes, List[AdapterWarning]]:
        """
        Turn an adapter body into host configuration.

        Args:
            body: YAML or JSON naming the repository (url, ref, clone_path, caddyfile)
            options: Host-supplied adapter options; accepted for interface
                compatibility and currently unused

        Returns:
            (configuration bytes, warnings); warnings is always empty

        Raises:
            GitAdapterError: a ResolutionError, SyncError or DownstreamLoadError
        """
        sync_options = self.resolve(body)
        self.last_sync = synchronize(sync_options)

        entry_path = sync_options.entry_path
        self.logger.info(f"Loading {entry_path} as {self.settings.config_format}")
        config = load_config(entry_path, self.settings.config_format, self.loader)

        return config, []


_adapters: Dict[str, GitAdapter] = {}


def register_adapter(name: str, adapter: GitAdapter, replace: bool = False) -> None:
    """Register an adapter under a name; a name is registered once unless ``replace`` is set."""
    if name in _adapters and not replace:
        raise ValueError(f"adapter '{name}' is already registered")
    _adapters[name] = adapter


def get_adapter(name: str) -> Optional[GitAdapter]:
    return _adapters.get(name)


register_adapter("git", GitAdapter())
