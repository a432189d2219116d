"""
Git configuration adapter - source host configuration from a git repository.

The adapter keeps a local clone in step with a remote reference and hands
the entry file (a Caddyfile by default) to a configuration loader.
"""

__version__ = "1.0.0"
__description__ = "Git configuration adapter - load host configuration from a git repository"

from .adapter import GitAdapter, get_adapter, register_adapter
from .config import Settings, load_configuration
from .git_sync import SyncResult, synchronize
from .resolver import SyncOptions, resolve_options

__all__ = [
    "GitAdapter",
    "get_adapter",
    "register_adapter",
    "Settings",
    "load_configuration",
    "SyncOptions",
    "resolve_options",
    "SyncResult",
    "synchronize",
]
