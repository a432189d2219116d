"""Git repository synchronization for the configuration adapter."""

from .reference import Reference, ReferenceKind, parse_reference
from .synchronizer import RepositorySynchronizer, SyncResult, synchronize

__all__ = [
    'Reference',
    'ReferenceKind',
    'parse_reference',
    'RepositorySynchronizer',
    'SyncResult',
    'synchronize'
]
