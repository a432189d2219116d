"""Decoding of adapter input into normalized sync options."""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import yaml

from .config import Settings
from .errors import InvalidFieldError, MalformedInputError, MissingRequiredFieldError
from .git_sync.reference import Reference, parse_reference

URL_FIELD = "url"
REF_FIELD = "ref"
LEGACY_REF_FIELD = "branch"
CLONE_PATH_FIELD = "clone_path"
ENTRY_FILE_FIELD = "caddyfile"

KNOWN_FIELDS = (URL_FIELD, REF_FIELD, LEGACY_REF_FIELD, CLONE_PATH_FIELD, ENTRY_FILE_FIELD)

_SCP_LIKE_RE = re.compile(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>.+)$")
_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9._-]+")

logger = logging.getLogger('gitadapter.resolver')


@dataclass(frozen=True)
class SyncOptions:
    """Everything the synchronizer needs, with defaults already applied."""
    remote_url: str
    reference: str
    clone_path: Path
    entry_file: str
    namespaced: bool = True

    @property
    def parsed_reference(self) -> Reference:
        return parse_reference(self.reference)

    @property
    def local_path(self) -> Path:
        """Directory the repository is synchronized into."""
        if not self.namespaced:
            return self.clone_path
        return self.clone_path.joinpath(*repository_namespace(self.remote_url))

    @property
    def entry_path(self) -> Path:
        return self.local_path / self.entry_file


def _sanitize_segment(segment: str) -> str:
    return _SANITIZE_RE.sub("-", segment).strip("-")


def repository_namespace(remote_url: str) -> List[str]:
    """
    Split a remote URL into the directory segments used to namespace clones.

    ``https://example.com/org/conf.git`` gives ``["example.com", "org",
    "conf.git"]``; scp-style ``git@host:org/conf.git`` gives the same shape.
    Dot segments are dropped so the result always stays below the clone root.

    Raises:
        ValueError: if the URL cannot be parsed
    """
    match = None if "://" in remote_url else _SCP_LIKE_RE.match(remote_url)
    if match:
        host, path = match.group("host"), match.group("path")
    else:
        parsed = urlparse(remote_url)
        host = parsed.netloc.rsplit("@", 1)[-1]
        path = parsed.path

    segments = [host] + path.replace("\\", "/").split("/")
    cleaned = []
    for segment in segments:
        if segment in ("", ".", ".."):
            continue
        segment = _sanitize_segment(segment)
        if segment and segment not in (".", ".."):
            cleaned.append(segment)

    return cleaned or ["repo"]


def _decode(raw: Union[bytes, str]) -> Dict[str, Any]:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"adapter input is not valid UTF-8: {e}", cause=e)

    try:
        decoded = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise MalformedInputError(f"adapter input could not be decoded: {e}", cause=e)

    if decoded is None:
        return {}
    if not isinstance(decoded, dict):
        raise MalformedInputError(
            f"adapter input must be a mapping, got {type(decoded).__name__}"
        )
    return decoded


def _string_field(data: Dict[str, Any], name: str) -> Optional[str]:
    """Return a field as a stripped string; None when unset or empty."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidFieldError(
            name, f"field '{name}' must be a string, got {type(value).__name__} (quote the value)"
        )
    value = value.strip()
    return value or None


def _reconcile_reference(data: Dict[str, Any]) -> Optional[str]:
    ref = _string_field(data, REF_FIELD)
    legacy = _string_field(data, LEGACY_REF_FIELD)

    if legacy is not None:
        if ref is not None and ref != legacy:
            raise MalformedInputError(
                f"conflicting reference fields: '{REF_FIELD}: {ref}' and '{LEGACY_REF_FIELD}: {legacy}'"
            )
        logger.warning(f"Field '{LEGACY_REF_FIELD}' is deprecated; use '{REF_FIELD}' instead")
        ref = legacy

    return ref


def _validate_entry_file(entry_file: str) -> None:
    posix = PurePosixPath(entry_file)
    windows = PureWindowsPath(entry_file)
    if posix.is_absolute() or windows.is_absolute() or windows.drive:
        raise InvalidFieldError(ENTRY_FILE_FIELD, f"entry file must be a relative path, got {entry_file!r}")
    if ".." in posix.parts or ".." in windows.parts:
        raise InvalidFieldError(ENTRY_FILE_FIELD, f"entry file must stay inside the repository, got {entry_file!r}")


def resolve_options(raw: Union[bytes, str], settings: Optional[Settings] = None) -> SyncOptions:
    """
    Decode adapter input (JSON or YAML) and fill in defaults.

    Args:
        raw: The adapter body
        settings: Process settings supplying defaults; ``Settings()`` if omitted

    Returns:
        Resolved SyncOptions

    Raises:
        MalformedInputError: the input does not decode to a mapping, or a
            field holds an unusable value (InvalidFieldError)
        MissingRequiredFieldError: ``url`` is absent or empty
    """
    settings = settings or Settings()
    data = _decode(raw)

    unknown = sorted(str(key) for key in data if key not in KNOWN_FIELDS)
    if unknown:
        logger.warning(f"Ignoring unknown adapter fields: {', '.join(unknown)}")

    remote_url = _string_field(data, URL_FIELD)
    if remote_url is None:
        logger.error("Adapter input has no url")
        raise MissingRequiredFieldError(URL_FIELD)

    reference = _reconcile_reference(data) or settings.default_ref
    try:
        parse_reference(reference)
    except ValueError as e:
        raise InvalidFieldError(REF_FIELD, str(e), cause=e)

    clone_path_value = _string_field(data, CLONE_PATH_FIELD)
    if clone_path_value is None:
        clone_path = settings.clone_root
    else:
        clone_path = Path(os.path.abspath(os.path.expanduser(clone_path_value)))

    entry_file = _string_field(data, ENTRY_FILE_FIELD) or settings.entry_file
    _validate_entry_file(entry_file)

    options = SyncOptions(
        remote_url=remote_url,
        reference=reference,
        clone_path=clone_path,
        entry_file=entry_file,
        namespaced=settings.namespace_clones,
    )

    try:
        local_path = options.local_path
    except ValueError as e:
        raise MalformedInputError(f"url {remote_url!r} could not be parsed: {e}", cause=e)

    logger.debug(f"Resolved adapter options: url={remote_url} ref={reference} path={local_path}")
    return options
