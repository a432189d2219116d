"""Parsing of the plain-string reference given in adapter input."""

import re
from dataclasses import dataclass
from enum import Enum

BRANCH_PREFIX = "refs/heads/"
TAG_PREFIX = "refs/tags/"

_HEX_SHA_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")
_REVISION_OPERATORS = ("~", "^", "@{", ":")
_PSEUDO_REF_RE = re.compile(r"^(HEAD|@|[A-Z]+(?:_[A-Z]+)*_HEAD)$")
_FORBIDDEN_RE = re.compile(r"[\x00-\x20\x7f]")


class ReferenceKind(Enum):
    """What a reference string names."""
    BRANCH = "branch"
    TAG = "tag"
    REVISION = "revision"
    UNQUALIFIED = "unqualified"   # branch or tag, decided against the repository


@dataclass(frozen=True)
class Reference:
    """A parsed reference: the raw string, its kind and its short name."""
    raw: str
    kind: ReferenceKind
    name: str

    @property
    def is_symbolic(self) -> bool:
        """True when the reference names a branch or tag that can be pulled."""
        return self.kind is not ReferenceKind.REVISION

    def __str__(self) -> str:
        return self.raw


def validate_reference(raw: str) -> None:
    """Raise ValueError if ``raw`` cannot be handed to git as a reference."""
    if not raw:
        raise ValueError("reference must not be empty")
    if _FORBIDDEN_RE.search(raw):
        raise ValueError(f"reference {raw!r} contains whitespace or control characters")
    if raw.startswith("-"):
        raise ValueError(f"reference {raw!r} must not start with '-'")
    if raw.endswith("/") or raw.endswith(".lock") or ".." in raw:
        raise ValueError(f"reference {raw!r} is not a valid ref name")


def parse_reference(raw: str) -> Reference:
    """
    Classify a reference string.

    ``refs/heads/<name>`` is a branch and ``refs/tags/<name>`` a tag. Hex
    object names and expressions using revision operators (``HEAD~1``,
    ``v1.0^{commit}``) are revisions, as are ``HEAD``, ``@`` and the other
    ``*_HEAD`` pseudo-refs. Anything else is unqualified and is
    looked up as a remote branch first, then as a tag.

    Raises:
        ValueError: if the string is not usable as a reference
    """
    raw = raw.strip()
    validate_reference(raw)

    if raw.startswith(BRANCH_PREFIX) and len(raw) > len(BRANCH_PREFIX):
        return Reference(raw, ReferenceKind.BRANCH, raw[len(BRANCH_PREFIX):])
    if raw.startswith(TAG_PREFIX) and len(raw) > len(TAG_PREFIX):
        return Reference(raw, ReferenceKind.TAG, raw[len(TAG_PREFIX):])
    if _PSEUDO_REF_RE.match(raw) or _HEX_SHA_RE.match(raw) or any(op in raw for op in _REVISION_OPERATORS):
        return Reference(raw, ReferenceKind.REVISION, raw)
    return Reference(raw, ReferenceKind.UNQUALIFIED, raw)
