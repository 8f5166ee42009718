"""Patch name validation and derivation.

This module provides pure functions for checking user-supplied patch names
and for turning commit messages into unique, valid patch names. No function
here does I/O; callers pass in the messages and the names already taken.
"""

import re
import unicodedata
from collections.abc import Iterable, Sequence

from patchstack.core.errors import InvalidPatchNameError, PatchNameCollisionError
from patchstack.core.global_config import DEFAULT_NAME_LENGTH_LIMIT

FALLBACK_PATCH_NAME = "patch"

# Characters git refuses inside ref names; patch names follow the same rules
_FORBIDDEN_CHARS = set("~^:?*[\\")


def validate_patch_name(name: str) -> str:
    """Check that name can be used as a patch name.

    Returns:
        The name unchanged

    Raises:
        InvalidPatchNameError: If the name is empty, contains "..", or breaks
            one of git's ref name rules
    """
    if not name:
        raise InvalidPatchNameError(name, "name must not be empty")
    if ".." in name:
        raise InvalidPatchNameError(name, "name must not contain '..'")
    for char in name:
        if char.isspace() or ord(char) < 32 or ord(char) == 127:
            raise InvalidPatchNameError(
                name, "name must not contain whitespace or control characters"
            )
        if char in _FORBIDDEN_CHARS:
            raise InvalidPatchNameError(name, f"name must not contain {char!r}")
    if "@{" in name or name == "@":
        raise InvalidPatchNameError(name, "name must not contain '@{' or be '@'")
    if name.startswith(("-", ".")) or "/." in name:
        raise InvalidPatchNameError(name, "name components must not start with '-' or '.'")
    if name.endswith((".", "/", ".lock")):
        raise InvalidPatchNameError(name, "name must not end with '.', '/' or '.lock'")
    if "//" in name:
        raise InvalidPatchNameError(name, "name must not contain '//'")
    return name


def slugify_message(
    message: str,
    *,
    length_limit: int = DEFAULT_NAME_LENGTH_LIMIT,
    lowercase: bool = True,
) -> str:
    """Derive a patch name candidate from a commit message.

    Transformation:
    1. Take the first non-blank line
    2. Lowercase (unless disabled)
    3. Decompose accents and drop non-ASCII characters
    4. Replace each run of whitespace and punctuation with a single hyphen
    5. Strip leading/trailing hyphens
    6. Truncate to length_limit

    Returns "patch" if nothing usable remains.

    Examples:
        >>> slugify_message("Foo Patch")
        'foo-patch'
        >>> slugify_message("Fix: Bug #123\\n\\nLonger description")
        'fix-bug-123'
        >>> slugify_message("")
        'patch'
    """
    stripped = message.strip()
    first_line = stripped.splitlines()[0] if stripped else ""
    if lowercase:
        first_line = first_line.lower()

    normalized = unicodedata.normalize("NFKD", first_line)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")

    trimmed = re.sub(r"[^A-Za-z0-9]+", "-", ascii_only).strip("-")
    if len(trimmed) > length_limit:
        trimmed = trimmed[:length_limit].rstrip("-")

    return trimmed or FALLBACK_PATCH_NAME


def make_unique_name(candidate: str, taken: Iterable[str]) -> str:
    """Return candidate, or candidate-1, candidate-2, ... whichever is free first."""
    taken_set = set(taken)
    if candidate not in taken_set:
        return candidate
    suffix = 1
    while f"{candidate}-{suffix}" in taken_set:
        suffix += 1
    return f"{candidate}-{suffix}"


def expand_prefix(prefix: str, count: int) -> list[str]:
    """Number a prefix for a batch of patches, oldest first.

    Example:
        >>> expand_prefix("foobar", 2)
        ['foobar1', 'foobar2']
    """
    return [f"{prefix}{index}" for index in range(1, count + 1)]


def assign_patch_names(
    proposed: Sequence[str | None],
    messages: Sequence[str | None],
    taken: Iterable[str],
    *,
    length_limit: int = DEFAULT_NAME_LENGTH_LIMIT,
    lowercase: bool = True,
) -> list[str]:
    """Settle the final names for a batch of new patches.

    Supplied names are validated and checked against the taken names (and each
    other) first; only then are the missing names derived, so a single bad
    name rejects the whole batch before anything else happens.

    Args:
        proposed: Name per new patch, None where it must be derived
        messages: Commit message per new patch; only read where proposed is None
        taken: Names already present in the series
        length_limit: Maximum length of derived names
        lowercase: Whether derived names are lower-cased

    Returns:
        Final names, aligned with proposed

    Raises:
        InvalidPatchNameError: If a supplied name is not valid
        PatchNameCollisionError: If a supplied name is already taken
    """
    if len(proposed) != len(messages):
        raise ValueError("proposed names and messages must have the same length")

    taken_set = set(taken)
    for name in proposed:
        if name is None:
            continue
        validate_patch_name(name)
        if name in taken_set:
            raise PatchNameCollisionError(name)
        taken_set.add(name)

    names: list[str] = []
    for name, message in zip(proposed, messages, strict=True):
        if name is None:
            candidate = slugify_message(
                message or "", length_limit=length_limit, lowercase=lowercase
            )
            name = make_unique_name(candidate, taken_set)
            taken_set.add(name)
        names.append(name)
    return names
