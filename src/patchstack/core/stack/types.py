"""Stack state data model.

A Series is the ordered collection of patches on one branch, partitioned into
applied (bottom prefix), unapplied and hidden patches. Series values are
immutable; every operation returns a new Series, which is what lets a whole
batch of changes be persisted in a single write.
"""

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any

STACK_FORMAT_VERSION = 5


@dataclass(frozen=True)
class Patch:
    """A named pointer to exactly one commit."""

    name: str
    commit_id: str


@dataclass(frozen=True)
class Series:
    """Ordered patches of one branch plus the recorded branch head.

    Attributes:
        head: Branch head recorded by the last transaction. It is also the
            base of the stack while no patch is applied.
        applied: Applied patch names, bottom to top
        unapplied: Unapplied patch names, in the order they would be pushed
        hidden: Hidden patch names
        patches: Commit id of every patch, keyed by name
        prev: Id of the previously persisted state, if any
    """

    head: str
    applied: tuple[str, ...] = ()
    unapplied: tuple[str, ...] = ()
    hidden: tuple[str, ...] = ()
    patches: dict[str, str] = field(default_factory=dict)
    prev: str | None = None

    def __post_init__(self) -> None:
        names = [*self.applied, *self.unapplied, *self.hidden]
        if len(names) != len(set(names)):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ValueError(f"Duplicate patch names in series: {', '.join(duplicates)}")
        if set(names) != set(self.patches):
            raise ValueError("Series order and patch table disagree")

    @staticmethod
    def empty(head: str) -> "Series":
        return Series(head=head)

    @property
    def top(self) -> str:
        """Commit of the last applied patch, or head when nothing is applied."""
        if self.applied:
            return self.patches[self.applied[-1]]
        return self.head

    @property
    def top_name(self) -> str | None:
        return self.applied[-1] if self.applied else None

    def all_names(self) -> tuple[str, ...]:
        return (*self.applied, *self.unapplied, *self.hidden)

    def has_patch(self, name: str) -> bool:
        return name in self.patches

    def is_applied(self, name: str) -> bool:
        return name in self.applied

    def patch(self, name: str) -> Patch:
        return Patch(name=name, commit_id=self.patches[name])

    def iter_patches(self) -> Iterator[Patch]:
        for name in self.all_names():
            yield self.patch(name)

    def push_applied(self, new_patches: Iterable[Patch]) -> "Series":
        """Return a Series with new_patches applied directly above the current top.

        Unapplied and hidden patches keep their positions after the applied run.
        """
        new_patches = list(new_patches)
        patches = dict(self.patches)
        for patch in new_patches:
            patches[patch.name] = patch.commit_id
        return replace(
            self,
            applied=(*self.applied, *(patch.name for patch in new_patches)),
            patches=patches,
        )

    def insert_applied_bottom(self, new_patches: Iterable[Patch]) -> "Series":
        """Return a Series with new_patches applied below the bottom applied patch."""
        new_patches = list(new_patches)
        patches = dict(self.patches)
        for patch in new_patches:
            patches[patch.name] = patch.commit_id
        return replace(
            self,
            applied=(*(patch.name for patch in new_patches), *self.applied),
            patches=patches,
        )

    def drop_bottom_applied(self, count: int) -> "Series":
        """Return a Series without its bottom `count` applied patches.

        When no applied patch remains, head moves to the commit of the newest
        removed patch, which is where the stack's base now sits.
        """
        removed = self.applied[:count]
        remaining = self.applied[count:]
        patches = {name: oid for name, oid in self.patches.items() if name not in removed}
        head = self.head
        if removed and not remaining:
            head = self.patches[removed[-1]]
        return replace(self, head=head, applied=remaining, patches=patches)


@dataclass(frozen=True)
class StackSnapshot:
    """A Series together with the version token it was read at.

    The token is the id of the persisted state commit; writes compare it with
    the current state to detect concurrent modification.
    """

    series: Series
    token: str


# ============================================================================
# stack.json encoding
# ============================================================================


def series_to_json(series: Series) -> str:
    """Encode a series in the version 5 stack.json layout."""
    data: dict[str, Any] = {
        "version": STACK_FORMAT_VERSION,
        "prev": series.prev,
        "head": series.head,
        "applied": list(series.applied),
        "unapplied": list(series.unapplied),
        "hidden": list(series.hidden),
        "patches": {name: {"oid": series.patches[name]} for name in sorted(series.patches)},
    }
    return json.dumps(data, indent=2) + "\n"


def series_from_json(text: str) -> Series:
    """Decode a stack.json document.

    Raises:
        ValueError: If the document is not valid version 5 stack state
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"stack.json is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"stack.json must hold an object, not {type(data).__name__}")

    # Some writers store the version as a string
    version = data.get("version")
    if str(version) != str(STACK_FORMAT_VERSION):
        raise ValueError(f"Unsupported stack.json version {version!r}")

    try:
        return Series(
            head=data["head"],
            applied=tuple(data.get("applied", [])),
            unapplied=tuple(data.get("unapplied", [])),
            hidden=tuple(data.get("hidden", [])),
            patches={name: desc["oid"] for name, desc in data.get("patches", {}).items()},
            prev=data.get("prev"),
        )
    except (AttributeError, KeyError, TypeError) as e:
        raise ValueError(f"Malformed stack.json: {e}") from e
