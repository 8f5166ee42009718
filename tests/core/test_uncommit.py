"""Tests for turning commits into patches."""

from pathlib import Path

import pytest

from patchstack.core.commit import CommitRequest, commit_patches
from patchstack.core.errors import (
    CommitAlreadyTrackedError,
    ConcurrentModificationError,
    InsufficientHistoryError,
    InvalidPatchNameError,
    NonLinearHistoryError,
    PatchNameCollisionError,
    StackNotInitializedError,
    StackStorageError,
)
from patchstack.core.selection import UncommitRequest
from patchstack.core.stack.types import Series
from patchstack.core.uncommit import uncommit
from tests.fakes.git import FakeCommit, FakeGit, fake_commit_id, linear_history
from tests.fakes.stack_store import FakeStackStore

REPO = Path("/test/repo")


class History:
    """Initial commit -> Foo Patch -> Bar Patch, with HEAD on Bar Patch."""

    def __init__(self) -> None:
        commits, (self.root, self.foo, self.bar) = linear_history(
            "Initial commit", "Foo Patch", "Bar Patch"
        )
        self.git = FakeGit(commits=commits, head=self.bar)


@pytest.fixture
def history() -> History:
    return History()


def _store_at(
    head: str, *, conflicts: int = 0, write_raises: Exception | None = None
) -> FakeStackStore:
    return FakeStackStore(
        series=Series.empty(head), conflicts=conflicts, write_raises=write_raises
    )


def test_count_with_prefix_numbers_patches_oldest_first(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(history.git, store, REPO, UncommitRequest(count=2, names=("foobar",)))

    assert created == ["foobar1", "foobar2"]
    assert store.series is not None
    assert store.series.applied == ("foobar1", "foobar2")
    assert store.series.patches == {"foobar1": history.foo, "foobar2": history.bar}
    # foobar2 sits directly on foobar1
    assert history.git.commit_parents(REPO, store.series.patches["foobar2"]) == [
        store.series.patches["foobar1"]
    ]


def test_count_without_names_derives_names(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(history.git, store, REPO, UncommitRequest(count=2))

    assert created == ["foo-patch", "bar-patch"]
    assert store.series is not None
    assert store.series.applied == ("foo-patch", "bar-patch")


def test_default_uncommits_head_commit(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(history.git, store, REPO, UncommitRequest())

    assert created == ["bar-patch"]
    assert store.series is not None
    assert store.series.patches == {"bar-patch": history.bar}


def test_names_are_assigned_oldest_first(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(history.git, store, REPO, UncommitRequest(names=("bar", "foo")))

    assert created == ["bar", "foo"]
    assert store.series is not None
    assert store.series.patches == {"bar": history.foo, "foo": history.bar}


def test_messages_are_read_only_for_unnamed_commits(history: History) -> None:
    store = _store_at(history.bar)

    uncommit(history.git, store, REPO, UncommitRequest(names=("bar", "foo")))

    assert history.git.message_reads == []


def test_head_is_never_moved(history: History) -> None:
    store = _store_at(history.bar)

    uncommit(history.git, store, REPO, UncommitRequest(count=2))

    assert history.git.ref_head(REPO) == history.bar
    assert store.series is not None
    assert store.series.head == history.bar
    assert store.series.top == history.bar


def test_to_includes_target(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(history.git, store, REPO, UncommitRequest(target="HEAD^"))

    assert created == ["foo-patch", "bar-patch"]


def test_to_exclusive_leaves_target_as_history(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(
        history.git, store, REPO, UncommitRequest(target="HEAD^", exclusive=True)
    )

    assert created == ["bar-patch"]
    assert store.series is not None
    assert store.series.patches == {"bar-patch": history.bar}


def test_empty_selection_writes_nothing(history: History) -> None:
    store = _store_at(history.bar)

    created = uncommit(
        history.git, store, REPO, UncommitRequest(target="HEAD", exclusive=True)
    )

    assert created == []
    assert store.write_attempts == 0


def test_new_patches_go_above_existing_top(history: History) -> None:
    # A patch recorded on top of Bar Patch while the branch was reset to Bar Patch
    extra = fake_commit_id("extra")
    commits = {
        history.root: FakeCommit(parents=(), message="Initial commit"),
        history.foo: FakeCommit(parents=(history.root,), message="Foo Patch"),
        history.bar: FakeCommit(parents=(history.foo,), message="Bar Patch"),
        extra: FakeCommit(parents=(history.bar,), message="Extra"),
    }
    git = FakeGit(commits=commits, head=history.bar)
    store = FakeStackStore(
        series=Series(
            head=history.bar,
            applied=("extra",),
            unapplied=("parked",),
            patches={"extra": extra, "parked": history.root},
        )
    )

    created = uncommit(git, store, REPO, UncommitRequest(names=("bar",)))

    assert created == ["bar"]
    assert store.series is not None
    assert store.series.applied == ("extra", "bar")
    assert store.series.unapplied == ("parked",)
    assert store.series.patches["bar"] == history.bar
    assert store.series.head == history.bar


def test_merge_commit_is_rejected_and_series_unchanged() -> None:
    commits, (root, side) = linear_history("Initial commit", "Side work")
    merge = fake_commit_id("merge")
    commits[merge] = FakeCommit(parents=(root, side), message="Merge side")
    git = FakeGit(commits=commits, head=merge)
    store = _store_at(merge)
    before = store.series

    with pytest.raises(NonLinearHistoryError):
        uncommit(git, store, REPO, UncommitRequest())

    assert store.series == before
    assert store.write_attempts == 0


def test_running_out_of_history_leaves_series_unchanged(history: History) -> None:
    store = _store_at(history.bar)
    before = store.series

    with pytest.raises(InsufficientHistoryError):
        uncommit(history.git, store, REPO, UncommitRequest(count=5))

    assert store.series == before
    assert store.write_attempts == 0


def test_name_collision_is_rejected_and_series_unchanged(history: History) -> None:
    store = FakeStackStore(
        series=Series(head=history.foo, applied=("bar-patch",), patches={"bar-patch": history.bar})
    )
    before = store.series

    with pytest.raises(PatchNameCollisionError) as exc_info:
        uncommit(history.git, store, REPO, UncommitRequest(names=("bar-patch",)))

    assert str(exc_info.value) == "Patch `bar-patch` already exists"
    assert store.series == before
    assert store.write_attempts == 0


def test_derived_name_collision_gets_suffix(history: History) -> None:
    # A hand-named patch already uses the name Foo Patch would derive
    store = FakeStackStore(
        series=Series(head=history.foo, applied=("foo-patch",), patches={"foo-patch": history.bar})
    )

    created = uncommit(history.git, store, REPO, UncommitRequest())

    assert created == ["foo-patch-1"]
    assert store.series is not None
    assert store.series.applied == ("foo-patch-1", "foo-patch")
    assert store.series.patches == {"foo-patch-1": history.foo, "foo-patch": history.bar}


def test_uncommit_one_by_one(history: History) -> None:
    store = _store_at(history.bar)

    assert uncommit(history.git, store, REPO, UncommitRequest()) == ["bar-patch"]
    assert uncommit(history.git, store, REPO, UncommitRequest()) == ["foo-patch"]

    assert store.series is not None
    assert store.series.applied == ("foo-patch", "bar-patch")
    assert set(store.series.patches.values()) == {history.foo, history.bar}
    assert store.series.top == history.bar


def test_head_on_top_walks_from_stack_base() -> None:
    commits, (root, foo, bar, baz) = linear_history(
        "Initial commit", "Foo Patch", "Bar Patch", "Baz Patch"
    )
    git = FakeGit(commits=commits, head=baz)
    store = FakeStackStore(
        series=Series(
            head=baz,
            applied=("bar-patch", "baz-patch"),
            patches={"bar-patch": bar, "baz-patch": baz},
        )
    )
    before = store.series

    with pytest.raises(InsufficientHistoryError) as exc_info:
        uncommit(git, store, REPO, UncommitRequest(count=2))

    # Only Foo Patch lies between the stack base and the root commit
    assert exc_info.value.requested == 2
    assert exc_info.value.available == 1
    assert exc_info.value.commit_id == root
    assert store.series == before

    created = uncommit(git, store, REPO, UncommitRequest(count=1))

    assert created == ["foo-patch"]
    assert store.series is not None
    assert store.series.applied == ("foo-patch", "bar-patch", "baz-patch")
    assert sorted(store.series.patches.values()) == sorted([foo, bar, baz])


def test_commits_above_the_stack_stop_at_the_top_patch() -> None:
    commits, (_root, foo, bar, extra) = linear_history(
        "Initial commit", "Foo Patch", "Bar Patch", "Extra"
    )
    git = FakeGit(commits=commits, head=extra)
    store = FakeStackStore(
        series=Series(head=bar, applied=("bar-patch",), patches={"bar-patch": bar})
    )

    with pytest.raises(InsufficientHistoryError) as exc_info:
        uncommit(git, store, REPO, UncommitRequest(count=2))

    assert exc_info.value.available == 1
    assert exc_info.value.patch == "bar-patch"
    assert str(exc_info.value) == (
        "Cannot uncommit 2 commits: only 1 available above patch `bar-patch`"
    )
    assert foo not in git.parent_reads

    created = uncommit(git, store, REPO, UncommitRequest())

    assert created == ["extra"]
    assert store.series is not None
    assert store.series.applied == ("bar-patch", "extra")


def test_target_already_a_patch_is_rejected(history: History) -> None:
    store = FakeStackStore(
        series=Series(head=history.bar, applied=("bar-patch",), patches={"bar-patch": history.bar})
    )

    with pytest.raises(CommitAlreadyTrackedError) as exc_info:
        uncommit(history.git, store, REPO, UncommitRequest(target="HEAD"))

    assert exc_info.value.patch == "bar-patch"
    assert store.write_attempts == 0


def test_selection_is_resolved_again_after_a_racing_uncommit(history: History) -> None:
    racing = Series(head=history.bar, applied=("bar-patch",), patches={"bar-patch": history.bar})
    store = FakeStackStore(series=Series.empty(history.bar), conflicts=1, racing_series=racing)

    created = uncommit(history.git, store, REPO, UncommitRequest())

    assert created == ["foo-patch"]
    assert store.series is not None
    assert store.series.applied == ("foo-patch", "bar-patch")
    assert store.series.patches == {"foo-patch": history.foo, "bar-patch": history.bar}


def test_invalid_name_is_rejected_before_any_read(history: History) -> None:
    store = _store_at(history.bar)

    with pytest.raises(InvalidPatchNameError):
        uncommit(history.git, store, REPO, UncommitRequest(names=("bad..patchname",)))

    assert history.git.head_reads == 0
    assert store.write_attempts == 0


def test_uninitialized_stack_is_reported(history: History) -> None:
    store = FakeStackStore()

    with pytest.raises(StackNotInitializedError):
        uncommit(history.git, store, REPO, UncommitRequest())


def test_commit_then_uncommit_restores_patch_commits(history: History) -> None:
    store = FakeStackStore(
        series=Series(
            head=history.root,
            applied=("foo-patch", "bar-patch"),
            patches={"foo-patch": history.foo, "bar-patch": history.bar},
        )
    )
    before = store.series

    commit_patches(store, CommitRequest(all_applied=True))
    assert store.series is not None
    assert store.series.applied == ()
    created = uncommit(history.git, store, REPO, UncommitRequest(count=2))

    assert created == ["foo-patch", "bar-patch"]
    assert before is not None
    assert store.series.patches == before.patches
    assert store.series.applied == before.applied


def test_concurrent_writer_is_retried(history: History) -> None:
    store = _store_at(history.bar, conflicts=1)

    created = uncommit(history.git, store, REPO, UncommitRequest())

    assert created == ["bar-patch"]
    assert store.write_attempts == 2
    assert store.messages == ["uncommit: 1 commit(s)"]


def test_retries_are_bounded(history: History) -> None:
    store = _store_at(history.bar, conflicts=5)

    with pytest.raises(ConcurrentModificationError):
        uncommit(history.git, store, REPO, UncommitRequest(), max_attempts=3)

    assert store.write_attempts == 3
    assert store.series is not None
    assert store.series.applied == ()


def test_storage_failure_propagates(history: History) -> None:
    store = _store_at(history.bar, write_raises=StackStorageError("disk full"))
    before = store.series

    with pytest.raises(StackStorageError):
        uncommit(history.git, store, REPO, UncommitRequest())

    assert store.series == before


def test_length_limit_and_case_are_applied() -> None:
    commits, (_root, top) = linear_history("Initial", "Add The Feature Switch")
    git = FakeGit(commits=commits, head=top)
    store = _store_at(top)

    created = uncommit(git, store, REPO, UncommitRequest(), length_limit=7, lowercase=False)

    assert created == ["Add-The"]
