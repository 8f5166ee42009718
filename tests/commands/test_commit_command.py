"""Tests for the commit command using fakes."""

from click.testing import CliRunner

from patchstack.cli.cli import cli
from patchstack.core.context import PatchstackContext
from patchstack.core.stack.types import Series
from tests.fakes.git import FakeGit
from tests.fakes.stack_store import FakeStackStore


def _store() -> FakeStackStore:
    return FakeStackStore(
        series=Series(
            head="base",
            applied=("one", "two", "three"),
            patches={"one": "c1", "two": "c2", "three": "c3"},
        )
    )


def test_commit_defaults_to_bottom_patch() -> None:
    store = _store()
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=store)

    result = CliRunner().invoke(cli, ["commit"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Committed 1 patch(es)" in result.output
    assert store.series is not None
    assert store.series.applied == ("two", "three")


def test_commit_all() -> None:
    store = _store()
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=store)

    result = CliRunner().invoke(cli, ["commit", "--all"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert store.series is not None
    assert store.series.applied == ()
    assert store.series.head == "c3"


def test_commit_named_patches() -> None:
    store = _store()
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=store)

    result = CliRunner().invoke(cli, ["commit", "one", "two"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert store.series is not None
    assert store.series.applied == ("three",)


def test_commit_rejects_patch_above_bottom() -> None:
    store = _store()
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=store)

    result = CliRunner().invoke(cli, ["commit", "two"], obj=ctx)

    assert result.exit_code == 1
    assert "bottommost" in result.output
    assert store.write_attempts == 0


def test_commit_rejects_combined_modes() -> None:
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=_store())

    result = CliRunner().invoke(cli, ["commit", "-n", "1", "--all"], obj=ctx)

    assert result.exit_code == 2


def test_commit_with_nothing_applied() -> None:
    ctx = PatchstackContext.for_test(
        git=FakeGit(), stack_store=FakeStackStore(series=Series.empty("base"))
    )

    result = CliRunner().invoke(cli, ["commit"], obj=ctx)

    assert result.exit_code == 1
    assert "No patches applied" in result.output


def test_commit_dry_run() -> None:
    store = _store()
    ctx = PatchstackContext.for_test(git=FakeGit(), stack_store=store)

    result = CliRunner().invoke(cli, ["commit", "--all", "--dry-run"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "[DRY RUN]" in result.output
    assert store.series is not None
    assert store.series.applied == ("one", "two", "three")
