"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from patchstack.core.git.abc import Git
from patchstack.core.git.real import RealGit
from patchstack.core.global_config import (
    FilesystemGlobalConfigOps,
    GlobalConfig,
    GlobalConfigOps,
    InMemoryGlobalConfigOps,
)
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.dry_run import DryRunStackStore
from patchstack.core.stack.real import RealGitStackStore


@dataclass(frozen=True)
class RepoContext:
    """The repository patchstack runs in and the branch checked out there."""

    root: Path
    branch: str | None  # None when HEAD is detached


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a git repository."""

    message: str = "Not inside a git repository"


@dataclass(frozen=True)
class PatchstackContext:
    """Immutable context holding all dependencies for patchstack operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    Note: stack_store is None outside a repository or on a detached HEAD.
    """

    git: Git
    stack_store: StackStore | None
    config_ops: GlobalConfigOps
    global_config: GlobalConfig
    cwd: Path  # Current working directory at CLI invocation
    repo: RepoContext | NoRepoSentinel
    dry_run: bool

    @staticmethod
    def for_test(
        *,
        git: Git,
        stack_store: StackStore | None,
        repo: RepoContext | NoRepoSentinel | None = None,
        global_config: GlobalConfig | None = None,
        cwd: Path | None = None,
        dry_run: bool = False,
    ) -> "PatchstackContext":
        """Create a context around pre-configured (usually fake) implementations.

        Args:
            git: Git implementation, usually FakeGit
            stack_store: StackStore implementation, usually FakeStackStore
            repo: Repository context (default: /test/repo on branch main)
            global_config: Config values (default: GlobalConfig())
            cwd: Working directory (default: the repo root)
            dry_run: Whether to wrap the store in DryRunStackStore
        """
        resolved_repo = repo if repo is not None else RepoContext(Path("/test/repo"), "main")
        config = global_config if global_config is not None else GlobalConfig()
        if cwd is None:
            cwd = (
                resolved_repo.root
                if isinstance(resolved_repo, RepoContext)
                else Path("/test/default/cwd")
            )
        if dry_run and stack_store is not None:
            stack_store = DryRunStackStore(stack_store)
        return PatchstackContext(
            git=git,
            stack_store=stack_store,
            config_ops=InMemoryGlobalConfigOps(config=config),
            global_config=config,
            cwd=cwd,
            repo=resolved_repo,
            dry_run=dry_run,
        )


def discover_repo_or_sentinel(git: Git, cwd: Path) -> RepoContext | NoRepoSentinel:
    root = git.get_repository_root(cwd)
    if root is None:
        return NoRepoSentinel()
    return RepoContext(root=root, branch=git.get_current_branch(root))


def create_context(*, dry_run: bool) -> PatchstackContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        dry_run: If True, wrap the stack store so writes are reported instead
                 of performed

    Returns:
        PatchstackContext with real implementations
    """
    # 1. Capture cwd (no deps)
    cwd = Path.cwd()

    # 2. Load global config (no deps)
    config_ops: GlobalConfigOps = FilesystemGlobalConfigOps()
    global_config = config_ops.load()

    # 3. Discover repo and branch
    git: Git = RealGit()
    repo = discover_repo_or_sentinel(git, cwd)

    # 4. Build the stack store for the checked-out branch
    stack_store: StackStore | None = None
    if isinstance(repo, RepoContext) and repo.branch is not None:
        stack_store = RealGitStackStore(
            repo.root, repo.branch, ref_prefix=global_config.stack_ref_prefix
        )
        if dry_run:
            stack_store = DryRunStackStore(stack_store)

    return PatchstackContext(
        git=git,
        stack_store=stack_store,
        config_ops=config_ops,
        global_config=global_config,
        cwd=cwd,
        repo=repo,
        dry_run=dry_run,
    )
