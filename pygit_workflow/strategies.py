"""Sync strategies: how commits move between a branch, its remote, and main."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pygit_workflow.models import BranchKind, BranchStatus, SyncStatus, WorkflowConfig
from pygit_workflow.protocols import GitRepository, OutputHandler


class SyncStrategy(ABC):
    """Abstract strategy for bringing a checked-out branch up to date."""

    name = 'abstract'

    def __init__(self, repo: GitRepository, output: OutputHandler):
        """Initialize with a repository and output handler."""
        self.repo = repo
        self.output = output

    def pull_tracking(self, status: BranchStatus) -> bool:
        """Bring in commits from the branch's remote counterpart. Returns True if anything changed."""
        if status.remote_status not in (SyncStatus.BEHIND, SyncStatus.DIVERGED):
            return False
        self.repo.pull(status.name, rebase=self.rebases(status))
        self.output.success(f"✓ Pulled {self.repo.remote_name}/{status.name}", indent=1)
        return True

    @abstractmethod
    def update_from_main(self, status: BranchStatus, main: str) -> bool:
        """Bring main's commits into the branch. Returns True if anything changed."""
        pass

    @abstractmethod
    def rebases(self, status: BranchStatus) -> bool:
        """Return True if this strategy rewrites the branch's history."""
        pass

    def needs_force_push(self, status: BranchStatus) -> bool:
        """Return True when the branch was rewritten and its remote copy must be replaced."""
        return self.rebases(status) and status.has_remote

    def integrate_into_main(self, branch: str, main: str) -> None:
        """Fast-forward main to the branch. Main is left checked out."""
        self.repo.checkout(main)
        self.repo.merge(branch, ff_only=True)
        self.output.success(f"✓ {main} fast-forwarded to {branch}", indent=1)


class MergeSyncStrategy(SyncStrategy):
    """Merge main into branches; history is never rewritten."""

    name = 'merge'

    def update_from_main(self, status: BranchStatus, main: str) -> bool:
        """Merge main into the branch if main has commits the branch lacks."""
        if status.main_behind == 0:
            return False
        self.repo.merge(main)
        self.output.success(f"✓ Merged {main} into {status.name}", indent=1)
        return True

    def rebases(self, status: BranchStatus) -> bool:
        return False


class RebaseSyncStrategy(SyncStrategy):
    """Rebase feature branches onto main; non-feature branches still merge."""

    name = 'rebase'

    def update_from_main(self, status: BranchStatus, main: str) -> bool:
        """Rebase a feature branch onto main, or merge main into a non-feature branch."""
        if status.main_behind == 0:
            return False
        if self.rebases(status):
            self.repo.rebase(main)
            self.output.success(f"✓ Rebased {status.name} onto {main}", indent=1)
        else:
            self.repo.merge(main)
            self.output.success(f"✓ Merged {main} into {status.name}", indent=1)
        return True

    def rebases(self, status: BranchStatus) -> bool:
        return status.kind == BranchKind.FEATURE


def strategy_for(config: WorkflowConfig, repo: GitRepository, output: OutputHandler) -> SyncStrategy:
    """Pick the strategy selected by the configuration."""
    if config.use_rebase:
        return RebaseSyncStrategy(repo, output)
    return MergeSyncStrategy(repo, output)
