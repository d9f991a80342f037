"""DivergenceCalculator: ahead/behind classification of branches."""

from __future__ import annotations

from pygit_workflow.classifier import BranchClassifier
from pygit_workflow.errors import BranchNotFoundError
from pygit_workflow.models import BranchStatus, SyncStatus, WorkflowConfig
from pygit_workflow.protocols import GitRepository


class DivergenceCalculator:
    """Computes how far local branches are from their remote counterparts and from main"""

    def __init__(self, repo: GitRepository, classifier: BranchClassifier, config: WorkflowConfig):
        self.repo = repo
        self.classifier = classifier
        self.config = config

    def counterpart(self, branch: str) -> str:
        """Remote-tracking name the branch is expected to match."""
        return f"{self.repo.remote_name}/{branch}"

    def status(self, branch: str) -> SyncStatus:
        """Status of a local branch against its remote counterpart (UNKNOWN if never pushed)."""
        return self.branch_status(branch).remote_status

    def main_status(self, branch: str) -> SyncStatus:
        """Status of a local branch against the local main branch."""
        return self.branch_status(branch).main_status

    def branch_status(self, branch: str, remote_branches: set[str] | None = None) -> BranchStatus:
        """Full divergence record for one local branch."""
        if branch not in self.repo.list_local_branches():
            raise BranchNotFoundError(f"Branch '{branch}' does not exist", branch)
        if remote_branches is None:
            remote_branches = self.repo.list_remote_branches()

        status = BranchStatus(
            name=branch,
            kind=self.classifier.classify(branch),
            tolerate_ahead_of_main=not self.config.integrate_features,
        )
        counterpart = self.counterpart(branch)
        if counterpart in remote_branches:
            status.has_remote = True
            status.remote_ahead, status.remote_behind = self.repo.ahead_behind(branch, counterpart)

        main = self.classifier.main_branch
        if branch != main and self.repo.ref_exists(main):
            status.main_ahead, status.main_behind = self.repo.ahead_behind(branch, main)
        return status

    def branch_statuses(self) -> list[BranchStatus]:
        """Statuses of every local branch except main, sorted by name."""
        remote_branches = self.repo.list_remote_branches()
        main = self.classifier.main_branch
        return [
            self.branch_status(name, remote_branches)
            for name in sorted(self.repo.list_local_branches())
            if name != main
        ]

    def out_of_sync_branches(self) -> list[str]:
        return [status.name for status in self.branch_statuses() if status.is_out_of_sync]

    def out_of_sync_count(self) -> int:
        """Number of local branches (main excluded) that are not fully in sync."""
        return len(self.out_of_sync_branches())
