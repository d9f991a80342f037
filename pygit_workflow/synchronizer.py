"""BranchSynchronizer: the sync sweep over one repository endpoint."""

from __future__ import annotations

import logging

from tqdm import tqdm

from pygit_workflow.classifier import BranchClassifier
from pygit_workflow.divergence import DivergenceCalculator
from pygit_workflow.errors import (
    MergeConflictError,
    NetworkUnavailableError,
    RemoteRejectedError,
    WorkflowError,
)
from pygit_workflow.models import (
    BranchKind,
    IssueType,
    OperationReport,
    OperationState,
    OperationType,
    SyncIssue,
    SyncStatus,
    WorkflowConfig,
)
from pygit_workflow.protocols import GitRepository, OutputHandler
from pygit_workflow.strategies import SyncStrategy, strategy_for

logger = logging.getLogger(__name__)


def issue_type_for(error: Exception) -> IssueType:
    """Issue category recorded for an error raised while handling one branch."""
    if isinstance(error, MergeConflictError):
        return IssueType.CONFLICT
    if isinstance(error, RemoteRejectedError):
        return IssueType.REJECTED
    if isinstance(error, NetworkUnavailableError):
        return IssueType.NETWORK
    return IssueType.FAILED


class SweepAborted(Exception):
    """Internal signal: stop processing further branches."""


class BranchSynchronizer:
    """Responsible for synchronizing the branches of a single repository.

    The sweep first does all local work (main, then feature branches, then
    non-feature branches, then a settle pass that fast-forwards feature
    branches to the final main) and only then pushes. A failure stops the
    sweep unless keep_going is set; a network failure always stops it.
    Branches already handled are not rolled back. Feature branches whose
    upstream was deleted are left for prune instead of being pushed again.
    """

    def __init__(
        self,
        repo: GitRepository,
        classifier: BranchClassifier,
        output: OutputHandler,
        config: WorkflowConfig,
        strategy: SyncStrategy | None = None,
        show_progress: bool = False,
    ):
        """Create a synchronizer for a single repository."""
        self.repo = repo
        self.classifier = classifier
        self.output = output
        self.config = config
        self.strategy = strategy or strategy_for(config, repo, output)
        self.divergence = DivergenceCalculator(repo, classifier, config)
        self.show_progress = show_progress

    @property
    def main(self) -> str:
        return self.classifier.main_branch

    def sync(self, branches: list[str] | None = None) -> OperationReport:
        """Sync main and the given local branches (all by default). Returns the report."""
        report = OperationReport(OperationType.SYNC)
        report.initial_branch = self.repo.current_branch()

        try:
            self._run(report, branches)
        except SweepAborted:
            pass
        finally:
            self._restore(report)

        if report.failed_branches() or report.get_issues_by_type(IssueType.STALE):
            for name in self.divergence.out_of_sync_branches():
                report.add_issue(SyncIssue(name, IssueType.OUT_OF_SYNC, "still out of sync"))
        return report

    def _run(self, report: OperationReport, branches: list[str] | None) -> None:
        if self.repo.has_remote():
            self.output.info("Fetching from remote...")
            try:
                self.repo.fetch()
            except WorkflowError as e:
                self.output.error(f"✗ Fetch failed: {e}")
                report.add_issue(SyncIssue("", issue_type_for(e), str(e)))
                report.abort(e)
                raise SweepAborted() from e

        self.output.section("Syncing branches")
        queue = self._build_queue(branches)
        for name in self._stale_branches(queue):
            self.output.warning(f"⚠ {name}: upstream was deleted, run prune to remove it", indent=1)
            report.add_issue(SyncIssue(name, IssueType.STALE, "upstream deleted on the remote"))
            queue.remove(name)

        done: list[str] = []
        with tqdm(total=len(queue), desc="Syncing", unit="branch", disable=not self.show_progress) as pbar:
            for index, name in enumerate(queue):
                pbar.set_postfix_str(name, refresh=True)
                if self._attempt(report, name, queue[index + 1:], self._sync_local):
                    done.append(name)
                pbar.update(1)

        if self.config.integrate_features:
            for name in done:
                if self.classifier.is_feature(name):
                    self._attempt(report, name, [], self._settle)
        report.advance(OperationState.LOCAL_APPLIED)

        if self.repo.has_remote():
            for index, name in enumerate(done):
                if self._attempt(report, name, done[index + 1:], self._push):
                    report.branches_synced.append(name)
        else:
            report.branches_synced.extend(done)
        report.advance(OperationState.REMOTE_APPLIED)
        # Peers observe the pushes on their next fetch.
        report.advance(OperationState.PEER_CONVERGED)
        report.advance(OperationState.COMPLETED)

    def _build_queue(self, branches: list[str] | None) -> list[str]:
        local = self.repo.list_local_branches()
        targets = local if branches is None else [b for b in branches if b in local]
        queue = [self.main] if self.main in local else []
        queue.extend(self.classifier.feature_branches(targets))
        queue.extend(self.classifier.non_feature_branches_in(targets))
        return queue

    def _stale_branches(self, queue: list[str]) -> list[str]:
        """Feature branches in the queue whose upstream vanished from the remote."""
        remote_branches = self.repo.list_remote_branches()
        prefix = f"{self.repo.remote_name}/"
        return [
            info.name
            for info in self.repo.get_local_branches()
            if info.name in queue
            and self.classifier.is_feature(info.name)
            and (info.tracking_branch or '').startswith(prefix)
            and info.tracking_branch not in remote_branches
        ]

    def _attempt(self, report: OperationReport, name: str, remaining: list[str], step) -> bool:
        """Run one per-branch step, recording failures. Raises SweepAborted when the sweep must stop."""
        try:
            step(name)
            return True
        except WorkflowError as e:
            logger.warning("Sync of %s failed: %s", name, e)
            self.output.error(f"✗ {name}: {e}", indent=1)
            report.add_issue(SyncIssue(name, issue_type_for(e), str(e)))
            if isinstance(e, NetworkUnavailableError) or not self.config.keep_going:
                for skipped in remaining:
                    report.add_issue(SyncIssue(skipped, IssueType.SKIPPED, f"not attempted after failure on {name}"))
                report.abort(e)
                raise SweepAborted() from e
            return False

    def _sync_local(self, name: str) -> None:
        """Pull the remote counterpart, bring in main, and integrate feature work into main."""
        self.output.info(f"─ {name}")
        status = self.divergence.branch_status(name)
        self.repo.checkout(name)

        if self.strategy.pull_tracking(status):
            status = self.divergence.branch_status(name)
        if name == self.main:
            return

        if self.strategy.update_from_main(status, self.main):
            status = self.divergence.branch_status(name)

        if status.kind == BranchKind.FEATURE and self.config.integrate_features and status.main_ahead > 0:
            self.strategy.integrate_into_main(name, self.main)

    def _settle(self, name: str) -> None:
        """Fast-forward a feature branch that fell behind main after later integrations."""
        if self.divergence.main_status(name) != SyncStatus.BEHIND:
            return
        self.repo.checkout(name)
        self.repo.merge(self.main, ff_only=True)
        self.output.info(f"✓ {name} fast-forwarded to {self.main}", indent=1)

    def _push(self, name: str) -> None:
        status = self.divergence.branch_status(name)
        if status.remote_status == SyncStatus.IN_SYNC:
            return
        force = status.remote_status == SyncStatus.DIVERGED and self.strategy.needs_force_push(status)
        self.repo.push(name, force=force)
        self.output.success(f"✓ Pushed {name}", indent=1)

    def _restore(self, report: OperationReport) -> None:
        """Check the initial branch out again (main if it no longer exists)."""
        target = report.initial_branch
        local = self.repo.list_local_branches()
        if target not in local:
            target = self.main
        try:
            if self.repo.current_branch() != target:
                self.repo.checkout(target)
        except WorkflowError as e:
            logger.error("Could not return to %s: %s", target, e)
            self.output.error(f"✗ Could not return to {target}: {e}")
        report.final_branch = self.repo.current_branch()
