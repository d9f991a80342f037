"""WorkflowOrchestrator: branch lifecycle operations on one repository endpoint."""

from __future__ import annotations

import logging

from pygit_workflow.classifier import BranchClassifier
from pygit_workflow.divergence import DivergenceCalculator
from pygit_workflow.errors import (
    BranchExistsError,
    BranchNotFoundError,
    NothingToShipError,
    UncommittedChangesError,
    ProtectedBranchError,
    WorkflowError,
)
from pygit_workflow.models import (
    BranchKind,
    BranchRelation,
    BranchStatus,
    OperationReport,
    OperationState,
    OperationType,
    SyncIssue,
    WorkflowConfig,
)
from pygit_workflow.protocols import GitRepository, OutputHandler
from pygit_workflow.strategies import SyncStrategy
from pygit_workflow.synchronizer import BranchSynchronizer, issue_type_for

logger = logging.getLogger(__name__)


class WorkflowOrchestrator:
    """Main orchestrator - drives create, sync, delete, prune and ship.

    Single-branch operations (create, delete, ship) raise the WorkflowError
    that stopped them, with the aborted report attached as ``error.report``.
    Bulk operations (sync, prune) record per-branch problems in the returned
    report instead. Either way the current branch is restored to the one the
    operation documents before control returns.
    """

    def __init__(
        self,
        repo: GitRepository,
        config: WorkflowConfig,
        output: OutputHandler,
        classifier: BranchClassifier | None = None,
        strategy: SyncStrategy | None = None,
        show_progress: bool = False,
    ):
        """Create an orchestrator for one repository endpoint."""
        self.repo = repo
        self.config = config
        self.output = output
        self.classifier = classifier or BranchClassifier.from_repository(repo, config)
        self.strategy = strategy
        self.show_progress = show_progress
        self.divergence = DivergenceCalculator(repo, self.classifier, config)

    @property
    def main(self) -> str:
        return self.classifier.main_branch

    # -- observable state --------------------------------------------------

    def current_branch(self) -> str:
        return self.repo.current_branch()

    def list_local_branches(self) -> set[str]:
        return self.repo.list_local_branches()

    def list_remote_branches(self) -> set[str]:
        return self.repo.list_remote_branches()

    def existing_branches(self) -> set[str]:
        """Local branches plus remote-tracking branches, e.g. {'main', 'origin/main'}."""
        return self.list_local_branches() | self.list_remote_branches()

    def out_of_sync_count(self) -> int:
        return self.divergence.out_of_sync_count()

    def status(self) -> list[BranchStatus]:
        return self.divergence.branch_statuses()

    def register_non_feature(self, name: str) -> None:
        self.classifier.register_non_feature(name)

    def register_feature(self, name: str) -> None:
        self.classifier.register_feature(name)

    # -- single-branch operations ------------------------------------------

    def create(
        self,
        name: str,
        relation: BranchRelation = BranchRelation.NONE,
        kind: BranchKind = BranchKind.FEATURE,
        push: bool | None = None,
    ) -> OperationReport:
        """Create a branch from main and check it out.

        With relation BEHIND a commit lands on main afterwards, with AHEAD on
        the new branch. On failure the new branch is removed again and the
        initial branch is checked out.
        """
        report = OperationReport(OperationType.CREATE, target=name)
        report.initial_branch = self.repo.current_branch()
        if name == self.main:
            raise BranchExistsError(f"'{name}' is the main branch", name)
        push = self.config.push_new_branches if push is None else push

        self.output.info(f"Creating branch {name} from {self.main}")
        created = False
        registered = False
        try:
            self.repo.create_branch(name, self.main)
            created = True
            # Unregistered names are feature branches; an existing
            # non-feature registration is kept.
            if kind == BranchKind.NON_FEATURE and self.classifier.is_feature(name):
                self.classifier.register_non_feature(name)
                registered = True

            if relation != BranchRelation.NONE:
                self.repo.commit(self.main if relation == BranchRelation.BEHIND else name)
            self.repo.checkout(name)
            report.advance(OperationState.LOCAL_APPLIED)

            if push and self.repo.has_remote():
                self.repo.push(name)
                self.output.success(f"✓ Pushed {name}", indent=1)
            report.advance(OperationState.REMOTE_APPLIED)
            report.advance(OperationState.PEER_CONVERGED)
            report.advance(OperationState.COMPLETED)
        except WorkflowError as e:
            self._abort(report, e)
            if created:
                self._rollback_create(report, name, registered)
            report.final_branch = self.repo.current_branch()
            raise

        report.final_branch = name
        self.output.success(f"✓ Created {name}")
        return report

    def _rollback_create(self, report: OperationReport, name: str, registered: bool) -> None:
        try:
            if self.repo.current_branch() == name:
                self.repo.checkout(report.initial_branch)
            self.repo.delete_local_branch(name)
            if registered:
                self.classifier.register_feature(name)
        except WorkflowError as e:
            logger.error("Rollback of %s failed: %s", name, e)
            self.output.error(f"✗ Could not roll back {name}: {e}")

    def delete(self, name: str, force: bool = False) -> OperationReport:
        """Delete a branch locally and on the remote, then check out main.

        Idempotent: a branch that is already gone, locally or remotely, is
        skipped without error. Peers drop their copies when they next prune.
        """
        kind = self.classifier.classify(name)
        if kind == BranchKind.MAIN:
            raise ProtectedBranchError(f"Refusing to delete the main branch '{name}'", name)
        if kind == BranchKind.NON_FEATURE and not force:
            raise ProtectedBranchError(f"'{name}' is a non-feature branch; use force to delete it", name)

        report = OperationReport(OperationType.DELETE, target=name)
        report.initial_branch = self.repo.current_branch()
        self.output.info(f"Deleting branch {name}")
        try:
            if report.initial_branch == name:
                self.repo.checkout(self.main)
            if self.repo.delete_local_branch(name):
                report.branches_deleted.append(name)
                self.output.success(f"✓ Deleted local {name}", indent=1)
            report.advance(OperationState.LOCAL_APPLIED)

            if self.repo.delete_remote_branch(name):
                self.output.success(f"✓ Deleted {self.repo.remote_name}/{name}", indent=1)
            report.advance(OperationState.REMOTE_APPLIED)
            report.advance(OperationState.PEER_CONVERGED)
            report.advance(OperationState.COMPLETED)
            self.classifier.register_feature(name)
        except WorkflowError as e:
            self._abort(report, e)
            raise
        finally:
            self._return_to(report, self.main)
        return report

    def ship(self, name: str | None = None, message: str | None = None) -> OperationReport:
        """Squash-merge a feature branch into main, push main, and delete the branch.

        Returns to the initial branch, or to main when the shipped branch was
        the initial one.
        """
        initial = self.repo.current_branch()
        name = name or initial
        if not self.classifier.is_feature(name):
            raise ProtectedBranchError(f"Only feature branches can be shipped, not '{name}'", name)
        if name not in self.repo.list_local_branches():
            raise BranchNotFoundError(f"Branch '{name}' does not exist", name)
        if name == initial and self.repo.has_uncommitted_changes():
            raise UncommittedChangesError(f"Commit or stash the open changes on '{name}' before shipping it", name)
        message = message or self.config.commit_message or f"Ship {name}"

        report = OperationReport(OperationType.SHIP, target=name)
        report.initial_branch = initial
        self.output.info(f"Shipping {name} into {self.main}")
        try:
            self.repo.fetch()
            self._update_from_remote(self.main)
            self._update_from_remote(name)
            self.repo.merge(self.main)
            if not self.repo.has_changes_against(name, self.main):
                raise NothingToShipError(f"'{name}' has no changes relative to {self.main}", name)

            self.repo.checkout(self.main)
            self.repo.squash_merge(name, message)
            report.advance(OperationState.LOCAL_APPLIED)

            if self.repo.has_remote():
                self.repo.push(self.main)
                self.repo.delete_remote_branch(name)
            report.advance(OperationState.REMOTE_APPLIED)

            self.repo.delete_local_branch(name)
            report.branches_deleted.append(name)
            report.advance(OperationState.PEER_CONVERGED)
            report.advance(OperationState.COMPLETED)
            self.output.success(f"✓ Shipped {name}")
        except WorkflowError as e:
            self._abort(report, e)
            raise
        finally:
            self._return_to(report, initial if initial != name else self.main)
        return report

    def _update_from_remote(self, branch: str) -> None:
        self.repo.checkout(branch)
        if self.repo.ref_exists(self.divergence.counterpart(branch)):
            self.repo.merge(self.divergence.counterpart(branch))

    # -- bulk operations ---------------------------------------------------

    def sync(self, branches: list[str] | None = None) -> OperationReport:
        """Sync main and every (or the given) local branch; see BranchSynchronizer."""
        synchronizer = BranchSynchronizer(
            self.repo, self.classifier, self.output, self.config,
            strategy=self.strategy, show_progress=self.show_progress,
        )
        return synchronizer.sync(branches)

    def prune(self, include_unmerged: bool = False) -> OperationReport:
        """Delete feature branches whose work is finished, locally and remotely.

        A feature branch is pruned when its upstream disappeared from the
        remote, or when it was published, is fully merged into main, and main
        has moved past it. With include_unmerged every feature branch goes.
        Main and non-feature branches are never pruned. Per-branch failures
        are recorded and the sweep continues.
        """
        report = OperationReport(OperationType.PRUNE)
        report.initial_branch = self.repo.current_branch()
        self.output.section("Pruning feature branches")
        try:
            try:
                self.repo.fetch()
            except WorkflowError as e:
                report.add_issue(SyncIssue("", issue_type_for(e), str(e)))
                report.abort(e)
                return report

            remote_branches = self.repo.list_remote_branches()
            candidates = self._prune_candidates(remote_branches, include_unmerged)
            if not candidates:
                self.output.info("No feature branches to prune")

            published: list[str] = []
            for name, stale in candidates:
                try:
                    if self.repo.current_branch() == name:
                        self.repo.checkout(self.main)
                    self.repo.delete_local_branch(name)
                    report.branches_deleted.append(name)
                    label = "upstream deleted" if stale else "finished"
                    self.output.success(f"✓ Deleted {name} ({label})", indent=1)
                    if not stale:
                        published.append(name)
                except WorkflowError as e:
                    self._record(report, name, e)
            report.advance(OperationState.LOCAL_APPLIED)

            for name in published:
                if self.divergence.counterpart(name) not in remote_branches:
                    continue
                try:
                    self.repo.delete_remote_branch(name)
                    self.output.success(f"✓ Deleted {self.repo.remote_name}/{name}", indent=1)
                except WorkflowError as e:
                    self._record(report, name, e)
            report.advance(OperationState.REMOTE_APPLIED)
            report.advance(OperationState.PEER_CONVERGED)
            report.advance(OperationState.COMPLETED)
        finally:
            initial = report.initial_branch
            self._return_to(report, initial if initial in self.repo.list_local_branches() else self.main)
        return report

    def _prune_candidates(self, remote_branches: set[str], include_unmerged: bool) -> list[tuple[str, bool]]:
        """(name, upstream_gone) for every feature branch that should be pruned."""
        candidates = []
        for info in sorted(self.repo.get_local_branches(), key=lambda b: b.name):
            if not self.classifier.is_feature(info.name):
                continue
            tracks_remote = (info.tracking_branch or '').startswith(f'{self.repo.remote_name}/')
            stale = tracks_remote and info.tracking_branch not in remote_branches
            if stale or include_unmerged:
                candidates.append((info.name, stale))
                continue
            if not tracks_remote:
                continue
            # A published branch level with main may have just been started.
            ahead, behind = self.repo.ahead_behind(info.name, self.main)
            if ahead == 0 and behind > 0:
                candidates.append((info.name, False))
        return candidates

    # -- helpers -----------------------------------------------------------

    def _record(self, report: OperationReport, name: str, error: WorkflowError) -> None:
        logger.warning("%s of %s failed: %s", report.operation.name.lower(), name, error)
        self.output.error(f"✗ {name}: {error}", indent=1)
        report.add_issue(SyncIssue(name, issue_type_for(error), str(error)))

    def _abort(self, report: OperationReport, error: WorkflowError) -> None:
        logger.warning("%s aborted: %s", report.operation.name.lower(), error)
        self.output.error(f"✗ {report.operation.name.lower()} aborted: {error}")
        report.add_issue(SyncIssue(report.target or "", issue_type_for(error), str(error)))
        report.abort(error)
        error.report = report

    def _return_to(self, report: OperationReport, branch: str) -> None:
        """Check out branch so the current-branch invariant holds after any outcome."""
        try:
            if self.repo.current_branch() != branch:
                self.repo.checkout(branch)
        except WorkflowError as e:
            logger.error("Could not return to %s: %s", branch, e)
            self.output.error(f"✗ Could not return to {branch}: {e}")
        report.final_branch = self.repo.current_branch()
