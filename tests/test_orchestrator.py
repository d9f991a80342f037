"""Tests for branch lifecycle operations, driven through the in-memory fakes."""

import pytest
from fakes import FakeGitRepository, FakeRemote

from pygit_workflow import (
    BranchExistsError,
    BranchKind,
    BranchNotFoundError,
    BranchRelation,
    IssueType,
    NetworkUnavailableError,
    NothingToShipError,
    NullOutputHandler,
    OperationState,
    ProtectedBranchError,
    RemoteRejectedError,
    UncommittedChangesError,
    WorkflowConfig,
    WorkflowOrchestrator,
)
from pygit_workflow.classifier import NON_FEATURE_CONFIG_KEY


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def repo(remote):
    return FakeGitRepository(remote)


@pytest.fixture
def orchestrator(repo):
    return WorkflowOrchestrator(repo, WorkflowConfig(), NullOutputHandler())


def _published_feature(repo, name):
    repo.create_branch(name, "main")
    commit = repo.commit(name)
    repo.push(name)
    return commit


class TestQueries:
    def test_existing_branches_use_remote_tracking_names(self, orchestrator, repo):
        _published_feature(repo, "feature")
        assert orchestrator.existing_branches() == {"main", "origin/main", "feature", "origin/feature"}

    def test_status_excludes_main(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        assert [s.name for s in orchestrator.status()] == ["feature"]

    def test_register_non_feature_persists(self, orchestrator, repo):
        orchestrator.register_non_feature("release")
        assert repo.config[NON_FEATURE_CONFIG_KEY] == "release"
        orchestrator.register_feature("release")
        assert NON_FEATURE_CONFIG_KEY not in repo.config

    def test_reads_stored_non_feature_branches(self, repo):
        repo.config[NON_FEATURE_CONFIG_KEY] = "release staging"
        orchestrator = WorkflowOrchestrator(repo, WorkflowConfig(), NullOutputHandler())
        assert orchestrator.classifier.non_feature_branches == ["release", "staging"]


class TestCreate:
    def test_create_checks_out_new_branch(self, orchestrator, repo, remote):
        report = orchestrator.create("feature")

        assert report.state == OperationState.COMPLETED
        assert repo.current_branch() == "feature"
        assert "feature" in orchestrator.list_local_branches()
        assert orchestrator.classifier.classify("feature") == BranchKind.FEATURE
        assert "feature" not in remote.branches

    def test_create_behind_main(self, orchestrator, repo):
        orchestrator.create("feature", BranchRelation.BEHIND)
        assert repo.ahead_behind("feature", "main") == (0, 1)
        assert orchestrator.out_of_sync_count() == 1

    def test_create_ahead_of_main(self, orchestrator, repo):
        orchestrator.create("feature", BranchRelation.AHEAD)
        assert repo.ahead_behind("feature", "main") == (1, 0)

    def test_create_non_feature(self, orchestrator, repo):
        orchestrator.create("release", kind=BranchKind.NON_FEATURE)
        assert orchestrator.classifier.classify("release") == BranchKind.NON_FEATURE
        assert repo.config[NON_FEATURE_CONFIG_KEY] == "release"

    def test_create_and_push(self, orchestrator, repo, remote):
        orchestrator.create("feature", push=True)
        assert remote.branches["feature"] == repo.heads["feature"]
        assert orchestrator.out_of_sync_count() == 0

    def test_existing_branch_is_rejected(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        with pytest.raises(BranchExistsError) as excinfo:
            orchestrator.create("feature")
        assert excinfo.value.report.state == OperationState.ABORTED
        assert repo.current_branch() == "main"

    def test_main_cannot_be_created(self, orchestrator):
        with pytest.raises(BranchExistsError):
            orchestrator.create("main")

    def test_failed_push_rolls_back(self, orchestrator, repo, remote):
        remote.reachable = False
        with pytest.raises(NetworkUnavailableError) as excinfo:
            orchestrator.create("feature", push=True)

        report = excinfo.value.report
        assert report.state == OperationState.ABORTED
        assert report.get_issues_by_type(IssueType.NETWORK)
        assert "feature" not in repo.heads
        assert repo.current_branch() == "main"

    def test_registered_non_feature_keeps_its_kind(self, orchestrator, repo, remote):
        orchestrator.register_non_feature("release")
        orchestrator.create("release", push=True)

        report = orchestrator.prune(include_unmerged=True)

        assert report.branches_deleted == []
        assert orchestrator.classifier.classify("release") == BranchKind.NON_FEATURE
        assert repo.config[NON_FEATURE_CONFIG_KEY] == "release"
        assert "release" in repo.heads
        assert "release" in remote.branches

    def test_configured_non_feature_keeps_its_kind(self, repo):
        orchestrator = WorkflowOrchestrator(
            repo, WorkflowConfig(non_feature_branches=["release"]), NullOutputHandler())

        orchestrator.create("release")

        assert orchestrator.classifier.classify("release") == BranchKind.NON_FEATURE

    def test_rollback_removes_new_registration(self, orchestrator, repo, remote):
        remote.reachable = False
        with pytest.raises(NetworkUnavailableError):
            orchestrator.create("release", kind=BranchKind.NON_FEATURE, push=True)

        assert NON_FEATURE_CONFIG_KEY not in repo.config
        assert orchestrator.classifier.classify("release") == BranchKind.FEATURE

    def test_rollback_keeps_earlier_registration(self, orchestrator, repo, remote):
        orchestrator.register_non_feature("release")
        remote.reachable = False
        with pytest.raises(NetworkUnavailableError):
            orchestrator.create("release", push=True)

        assert "release" not in repo.heads
        assert repo.config[NON_FEATURE_CONFIG_KEY] == "release"
        assert orchestrator.classifier.classify("release") == BranchKind.NON_FEATURE


class TestDelete:
    def test_delete_local_and_remote(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")

        report = orchestrator.delete("feature")

        assert report.state == OperationState.COMPLETED
        assert report.branches_deleted == ["feature"]
        assert "feature" not in repo.heads
        assert "feature" not in remote.branches
        assert "origin/feature" not in orchestrator.existing_branches()

    def test_delete_current_branch_ends_on_main(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        repo.checkout("feature")

        report = orchestrator.delete("feature")

        assert repo.current_branch() == "main"
        assert report.final_branch == "main"

    def test_delete_from_other_branch_ends_on_main(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        repo.create_branch("other", "main")
        repo.checkout("other")

        orchestrator.delete("feature")

        assert repo.current_branch() == "main"

    def test_delete_is_idempotent(self, orchestrator):
        report = orchestrator.delete("missing")
        assert report.state == OperationState.COMPLETED
        assert report.branches_deleted == []

    def test_main_is_protected(self, orchestrator, repo):
        with pytest.raises(ProtectedBranchError):
            orchestrator.delete("main")
        assert "main" in repo.heads

    def test_non_feature_needs_force(self, orchestrator, repo, remote):
        repo.create_branch("release", "main")
        repo.push("release")
        orchestrator.register_non_feature("release")

        with pytest.raises(ProtectedBranchError):
            orchestrator.delete("release")
        assert "release" in repo.heads

        orchestrator.delete("release", force=True)
        assert "release" not in repo.heads
        assert "release" not in remote.branches
        assert orchestrator.classifier.classify("release") == BranchKind.FEATURE

    def test_rejected_remote_delete(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        remote.reject_push.add("feature")

        with pytest.raises(RemoteRejectedError) as excinfo:
            orchestrator.delete("feature")

        report = excinfo.value.report
        assert report.history == [OperationState.STARTED, OperationState.LOCAL_APPLIED, OperationState.ABORTED]
        assert report.final_branch == "main"
        assert "feature" not in repo.heads
        assert "feature" in remote.branches


class TestPrune:
    def test_stale_branch_is_pruned(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        del remote.branches["feature"]

        report = orchestrator.prune()

        assert report.succeeded
        assert report.branches_deleted == ["feature"]
        assert "feature" not in repo.heads

    def test_merged_branch_is_pruned_everywhere(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        repo.merge("feature")
        repo.commit("main")
        repo.push("main")

        report = orchestrator.prune()

        assert report.branches_deleted == ["feature"]
        assert "feature" not in remote.branches

    def test_unfinished_and_unpublished_branches_survive(self, orchestrator, repo):
        _published_feature(repo, "published")
        repo.create_branch("local-only", "main")

        report = orchestrator.prune()

        assert report.branches_deleted == []
        assert {"published", "local-only"} <= repo.list_local_branches()

    def test_published_branch_level_with_main_survives(self, orchestrator, repo, remote):
        repo.create_branch("started", "main")
        repo.push("started")

        report = orchestrator.prune()

        assert report.branches_deleted == []
        assert "started" in repo.heads
        assert "started" in remote.branches

    def test_non_feature_branches_survive(self, orchestrator, repo, remote):
        repo.create_branch("release", "main")
        repo.push("release")
        orchestrator.register_non_feature("release")
        del remote.branches["release"]

        orchestrator.prune()

        assert "release" in repo.heads

    def test_include_unmerged(self, orchestrator, repo, remote):
        _published_feature(repo, "published")
        repo.create_branch("local-only", "main")
        repo.commit("local-only")

        report = orchestrator.prune(include_unmerged=True)

        assert sorted(report.branches_deleted) == ["local-only", "published"]
        assert orchestrator.list_local_branches() == {"main"}
        assert "published" not in remote.branches

    def test_current_branch_pruned_ends_on_main(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        repo.checkout("feature")
        del remote.branches["feature"]

        report = orchestrator.prune()

        assert report.final_branch == "main"

    def test_fetch_failure_aborts_without_raising(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        remote.reachable = False

        report = orchestrator.prune()

        assert report.state == OperationState.ABORTED
        assert "feature" in repo.heads


class TestShip:
    def test_ship_current_branch(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        repo.checkout("feature")
        main_before = repo.heads["main"]

        report = orchestrator.ship(message="Add feature")

        assert report.state == OperationState.COMPLETED
        assert repo.current_branch() == "main"
        assert len(repo.heads["main"] - main_before) == 1
        assert remote.branches["main"] == repo.heads["main"]
        assert "feature" not in repo.heads
        assert "feature" not in remote.branches

    def test_ship_other_branch_returns_to_initial(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        repo.commit("feature")
        repo.create_branch("other", "main")
        repo.checkout("other")

        orchestrator.ship("feature")

        assert repo.current_branch() == "other"

    def test_nothing_to_ship(self, orchestrator, repo):
        repo.create_branch("feature", "main")

        with pytest.raises(NothingToShipError) as excinfo:
            orchestrator.ship("feature")

        assert excinfo.value.report.state == OperationState.ABORTED
        assert "feature" in repo.heads

    def test_only_feature_branches_ship(self, orchestrator):
        with pytest.raises(ProtectedBranchError):
            orchestrator.ship("main")

    def test_missing_branch(self, orchestrator):
        with pytest.raises(BranchNotFoundError):
            orchestrator.ship("missing")

    def test_dirty_current_branch_is_not_shipped(self, orchestrator, repo, remote):
        _published_feature(repo, "feature")
        repo.checkout("feature")
        repo.dirty = True
        main_before, feature_before = repo.heads["main"], repo.heads["feature"]

        with pytest.raises(UncommittedChangesError):
            orchestrator.ship()

        assert repo.current_branch() == "feature"
        assert repo.heads["main"] == main_before
        assert repo.heads["feature"] == feature_before
        assert remote.branches["feature"] == feature_before
        assert repo.pushes == [("feature", False)]

    def test_other_branch_ships_while_current_is_dirty(self, orchestrator, repo):
        repo.create_branch("feature", "main")
        repo.commit("feature")
        repo.create_branch("other", "main")
        repo.checkout("other")
        repo.dirty = True

        report = orchestrator.ship("feature")

        assert report.state == OperationState.COMPLETED
        assert "feature" not in repo.heads


class TestSync:
    def test_sync_delegates_to_sweep(self, orchestrator, repo):
        orchestrator.create("feature", BranchRelation.AHEAD)

        report = orchestrator.sync()

        assert report.succeeded
        assert orchestrator.out_of_sync_count() == 0
        assert repo.current_branch() == "feature"
