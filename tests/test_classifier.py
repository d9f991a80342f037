"""Tests for BranchClassifier."""

from fakes import FakeGitRepository

from pygit_workflow import BranchClassifier, BranchKind, WorkflowConfig
from pygit_workflow.classifier import NON_FEATURE_CONFIG_KEY


class TestClassify:
    def test_unknown_names_are_features(self):
        classifier = BranchClassifier()
        assert classifier.classify("anything") == BranchKind.FEATURE
        assert classifier.is_feature("anything") is True

    def test_main_is_never_a_feature(self):
        classifier = BranchClassifier(main_branch="trunk")
        assert classifier.classify("trunk") == BranchKind.MAIN
        assert classifier.is_feature("trunk") is False
        assert classifier.is_feature("main") is True

    def test_main_cannot_be_registered_non_feature(self):
        classifier = BranchClassifier(non_feature_branches=["main", "release"])
        classifier.register_non_feature("main")
        assert classifier.classify("main") == BranchKind.MAIN
        assert classifier.non_feature_branches == ["release"]

    def test_register_non_feature_is_idempotent(self):
        classifier = BranchClassifier()
        classifier.register_non_feature("release")
        classifier.register_non_feature("release")
        assert classifier.classify("release") == BranchKind.NON_FEATURE
        assert classifier.non_feature_branches == ["release"]

    def test_register_feature_undoes_registration(self):
        classifier = BranchClassifier(non_feature_branches=["release"])
        classifier.register_feature("release")
        assert classifier.is_feature("release") is True

    def test_filters(self):
        classifier = BranchClassifier(non_feature_branches=["release", "qa"])
        names = {"main", "release", "b", "a", "qa"}
        assert classifier.feature_branches(names) == ["a", "b"]
        assert classifier.non_feature_branches_in(names) == ["qa", "release"]


class TestPersistence:
    def test_registrations_written_to_repository(self):
        repo = FakeGitRepository()
        classifier = BranchClassifier.from_repository(repo, WorkflowConfig())
        classifier.register_non_feature("release")
        classifier.register_non_feature("qa")
        assert repo.config[NON_FEATURE_CONFIG_KEY] == "qa release"

    def test_loaded_from_repository_and_config(self):
        repo = FakeGitRepository()
        repo.config[NON_FEATURE_CONFIG_KEY] = "release"
        config = WorkflowConfig(non_feature_branches=["staging"])
        classifier = BranchClassifier.from_repository(repo, config)
        assert classifier.non_feature_branches == ["release", "staging"]

    def test_last_registration_removed_unsets_key(self):
        repo = FakeGitRepository()
        classifier = BranchClassifier.from_repository(repo, WorkflowConfig())
        classifier.register_non_feature("release")
        classifier.register_feature("release")
        assert NON_FEATURE_CONFIG_KEY not in repo.config

    def test_separate_repositories_are_independent(self):
        local, peer = FakeGitRepository(), FakeGitRepository()
        BranchClassifier.from_repository(local, WorkflowConfig()).register_non_feature("release")
        peer_classifier = BranchClassifier.from_repository(peer, WorkflowConfig())
        assert peer_classifier.is_feature("release") is True
