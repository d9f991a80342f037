"""BranchClassifier: feature vs non-feature registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pygit_workflow.models import BranchKind, WorkflowConfig
from pygit_workflow.protocols import GitRepository

NON_FEATURE_CONFIG_KEY = 'pygit-workflow.non-feature-branches'

logger = logging.getLogger(__name__)


class BranchClassifier:
    """Decides which branches the workflow automation may sync and clean up.

    Unknown names are feature branches. The main branch is never a feature
    branch. Non-feature branches are kept current with main but are never
    deleted by cleanup sweeps. When bound to a repository, registrations are
    written through to its git config so they survive the process.
    """

    def __init__(
        self,
        main_branch: str = 'main',
        non_feature_branches: Iterable[str] = (),
        repo: GitRepository | None = None,
    ):
        self.main_branch = main_branch
        self._non_feature = {name for name in non_feature_branches if name != main_branch}
        self._repo = repo

    @classmethod
    def from_repository(cls, repo: GitRepository, config: WorkflowConfig) -> BranchClassifier:
        """Build a classifier from the config plus names stored in the repository."""
        stored = repo.get_config_value(NON_FEATURE_CONFIG_KEY) or ''
        names = set(config.non_feature_branches) | set(stored.split())
        return cls(config.main_branch, names, repo=repo)

    def classify(self, name: str) -> BranchKind:
        if name == self.main_branch:
            return BranchKind.MAIN
        if name in self._non_feature:
            return BranchKind.NON_FEATURE
        return BranchKind.FEATURE

    def is_feature(self, name: str) -> bool:
        return self.classify(name) == BranchKind.FEATURE

    def feature_branches(self, names: Iterable[str]) -> list[str]:
        """Sorted feature branches among the given names."""
        return sorted(name for name in names if self.is_feature(name))

    def non_feature_branches_in(self, names: Iterable[str]) -> list[str]:
        """Sorted non-feature branches among the given names."""
        return sorted(name for name in names if self.classify(name) == BranchKind.NON_FEATURE)

    @property
    def non_feature_branches(self) -> list[str]:
        return sorted(self._non_feature)

    def register_non_feature(self, name: str) -> None:
        """Mark a branch as non-feature. Idempotent; main is left as is."""
        if name == self.main_branch or name in self._non_feature:
            return
        self._non_feature.add(name)
        logger.debug("Registered %s as non-feature branch", name)
        self._persist()

    def register_feature(self, name: str) -> None:
        """Undo a non-feature registration."""
        if name not in self._non_feature:
            return
        self._non_feature.discard(name)
        logger.debug("Registered %s as feature branch", name)
        self._persist()

    def _persist(self) -> None:
        if self._repo is None:
            return
        if self._non_feature:
            self._repo.set_config_value(NON_FEATURE_CONFIG_KEY, ' '.join(sorted(self._non_feature)))
        else:
            self._repo.unset_config_value(NON_FEATURE_CONFIG_KEY)
