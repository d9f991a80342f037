"""Domain models: enums, dataclasses, and configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any


class SyncStatus(Enum):
    """Relation between a branch and the ref it is compared against"""
    IN_SYNC = auto()
    AHEAD = auto()
    BEHIND = auto()
    DIVERGED = auto()
    UNKNOWN = auto()

    @classmethod
    def from_counts(cls, ahead: int, behind: int) -> SyncStatus:
        """Classify a pair of ahead/behind commit counts."""
        if ahead and behind:
            return cls.DIVERGED
        if ahead:
            return cls.AHEAD
        if behind:
            return cls.BEHIND
        return cls.IN_SYNC


class BranchKind(Enum):
    """Workflow classification of a branch"""
    FEATURE = auto()
    NON_FEATURE = auto()
    MAIN = auto()


class BranchRelation(Enum):
    """Where the commits go when a branch is created with a relation to main"""
    NONE = auto()
    BEHIND = auto()
    AHEAD = auto()


class EndpointRole(Enum):
    """Role of a repository endpoint"""
    LOCAL = auto()
    PEER = auto()


class OperationState(Enum):
    """States of a lifecycle operation"""
    STARTED = auto()
    LOCAL_APPLIED = auto()
    REMOTE_APPLIED = auto()
    PEER_CONVERGED = auto()
    COMPLETED = auto()
    ABORTED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (OperationState.COMPLETED, OperationState.ABORTED)


class OperationType(Enum):
    """Lifecycle operations"""
    CREATE = auto()
    SYNC = auto()
    DELETE = auto()
    PRUNE = auto()
    SHIP = auto()


class IssueType(Enum):
    """Type-safe issue categories"""
    FAILED = auto()
    CONFLICT = auto()
    REJECTED = auto()
    NETWORK = auto()
    SKIPPED = auto()
    OUT_OF_SYNC = auto()
    STALE = auto()


@dataclass(frozen=True)
class BranchInfo:
    """Information about a git branch"""
    name: str
    commit_hash: str | None = None
    tracking_branch: str | None = None


@dataclass
class BranchStatus:
    """Divergence of a local branch from its remote counterpart and from main"""
    name: str
    kind: BranchKind = BranchKind.FEATURE
    has_remote: bool = False
    remote_ahead: int = 0
    remote_behind: int = 0
    main_ahead: int = 0
    main_behind: int = 0
    tolerate_ahead_of_main: bool = False

    @property
    def remote_status(self) -> SyncStatus:
        if not self.has_remote:
            return SyncStatus.UNKNOWN
        return SyncStatus.from_counts(self.remote_ahead, self.remote_behind)

    @property
    def main_status(self) -> SyncStatus:
        return SyncStatus.from_counts(self.main_ahead, self.main_behind)

    @property
    def is_out_of_sync(self) -> bool:
        """True unless the remote pair and, for feature branches, main relation are settled."""
        if self.remote_status != SyncStatus.IN_SYNC:
            return True
        if self.kind != BranchKind.FEATURE:
            return False
        main_status = self.main_status
        if main_status == SyncStatus.IN_SYNC:
            return False
        return not (main_status == SyncStatus.AHEAD and self.tolerate_ahead_of_main)


@dataclass(frozen=True)
class SyncIssue:
    """Immutable issue record"""
    branch: str
    issue_type: IssueType
    details: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.branch}: {self.details}"


@dataclass
class OperationReport:
    """Mutable accumulator tracking one lifecycle operation through its states"""
    operation: OperationType
    target: str | None = None
    state: OperationState = OperationState.STARTED
    history: list[OperationState] = field(default_factory=lambda: [OperationState.STARTED])
    initial_branch: str | None = None
    final_branch: str | None = None
    branches_synced: list[str] = field(default_factory=list)
    branches_deleted: list[str] = field(default_factory=list)
    issues: list[SyncIssue] = field(default_factory=list)
    error: Exception | None = None

    def advance(self, state: OperationState) -> None:
        """Move to the next state. Terminal states cannot be left."""
        if self.state.is_terminal:
            raise ValueError(f"{self.operation.name} already {self.state.name}")
        self.state = state
        self.history.append(state)

    def abort(self, error: Exception | None = None) -> None:
        """Enter the ABORTED terminal state, remembering the cause."""
        self.error = error
        if not self.state.is_terminal:
            self.advance(OperationState.ABORTED)

    def add_issue(self, issue: SyncIssue) -> None:
        """Record a per-branch issue encountered during a sweep."""
        self.issues.append(issue)

    def get_issues_by_type(self, issue_type: IssueType) -> list[SyncIssue]:
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    def failed_branches(self) -> list[str]:
        """Branches with an issue other than SKIPPED/OUT_OF_SYNC/STALE, in order of occurrence."""
        seen: list[str] = []
        for issue in self.issues:
            if issue.issue_type in (IssueType.SKIPPED, IssueType.OUT_OF_SYNC, IssueType.STALE):
                continue
            if issue.branch not in seen:
                seen.append(issue.branch)
        return seen

    def has_issues(self) -> bool:
        return len(self.issues) > 0

    @property
    def succeeded(self) -> bool:
        return self.state == OperationState.COMPLETED and not self.failed_branches()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            'operation': self.operation.name,
            'target': self.target,
            'state': self.state.name,
            'history': [s.name for s in self.history],
            'initial_branch': self.initial_branch,
            'final_branch': self.final_branch,
            'branches_synced': list(self.branches_synced),
            'branches_deleted': list(self.branches_deleted),
            'issues': [
                {
                    'branch': i.branch,
                    'type': i.issue_type.name,
                    'details': i.details,
                    'timestamp': i.timestamp.isoformat(),
                }
                for i in self.issues
            ],
            'error': str(self.error) if self.error else None,
            'succeeded': self.succeeded,
        }


@dataclass(frozen=True)
class WorkflowConfig:
    """Configuration for workflow operations"""
    main_branch: str = 'main'
    remote_name: str = 'origin'
    non_feature_branches: list[str] = field(default_factory=list)
    use_rebase: bool = False
    integrate_features: bool = True
    push_new_branches: bool = False
    keep_going: bool = False
    parallel: bool = False
    max_workers: int = field(default_factory=lambda: min(os.cpu_count() or 4, 8))
    verbose: bool = False
    json_output: bool = False
    commit_message: str | None = None

    def with_updates(self, **kwargs) -> WorkflowConfig:
        """Return a new WorkflowConfig with the given fields replaced."""
        current = {f.name: getattr(self, f.name) for f in self.__dataclass_fields__.values()}
        current.update(kwargs)
        return WorkflowConfig(**current)
