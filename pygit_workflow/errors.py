"""Exception taxonomy raised by the repository adapter and the orchestrator."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for all workflow errors"""

    def __init__(self, message: str, branch: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.branch = branch
        self.cause = cause
        self.report = None


class BranchNotFoundError(WorkflowError):
    """A referenced branch is absent where it is required"""


class BranchExistsError(WorkflowError):
    """A branch with the requested name already exists"""


class DetachedHeadError(WorkflowError):
    """No branch is checked out"""


class RemoteRejectedError(WorkflowError):
    """The remote refused a push or a delete"""


class NetworkUnavailableError(WorkflowError):
    """The remote could not be reached"""


class MergeConflictError(WorkflowError):
    """A merge or rebase stopped on conflicts and was aborted"""


class ProtectedBranchError(WorkflowError):
    """The operation is not allowed on this kind of branch"""


class NothingToShipError(WorkflowError):
    """The branch has no changes relative to main"""


class UncommittedChangesError(WorkflowError):
    """The working copy has changes that are not committed"""
