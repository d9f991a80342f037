"""
pygit-workflow: Git Branch Workflow Tool

Creates, syncs, deletes and ships feature branches while keeping the local
repository, its remote, and other clones of that remote convergent.
"""

from colorama import init as colorama_init

colorama_init(autoreset=True)

__version__ = "0.3.0"

# Re-export public API so `from pygit_workflow import X` keeps working.
from pygit_workflow.classifier import BranchClassifier  # noqa: E402
from pygit_workflow.cli import main  # noqa: E402
from pygit_workflow.config import create_argument_parser, load_config_file  # noqa: E402
from pygit_workflow.divergence import DivergenceCalculator  # noqa: E402
from pygit_workflow.endpoint import (  # noqa: E402
    EndpointGroup,
    RepositoryEndpoint,
    clone_endpoint,
    open_endpoint,
)
from pygit_workflow.errors import (  # noqa: E402
    BranchExistsError,
    BranchNotFoundError,
    DetachedHeadError,
    MergeConflictError,
    NetworkUnavailableError,
    NothingToShipError,
    UncommittedChangesError,
    ProtectedBranchError,
    RemoteRejectedError,
    WorkflowError,
)
from pygit_workflow.models import (  # noqa: E402
    BranchInfo,
    BranchKind,
    BranchRelation,
    BranchStatus,
    EndpointRole,
    IssueType,
    OperationReport,
    OperationState,
    OperationType,
    SyncIssue,
    SyncStatus,
    WorkflowConfig,
)
from pygit_workflow.orchestrator import WorkflowOrchestrator  # noqa: E402
from pygit_workflow.output import (  # noqa: E402
    SECTION_WIDTH,
    BufferedOutputHandler,
    ConsoleOutputHandler,
    NullOutputHandler,
)
from pygit_workflow.protocols import GitRepository, OutputHandler  # noqa: E402
from pygit_workflow.reporter import SummaryReporter  # noqa: E402
from pygit_workflow.repository import GitPythonRepository  # noqa: E402
from pygit_workflow.strategies import (  # noqa: E402
    MergeSyncStrategy,
    RebaseSyncStrategy,
    SyncStrategy,
    strategy_for,
)
from pygit_workflow.synchronizer import BranchSynchronizer  # noqa: E402

__all__ = [
    "__version__",
    # Models
    "BranchInfo",
    "BranchKind",
    "BranchRelation",
    "BranchStatus",
    "EndpointRole",
    "IssueType",
    "OperationReport",
    "OperationState",
    "OperationType",
    "SyncIssue",
    "SyncStatus",
    "WorkflowConfig",
    # Errors
    "WorkflowError",
    "BranchExistsError",
    "BranchNotFoundError",
    "DetachedHeadError",
    "MergeConflictError",
    "NetworkUnavailableError",
    "NothingToShipError",
    "UncommittedChangesError",
    "ProtectedBranchError",
    "RemoteRejectedError",
    # Protocols
    "GitRepository",
    "OutputHandler",
    # Implementations
    "GitPythonRepository",
    "BufferedOutputHandler",
    "ConsoleOutputHandler",
    "NullOutputHandler",
    "SECTION_WIDTH",
    # Strategies
    "MergeSyncStrategy",
    "RebaseSyncStrategy",
    "SyncStrategy",
    "strategy_for",
    # Services
    "BranchClassifier",
    "BranchSynchronizer",
    "DivergenceCalculator",
    "EndpointGroup",
    "RepositoryEndpoint",
    "SummaryReporter",
    "WorkflowOrchestrator",
    "clone_endpoint",
    "open_endpoint",
    # Config / CLI
    "create_argument_parser",
    "load_config_file",
    "main",
]
