"""Repository endpoints and running operations across several of them."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from git import Repo
from tqdm import tqdm

from pygit_workflow.errors import WorkflowError
from pygit_workflow.models import (
    EndpointRole,
    IssueType,
    OperationReport,
    OperationType,
    SyncIssue,
    WorkflowConfig,
)
from pygit_workflow.orchestrator import WorkflowOrchestrator
from pygit_workflow.output import BufferedOutputHandler
from pygit_workflow.protocols import GitRepository, OutputHandler
from pygit_workflow.repository import GitPythonRepository


@dataclass
class RepositoryEndpoint:
    """One working copy (local or a peer's clone) sharing the remote with the others.

    Endpoints never touch each other directly; what one pushes, another sees
    only after its own fetch.
    """
    role: EndpointRole
    repo: GitRepository
    name: str = ''

    @property
    def path(self) -> Path:
        return self.repo.path

    @property
    def label(self) -> str:
        return self.name or f"{self.role.name.lower()}:{self.path}"

    def orchestrator(self, config: WorkflowConfig, output: OutputHandler, **kwargs) -> WorkflowOrchestrator:
        """Orchestrator bound to this endpoint, with its own classifier."""
        return WorkflowOrchestrator(self.repo, config, output, **kwargs)

    def close(self) -> None:
        close = getattr(self.repo, 'close', None)
        if close is not None:
            close()


def open_endpoint(
    path: Path,
    config: WorkflowConfig,
    role: EndpointRole = EndpointRole.LOCAL,
    name: str = '',
) -> RepositoryEndpoint:
    """Open an existing working copy as an endpoint."""
    return RepositoryEndpoint(role, GitPythonRepository(path, config.remote_name), name)


def clone_endpoint(
    remote_url: str,
    path: Path,
    config: WorkflowConfig,
    role: EndpointRole = EndpointRole.PEER,
    name: str = '',
) -> RepositoryEndpoint:
    """Clone the shared remote into path and open the clone as an endpoint."""
    Repo.clone_from(str(remote_url), str(path), origin=config.remote_name).close()
    return open_endpoint(path, config, role, name)


class EndpointGroup:
    """Runs the same operation on several endpoints, one after another or in parallel"""

    def __init__(
        self,
        endpoints: list[RepositoryEndpoint],
        config: WorkflowConfig,
        output: OutputHandler,
    ):
        self.endpoints = endpoints
        self.config = config
        self.output = output

    def sync_all(self) -> dict[str, OperationReport]:
        return self.run(OperationType.SYNC, lambda orchestrator: orchestrator.sync())

    def prune_all(self, include_unmerged: bool = False) -> dict[str, OperationReport]:
        return self.run(OperationType.PRUNE, lambda orchestrator: orchestrator.prune(include_unmerged))

    def run(
        self,
        operation: OperationType,
        action: Callable[[WorkflowOrchestrator], OperationReport],
    ) -> dict[str, OperationReport]:
        """Apply action to every endpoint. Returns reports keyed by endpoint label."""
        if self.config.parallel and len(self.endpoints) > 1:
            return self._run_parallel(operation, action)
        return self._run_sequential(operation, action)

    def _run_sequential(self, operation, action) -> dict[str, OperationReport]:
        reports: dict[str, OperationReport] = {}
        with tqdm(total=len(self.endpoints), desc=operation.name.title(), unit="repo",
                  disable=self.config.json_output) as pbar:
            for endpoint in self.endpoints:
                pbar.set_postfix_str(endpoint.label, refresh=True)
                self.output.section(f"Processing: {endpoint.label}")
                reports[endpoint.label] = self._run_one(endpoint, operation, action, self.output)
                pbar.update(1)
        return reports

    def _run_parallel(self, operation, action) -> dict[str, OperationReport]:
        """Run with one worker per endpoint and buffered output per thread."""
        reports: dict[str, OperationReport] = {}

        def _run_with_buffer(endpoint: RepositoryEndpoint) -> tuple[OperationReport, BufferedOutputHandler]:
            buf = BufferedOutputHandler()
            buf.section(f"Processing: {endpoint.label}")
            return self._run_one(endpoint, operation, action, buf), buf

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(_run_with_buffer, endpoint): endpoint for endpoint in self.endpoints}
            for future in concurrent.futures.as_completed(futures):
                endpoint = futures[future]
                report, buf = future.result()
                buf.flush_to(self.output)
                reports[endpoint.label] = report
        return reports

    def _run_one(self, endpoint, operation, action, output) -> OperationReport:
        orchestrator = endpoint.orchestrator(self.config, output)
        try:
            return action(orchestrator)
        except WorkflowError as e:
            output.error(f"Error in {endpoint.label}: {e}")
            if e.report is not None:
                return e.report
            report = OperationReport(operation)
            report.add_issue(SyncIssue(e.branch or "", IssueType.FAILED, str(e)))
            report.abort(e)
            return report
