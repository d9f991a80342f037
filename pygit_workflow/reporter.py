"""SummaryReporter: renders operation reports and branch status tables."""

from __future__ import annotations

from pygit_workflow.models import (
    BranchStatus,
    IssueType,
    OperationReport,
    SyncIssue,
    SyncStatus,
    WorkflowConfig,
)
from pygit_workflow.output import SECTION_WIDTH
from pygit_workflow.protocols import OutputHandler

_STATUS_LABELS = {
    SyncStatus.IN_SYNC: "in sync",
    SyncStatus.AHEAD: "ahead",
    SyncStatus.BEHIND: "behind",
    SyncStatus.DIVERGED: "diverged",
    SyncStatus.UNKNOWN: "not pushed",
}


class SummaryReporter:
    """Generates and displays summary reports"""

    def __init__(self, output: OutputHandler):
        """Create a reporter that writes to the given output handler."""
        self.output = output

    def print_summary(self, report: OperationReport, config: WorkflowConfig):
        """Print the final summary of one operation with its issues and recommendations."""
        title = f"{report.operation.name} REPORT"
        self.output.section("╔" + "=" * SECTION_WIDTH + "╗")
        self.output.info("║" + title.center(SECTION_WIDTH) + "║")
        self.output.info("╚" + "=" * SECTION_WIDTH + "╝")
        self.output.info("")
        if report.target:
            self.output.info(f"Branch: {report.target}")
        self.output.info(f"State: {report.state.name} ({' → '.join(s.name for s in report.history)})")
        if report.final_branch:
            self.output.info(f"Current branch: {report.final_branch}")
        self.output.info("")

        if report.succeeded:
            self._print_success_summary(report)
        else:
            self._print_issues_summary(report, config)

        self.output.info("")
        self.output.info("=" * SECTION_WIDTH)

    def _print_success_summary(self, report: OperationReport):
        self.output.success("✅ ALL DONE")
        if report.branches_synced:
            self.output.info(f"Synced {len(report.branches_synced)} branch(es): {', '.join(report.branches_synced)}")
        if report.branches_deleted:
            self.output.info(f"Deleted {len(report.branches_deleted)} branch(es): {', '.join(report.branches_deleted)}")
        stale = report.get_issues_by_type(IssueType.STALE)
        if stale:
            self.output.warning(f"Upstream deleted, run prune to remove: {', '.join(i.branch for i in stale)}")
        out_of_sync = report.get_issues_by_type(IssueType.OUT_OF_SYNC)
        if out_of_sync:
            self.output.warning(f"Still out of sync: {', '.join(i.branch for i in out_of_sync)}")

    def _print_issues_summary(self, report: OperationReport, config: WorkflowConfig):
        """Print all issue categories and actionable recommendations."""
        self.output.warning("⚠️  ATTENTION REQUIRED")
        if report.error is not None:
            self.output.error(f"Stopped by: {report.error}")
        self.output.info("")

        self._print_issue_category("🔴 FAILED", report.get_issues_by_type(IssueType.FAILED))
        self._print_issue_category("💥 CONFLICTS", report.get_issues_by_type(IssueType.CONFLICT))
        self._print_issue_category("⛔ REJECTED BY REMOTE", report.get_issues_by_type(IssueType.REJECTED))
        self._print_issue_category("📡 NETWORK", report.get_issues_by_type(IssueType.NETWORK))
        self._print_issue_category("⏭️  SKIPPED", report.get_issues_by_type(IssueType.SKIPPED))
        self._print_issue_category("🔀 STILL OUT OF SYNC", report.get_issues_by_type(IssueType.OUT_OF_SYNC))
        self._print_issue_category("🗑️  UPSTREAM DELETED", report.get_issues_by_type(IssueType.STALE))

        self.output.info("=" * SECTION_WIDTH)
        self.output.info("")
        self.output.info("💡 RECOMMENDATIONS:")
        self.output.info("")

        if report.get_issues_by_type(IssueType.CONFLICT):
            self.output.info("• Resolve the conflicts by hand, then run sync again")
        if report.get_issues_by_type(IssueType.NETWORK):
            self.output.info(f"• Check that the '{config.remote_name}' remote is reachable and retry")
        if report.get_issues_by_type(IssueType.SKIPPED) and not config.keep_going:
            self.output.info("• Use --keep-going to continue past failing branches")
        if report.get_issues_by_type(IssueType.STALE):
            self.output.info("• Run prune to remove branches whose upstream was deleted")

    def _print_issue_category(self, title: str, issues: list[SyncIssue]):
        if not issues:
            return

        self.output.info(f"{title} ({len(issues)}):")
        self.output.info("-" * SECTION_WIDTH)
        for issue in issues:
            if issue.branch:
                self.output.info(f"  🌿 {issue.branch}: {issue.details}")
            else:
                self.output.info(f"  ↳ {issue.details}")
        self.output.info("")

    def print_status(self, statuses: list[BranchStatus], main_branch: str):
        """Print one line per branch with its remote and main relation."""
        self.output.section(f"Branches (compared with {main_branch})")
        for status in statuses:
            line = (
                f"{status.name:<30} {status.kind.name.lower():<12} "
                f"remote: {_STATUS_LABELS[status.remote_status]:<10} "
                f"main: {_STATUS_LABELS[status.main_status]}"
            )
            if status.is_out_of_sync:
                self.output.warning(line)
            else:
                self.output.info(line)
        out_of_sync = sum(1 for status in statuses if status.is_out_of_sync)
        self.output.info("")
        self.output.info(f"Out of sync: {out_of_sync}")
