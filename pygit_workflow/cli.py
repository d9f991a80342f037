"""CLI entry point: main() function."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from colorama import Fore, Style
from git import InvalidGitRepositoryError, NoSuchPathError

from pygit_workflow.config import create_argument_parser, load_config_file
from pygit_workflow.errors import WorkflowError
from pygit_workflow.models import BranchKind, BranchRelation, OperationReport, WorkflowConfig
from pygit_workflow.orchestrator import WorkflowOrchestrator
from pygit_workflow.output import ConsoleOutputHandler, NullOutputHandler
from pygit_workflow.reporter import SummaryReporter
from pygit_workflow.repository import GitPythonRepository

_RELATIONS = {
    None: BranchRelation.NONE,
    'behind': BranchRelation.BEHIND,
    'ahead': BranchRelation.AHEAD,
}

# Global flags whose value may come from the config file: (argparse dest, toml key)
_FILE_BACKED = (
    ('main_branch', 'main_branch'),
    ('remote_name', 'remote_name'),
    ('use_rebase', 'use_rebase'),
    ('integrate_features', 'integrate_features'),
    ('verbose', 'verbose'),
    ('json_output', 'json_output'),
)


def build_config(parser, args, argv: list[str], file_config: dict) -> WorkflowConfig:
    """Merge defaults, config file values, and explicitly given CLI flags (in that order)."""
    cli_explicit = set()
    for action in parser._actions:
        if action.dest in ('help', 'version'):
            continue
        if any(opt in argv for opt in action.option_strings):
            cli_explicit.add(action.dest)

    values = {}
    for dest, toml_key in _FILE_BACKED:
        if dest not in cli_explicit and toml_key in file_config:
            values[dest] = file_config[toml_key]
        else:
            values[dest] = getattr(args, dest)

    non_feature = file_config.get('non_feature_branches', [])
    if isinstance(non_feature, str):
        non_feature = non_feature.split()

    return WorkflowConfig(
        non_feature_branches=list(non_feature),
        push_new_branches=getattr(args, 'push_new_branches', False) or file_config.get('push_new_branches', False),
        keep_going=getattr(args, 'keep_going', False) or file_config.get('keep_going', False),
        commit_message=getattr(args, 'commit_message', None) or file_config.get('commit_message'),
        **values,
    )


def run_command(args, orchestrator: WorkflowOrchestrator, output, config: WorkflowConfig) -> OperationReport | None:
    """Dispatch the parsed sub-command. Returns the operation report, if any."""
    reporter = SummaryReporter(output)

    if args.command == 'create':
        kind = BranchKind.NON_FEATURE if args.non_feature else BranchKind.FEATURE
        return orchestrator.create(args.name, _RELATIONS[args.relation], kind, push=config.push_new_branches)
    if args.command == 'sync':
        return orchestrator.sync(args.branches or None)
    if args.command == 'delete':
        return orchestrator.delete(args.name, force=args.force)
    if args.command == 'prune':
        return orchestrator.prune(include_unmerged=args.include_unmerged)
    if args.command == 'ship':
        return orchestrator.ship(args.name, config.commit_message)
    if args.command == 'status':
        statuses = orchestrator.status()
        if config.json_output:
            print(json.dumps({
                'current_branch': orchestrator.current_branch(),
                'out_of_sync': orchestrator.out_of_sync_count(),
                'branches': [
                    {
                        'name': s.name,
                        'kind': s.kind.name,
                        'remote': s.remote_status.name,
                        'main': s.main_status.name,
                        'out_of_sync': s.is_out_of_sync,
                    }
                    for s in statuses
                ],
            }, indent=2))
        else:
            reporter.print_status(statuses, orchestrator.main)
        return None
    if args.command == 'non-feature':
        for name in args.names:
            orchestrator.register_non_feature(name)
        output.success(f"✓ Non-feature branches: {', '.join(orchestrator.classifier.non_feature_branches)}")
        return None
    if args.command == 'feature':
        for name in args.names:
            orchestrator.register_feature(name)
        output.success(f"✓ Feature branches: {', '.join(args.names)}")
        return None
    raise ValueError(f"Unknown command {args.command}")


def main(argv: list[str] | None = None):
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    repo_dir = Path(args.repo).resolve()
    file_config = load_config_file(repo_dir, args.config)
    config = build_config(parser, args, argv, file_config)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    output = NullOutputHandler() if config.json_output else ConsoleOutputHandler(verbose=config.verbose)

    try:
        repo = GitPythonRepository(repo_dir, config.remote_name)
    except (InvalidGitRepositoryError, NoSuchPathError):
        print(f"{Fore.RED}Error: Not a git repository '{repo_dir}'{Style.RESET_ALL}")
        sys.exit(1)

    orchestrator = WorkflowOrchestrator(repo, config, output, show_progress=not config.json_output)

    try:
        report = run_command(args, orchestrator, output, config)
        if report is None:
            sys.exit(0)

        if config.json_output:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            SummaryReporter(output).print_summary(report, config)
        sys.exit(0 if report.succeeded else 1)

    except WorkflowError as e:
        if config.json_output:
            payload = {'error': str(e), 'type': type(e).__name__}
            if e.report is not None:
                payload['report'] = e.report.to_dict()
            print(json.dumps(payload, indent=2))
        else:
            output.error(f"\n{type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        if not config.json_output:
            output.warning("\n\nInterrupted by user")
        sys.exit(130)
    finally:
        repo.close()
