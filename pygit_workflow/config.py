"""Configuration: argument parser and config file loader."""

from __future__ import annotations

import argparse
import tomllib
from pathlib import Path
from typing import Any

CONFIG_FILE_NAME = '.pygitworkflow.toml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all pygit-workflow flags and commands."""
    # Lazy import to avoid circular dependency with __init__.py
    from pygit_workflow import __version__

    parser = argparse.ArgumentParser(
        prog='pygit-workflow',
        description="Create, sync, delete and ship feature branches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s create my-feature                 # Branch off main
  %(prog)s sync                              # Sync all branches with main and origin
  %(prog)s --rebase sync --keep-going        # Rebase feature branches, don't stop on failures
  %(prog)s non-feature release               # Never auto-delete 'release'
  %(prog)s prune                             # Remove finished feature branches
  %(prog)s ship my-feature -m "Add thing"    # Squash-merge into main
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--repo', default='.',
                        help='Repository to operate on (default: current directory)')
    parser.add_argument('--main', dest='main_branch', default='main',
                        help='Name of the main branch (default: main)')
    parser.add_argument('--remote', dest='remote_name', default='origin',
                        help='Remote name (default: origin)')
    parser.add_argument('--rebase', dest='use_rebase', action='store_true',
                        help='Rebase feature branches onto main instead of merging')
    parser.add_argument('--no-integrate', dest='integrate_features', action='store_false',
                        help='Do not fast-forward main to feature branches during sync')
    parser.add_argument('--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--json', dest='json_output', action='store_true',
                        help='Output results as JSON (suppresses normal output)')
    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to config file (default: {CONFIG_FILE_NAME} in repo or home)')

    commands = parser.add_subparsers(dest='command', required=True)

    create = commands.add_parser('create', help='Create a feature branch from main and check it out')
    create.add_argument('name')
    relation = create.add_mutually_exclusive_group()
    relation.add_argument('--behind', dest='relation', action='store_const', const='behind',
                          help='Add a commit to main so the new branch is behind it')
    relation.add_argument('--ahead', dest='relation', action='store_const', const='ahead',
                          help='Add a commit to the new branch so it is ahead of main')
    create.add_argument('--non-feature', action='store_true',
                        help='Register the new branch as non-feature')
    create.add_argument('--push', dest='push_new_branches', action='store_true',
                        help='Push the new branch right away')

    sync = commands.add_parser('sync', help='Sync main and all local branches')
    sync.add_argument('branches', nargs='*', help='Only these branches (default: all)')
    sync.add_argument('--keep-going', action='store_true',
                      help='Continue with the remaining branches after a failure')

    delete = commands.add_parser('delete', help='Delete a branch locally and on the remote')
    delete.add_argument('name')
    delete.add_argument('--force', action='store_true', help='Allow deleting a non-feature branch')

    prune = commands.add_parser('prune', help='Delete finished feature branches')
    prune.add_argument('--all', dest='include_unmerged', action='store_true',
                       help='Delete every feature branch, merged or not')

    ship = commands.add_parser('ship', help='Squash-merge a feature branch into main')
    ship.add_argument('name', nargs='?', default=None)
    ship.add_argument('-m', '--message', dest='commit_message', default=None,
                      help='Commit message for the squash commit')

    commands.add_parser('status', help='Show how far each branch is from origin and main')

    non_feature = commands.add_parser('non-feature', help='Register non-feature branches')
    non_feature.add_argument('names', nargs='+')

    feature = commands.add_parser('feature', help='Turn non-feature branches back into feature branches')
    feature.add_argument('names', nargs='+')

    return parser


def load_config_file(search_dir: Path, config_path: str | None = None) -> dict[str, Any]:
    """Load the TOML config from an explicit path, the repository, or the home dir.

    Returns empty dict if not found or unreadable.
    """
    if config_path:
        candidates = [Path(config_path)]
    else:
        candidates = [search_dir / CONFIG_FILE_NAME, Path.home() / CONFIG_FILE_NAME]
    for path in candidates:
        if path.is_file():
            try:
                with open(path, 'rb') as f:
                    return tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                print(f"Warning: Failed to parse {path}: {e}")
                return {}
    if config_path:
        print(f"Warning: Config file '{config_path}' not found. Ignoring.")
    return {}
