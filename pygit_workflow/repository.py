"""Concrete GitPython-based repository implementation."""

from __future__ import annotations

import contextlib
import logging
import uuid
from pathlib import Path

from git import GitCommandError, Repo

from pygit_workflow.errors import (
    BranchExistsError,
    BranchNotFoundError,
    DetachedHeadError,
    MergeConflictError,
    NetworkUnavailableError,
    RemoteRejectedError,
    WorkflowError,
)
from pygit_workflow.models import BranchInfo

_NETWORK_MARKERS = (
    'could not resolve host',
    'could not read from remote',
    'unable to access',
    'does not appear to be a git repository',
    'connection refused',
    'connection timed out',
    'network is unreachable',
)

_REJECTED_MARKERS = (
    '[rejected]',
    'remote rejected',
    'non-fast-forward',
    'failed to push',
    'stale info',
    'permission denied',
)

_CONFLICT_MARKERS = (
    'conflict',
    'could not apply',
    'not possible to fast-forward',
    'automatic merge failed',
)


def translate_git_error(error: GitCommandError, message: str, branch: str | None = None) -> WorkflowError:
    """Map a failed git invocation onto the workflow error taxonomy."""
    text = f"{error.stderr or ''} {error.stdout or ''}".lower()
    if any(marker in text for marker in _NETWORK_MARKERS):
        return NetworkUnavailableError(f"{message}: remote unreachable", branch, error)
    if any(marker in text for marker in _REJECTED_MARKERS):
        return RemoteRejectedError(f"{message}: rejected by remote", branch, error)
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return MergeConflictError(f"{message}: conflicts", branch, error)
    return WorkflowError(message, branch, error)


class GitPythonRepository:
    """Concrete implementation using GitPython"""

    def __init__(self, repo_path: Path, remote_name: str = 'origin'):
        """Open a git repository at the given path."""
        self._path = Path(repo_path)
        self._repo = Repo(repo_path)
        self._remote_name = remote_name
        self._logger = logging.getLogger(__name__)

    def close(self) -> None:
        """Release underlying git resources."""
        self._repo.close()

    @property
    def path(self) -> Path:
        """Absolute path to the repository root."""
        return self._path

    @property
    def remote_name(self) -> str:
        return self._remote_name

    def _fail(self, error: GitCommandError, message: str, branch: str | None = None) -> WorkflowError:
        translated = translate_git_error(error, message, branch)
        self._logger.warning("%s in %s (%s)", message, self._path, type(translated).__name__)
        return translated

    # -- queries -----------------------------------------------------------

    def current_branch(self) -> str:
        """Name of the checked-out branch. Raises DetachedHeadError if HEAD is detached."""
        try:
            return self._repo.active_branch.name
        except TypeError as e:
            raise DetachedHeadError(f"No branch checked out in {self._path}", cause=e) from e

    def list_local_branches(self) -> set[str]:
        return {head.name for head in self._repo.heads}

    def list_remote_branches(self) -> set[str]:
        """Remote branches in remote-tracking form, e.g. {'origin/main'}."""
        if not self.has_remote():
            return set()
        prefix = 'refs/remotes/'
        output = self._repo.git.for_each_ref('--format=%(refname)', f'{prefix}{self._remote_name}')
        names = set()
        for line in output.splitlines():
            name = line.strip()[len(prefix):]
            if name and not name.endswith('/HEAD'):
                names.add(name)
        return names

    def get_local_branches(self) -> list[BranchInfo]:
        """Return info for all local branches, including their upstream if configured."""
        output = self._repo.git.for_each_ref(
            '--format=%(refname:short)%09%(objectname)%09%(upstream:short)', 'refs/heads'
        )
        branches = []
        for line in output.splitlines():
            parts = line.split('\t')
            if len(parts) < 2:
                continue
            tracking = parts[2] if len(parts) > 2 and parts[2] else None
            branches.append(BranchInfo(
                name=parts[0],
                commit_hash=parts[1],
                tracking_branch=tracking,
            ))
        return branches

    def has_remote(self) -> bool:
        return any(remote.name == self._remote_name for remote in self._repo.remotes)

    def ref_exists(self, ref: str) -> bool:
        try:
            self._repo.git.rev_parse('--verify', '--quiet', f'{ref}^{{commit}}')
            return True
        except GitCommandError:
            return False

    def ahead_behind(self, ref_a: str, ref_b: str) -> tuple[int, int]:
        """Return (commits in ref_a not in ref_b, commits in ref_b not in ref_a)."""
        for ref in (ref_a, ref_b):
            if not self.ref_exists(ref):
                raise BranchNotFoundError(f"Unknown ref '{ref}'", ref)
        counts = self._repo.git.rev_list('--left-right', '--count', f'{ref_a}...{ref_b}')
        ahead, behind = counts.split()
        return int(ahead), int(behind)

    def has_changes_against(self, branch: str, ref: str) -> bool:
        """Return True if branch changes any file relative to its merge base with ref."""
        return bool(self._repo.git.diff('--name-only', f'{ref}...{branch}').strip())

    def has_uncommitted_changes(self) -> bool:
        """Return True if the working tree has staged, unstaged, or untracked changes."""
        return self._repo.is_dirty(untracked_files=True)

    # -- local mutations ---------------------------------------------------

    def create_branch(self, name: str, from_ref: str) -> None:
        """Create a branch at from_ref without checking it out."""
        if name in self.list_local_branches():
            raise BranchExistsError(f"Branch '{name}' already exists", name)
        if not self.ref_exists(from_ref):
            raise BranchNotFoundError(f"Cannot branch from unknown ref '{from_ref}'", from_ref)
        self._logger.debug("git branch %s %s", name, from_ref)
        try:
            self._repo.git.branch(name, from_ref)
        except GitCommandError as e:
            raise self._fail(e, f"Branch creation failed for {name}", name) from e

    def checkout(self, name: str) -> None:
        """Check out a local branch by name."""
        if name not in self.list_local_branches():
            raise BranchNotFoundError(f"Branch '{name}' does not exist", name)
        self._logger.debug("git checkout %s", name)
        try:
            self._repo.git.checkout(name)
        except GitCommandError as e:
            raise self._fail(e, f"Checkout of {name} failed", name) from e

    def commit(self, target_branch: str, message: str | None = None) -> str:
        """Add a commit touching a new file on target_branch and return its hash.

        The previously checked-out branch is restored afterwards.
        """
        if target_branch not in self.list_local_branches():
            raise BranchNotFoundError(f"Branch '{target_branch}' does not exist", target_branch)
        original = self.current_branch()
        if original != target_branch:
            self.checkout(target_branch)
        try:
            token = uuid.uuid4().hex[:8]
            filename = f"{target_branch.replace('/', '_')}_{token}.txt"
            message = message or f"{target_branch} commit {token}"
            (self._path / filename).write_text(f"{message}\n")
            self._repo.git.add(filename)
            self._repo.git.commit('-m', message)
            return self._repo.git.rev_parse('HEAD')
        except GitCommandError as e:
            raise self._fail(e, f"Commit on {target_branch} failed", target_branch) from e
        finally:
            if original != target_branch:
                self.checkout(original)

    def merge(self, ref: str, ff_only: bool = False) -> None:
        """Merge ref into the current branch. Aborts the merge on failure."""
        args = ['--no-edit', '--ff-only' if ff_only else '--ff', ref]
        self._logger.debug("git merge %s", ' '.join(args))
        try:
            self._repo.git.merge(*args)
        except GitCommandError as e:
            with contextlib.suppress(GitCommandError):
                self._repo.git.merge('--abort')
            raise self._fail(e, f"Merge of {ref} failed", ref) from e

    def rebase(self, onto: str) -> None:
        """Rebase the current branch onto a ref. Aborts the rebase on failure."""
        self._logger.debug("git rebase %s", onto)
        try:
            self._repo.git.rebase(onto)
        except GitCommandError as e:
            with contextlib.suppress(GitCommandError):
                self._repo.git.rebase('--abort')
            raise self._fail(e, f"Rebase onto {onto} failed", onto) from e

    def squash_merge(self, ref: str, message: str) -> str:
        """Squash-merge ref into the current branch as one commit and return its hash."""
        self._logger.debug("git merge --squash %s", ref)
        try:
            self._repo.git.merge('--squash', ref)
            self._repo.git.commit('-m', message)
            return self._repo.git.rev_parse('HEAD')
        except GitCommandError as e:
            with contextlib.suppress(GitCommandError):
                self._repo.git.reset('--merge')
            raise self._fail(e, f"Squash merge of {ref} failed", ref) from e

    def delete_local_branch(self, name: str) -> bool:
        """Force-delete a local branch. Returns False if it did not exist."""
        if name not in self.list_local_branches():
            return False
        self._logger.debug("git branch -D %s", name)
        try:
            self._repo.git.branch('-D', name)
            return True
        except GitCommandError as e:
            raise self._fail(e, f"Deletion of {name} failed", name) from e

    # -- remote operations -------------------------------------------------

    def fetch(self) -> None:
        """Fetch from the remote, pruning refs deleted upstream."""
        if not self.has_remote():
            return
        self._logger.debug("git fetch %s --prune", self._remote_name)
        try:
            self._repo.git.fetch(self._remote_name, '--prune')
        except GitCommandError as e:
            raise self._fail(e, "Fetch failed") from e

    def push(self, branch: str, force: bool = False) -> None:
        """Push a branch and set its upstream."""
        args = ['-u', self._remote_name, branch]
        if force:
            args.insert(0, '--force-with-lease')
        self._logger.debug("git push %s", ' '.join(args))
        try:
            self._repo.git.push(*args)
        except GitCommandError as e:
            raise self._fail(e, f"Push of {branch} failed", branch) from e

    def pull(self, branch: str, rebase: bool = False) -> None:
        """Check out branch and pull its remote counterpart (rebase or merge)."""
        if self.current_branch() != branch:
            self.checkout(branch)
        args = [self._remote_name, branch]
        if rebase:
            args.insert(0, '--rebase')
        else:
            args[:0] = ['--no-rebase', '--no-edit']
        self._logger.debug("git pull %s", ' '.join(args))
        try:
            self._repo.git.pull(*args)
        except GitCommandError as e:
            with contextlib.suppress(GitCommandError):
                if rebase:
                    self._repo.git.rebase('--abort')
                else:
                    self._repo.git.merge('--abort')
            raise self._fail(e, f"Pull of {branch} failed", branch) from e

    def delete_remote_branch(self, name: str) -> bool:
        """Delete a branch on the remote. Returns False if the remote had no such branch."""
        if not self.has_remote():
            return False
        try:
            listing = self._repo.git.ls_remote('--heads', self._remote_name, f'refs/heads/{name}')
        except GitCommandError as e:
            raise self._fail(e, f"Listing remote branch {name} failed", name) from e

        if not listing.strip():
            # Gone upstream already; drop our stale remote-tracking ref if any.
            with contextlib.suppress(GitCommandError):
                self._repo.git.branch('-rd', f'{self._remote_name}/{name}')
            return False

        self._logger.debug("git push %s --delete %s", self._remote_name, name)
        try:
            self._repo.git.push(self._remote_name, '--delete', name)
            return True
        except GitCommandError as e:
            raise self._fail(e, f"Remote deletion of {name} failed", name) from e

    # -- repository metadata -----------------------------------------------

    def get_config_value(self, key: str) -> str | None:
        try:
            return self._repo.git.config('--get', key)
        except GitCommandError:
            return None

    def set_config_value(self, key: str, value: str) -> None:
        self._repo.git.config(key, value)

    def unset_config_value(self, key: str) -> None:
        with contextlib.suppress(GitCommandError):
            self._repo.git.config('--unset', key)
