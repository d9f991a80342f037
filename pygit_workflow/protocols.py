"""Protocols for dependency injection."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pygit_workflow.models import BranchInfo


class GitRepository(Protocol):
    """Protocol for the git operations the workflow engine is built on"""

    def list_local_branches(self) -> set[str]: ...
    def list_remote_branches(self) -> set[str]: ...
    def get_local_branches(self) -> list[BranchInfo]: ...
    def current_branch(self) -> str: ...
    def create_branch(self, name: str, from_ref: str) -> None: ...
    def checkout(self, name: str) -> None: ...
    def commit(self, target_branch: str, message: str | None = None) -> str: ...
    def delete_local_branch(self, name: str) -> bool: ...
    def delete_remote_branch(self, name: str) -> bool: ...
    def ahead_behind(self, ref_a: str, ref_b: str) -> tuple[int, int]: ...
    def fetch(self) -> None: ...
    def push(self, branch: str, force: bool = False) -> None: ...
    def pull(self, branch: str, rebase: bool = False) -> None: ...
    def merge(self, ref: str, ff_only: bool = False) -> None: ...
    def rebase(self, onto: str) -> None: ...
    def squash_merge(self, ref: str, message: str) -> str: ...
    def has_changes_against(self, branch: str, ref: str) -> bool: ...
    def has_uncommitted_changes(self) -> bool: ...
    def has_remote(self) -> bool: ...
    def ref_exists(self, ref: str) -> bool: ...
    def get_config_value(self, key: str) -> str | None: ...
    def set_config_value(self, key: str, value: str) -> None: ...
    def unset_config_value(self, key: str) -> None: ...

    @property
    def path(self) -> Path: ...

    @property
    def remote_name(self) -> str: ...


class OutputHandler(Protocol):
    """Protocol for handling output"""

    def info(self, message: str, indent: int = 0) -> None: ...
    def success(self, message: str, indent: int = 0) -> None: ...
    def warning(self, message: str, indent: int = 0) -> None: ...
    def error(self, message: str, indent: int = 0) -> None: ...
    def section(self, title: str) -> None: ...
    def debug(self, message: str) -> None: ...
