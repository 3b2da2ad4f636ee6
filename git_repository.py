#!/usr/bin/env python3
"""GitPython wrapper exposing the git operations used for mirroring."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence

import git
from git import FetchInfo, GitCommandError, PushInfo

from errors import (BranchSyncError, CheckoutFailed, FetchFailed, PullFailed,
                    PushFailed, RemoteError, RemoteListFailed, RepoOpenFailed,
                    ResetFailed)
from logging_utils import Logger
from reconciler import LocalBranchRef, RemoteBranchRef, TagRef
from utils import is_branch_ref, short_ref_name

PUSH_ERROR_FLAGS = (
    PushInfo.ERROR | PushInfo.REJECTED | PushInfo.REMOTE_REJECTED | PushInfo.REMOTE_FAILURE
)
FETCH_ERROR_FLAGS = FetchInfo.ERROR | FetchInfo.REJECTED


def describe_git_error(error: Exception) -> str:
    """Single-line message for a git failure, without GitPython's stderr: prefix."""
    message = (getattr(error, "stderr", "") or str(error)).strip()
    if message.startswith("stderr:"):
        message = message[len("stderr:"):].strip().strip("'")
    return " ".join(message.split())


class GitOutcome(Enum):
    """Result of a git operation that may be a no-op."""
    OK = "ok"
    ALREADY_UP_TO_DATE = "already up to date"


class GitRepository:
    """Local repository with a working tree."""

    def __init__(self, repo: git.Repo, path: str) -> None:
        self.repo = repo
        self.path = path

    @classmethod
    def open(cls, path: str) -> "GitRepository":
        try:
            repo = git.Repo(path)
        except git.NoSuchPathError as e:
            raise RepoOpenFailed(f"path '{path}' does not exist") from e
        except git.InvalidGitRepositoryError as e:
            raise RepoOpenFailed(f"'{path}' is not a git repository") from e
        if repo.bare:
            raise RepoOpenFailed(f"'{path}' is a bare repository without a working tree")
        return cls(repo, path)

    def list_remotes(self) -> List[str]:
        try:
            return [remote.name for remote in self.repo.remotes]
        except (GitCommandError, ValueError) as e:
            raise RemoteListFailed(f"failed to get remotes for {self.path}: {e}") from e

    def has_remote(self, name: str) -> bool:
        return name in self.list_remotes()

    def create_remote(self, name: str, url: str) -> None:
        try:
            self.repo.create_remote(name, url)
        except GitCommandError as e:
            raise RemoteError(
                f"failed to create remote '{name}' in {self.path}: {describe_git_error(e)}"
            ) from e

    def fetch(self, remote_name: str) -> GitOutcome:
        """Fetch a remote including all its tags."""
        try:
            infos = self.repo.remote(remote_name).fetch(tags=True)
        except (GitCommandError, ValueError) as e:
            raise FetchFailed(
                f"failed to fetch {remote_name} in '{self.path}' repo: {describe_git_error(e)}"
            ) from e

        failed = [info for info in infos if info.flags & FETCH_ERROR_FLAGS]
        if failed:
            refs = ", ".join(str(info.ref) for info in failed)
            raise FetchFailed(
                f"failed to fetch {remote_name} in '{self.path}' repo: rejected {refs}"
            )
        if all(info.flags & FetchInfo.HEAD_UPTODATE for info in infos):
            return GitOutcome.ALREADY_UP_TO_DATE
        return GitOutcome.OK

    def list_remote_refs(self, remote_name: str) -> List[RemoteBranchRef]:
        """Branches advertised by the remote, in listing order."""
        try:
            output = self.repo.git.ls_remote(remote_name)
        except GitCommandError as e:
            raise RemoteListFailed(
                f"failed to get remote objects for remote '{remote_name}' "
                f"in repo '{self.path}': {describe_git_error(e)}"
            ) from e

        branches: List[RemoteBranchRef] = []
        for line in output.splitlines():
            commit, _, ref_name = line.strip().partition("\t")
            if commit and is_branch_ref(ref_name):
                branches.append(RemoteBranchRef(name=ref_name, commit=commit))
        return branches

    def list_local_branches(self) -> List[LocalBranchRef]:
        return [
            LocalBranchRef(name=head.path, commit=head.commit.hexsha)
            for head in self.repo.heads
        ]

    def checkout(
        self, branch_ref: str, commit: Optional[str] = None, create: bool = False
    ) -> None:
        """Force checkout of a branch, optionally (re)creating it at commit."""
        branch = short_ref_name(branch_ref)
        try:
            if create:
                self.repo.git.checkout("-f", "-B", branch, commit, "--")
            else:
                self.repo.git.checkout("-f", branch, "--")
        except GitCommandError as e:
            raise CheckoutFailed(
                f"failed to checkout {branch} in {self.path}: {describe_git_error(e)}"
            ) from e

    def head(self) -> LocalBranchRef:
        try:
            ref = self.repo.head.ref
            return LocalBranchRef(name=ref.path, commit=self.repo.head.commit.hexsha)
        except (TypeError, ValueError) as e:
            raise BranchSyncError(
                f"failed to get branch HEAD in {self.path}: {e}"
            ) from e

    def pull(self, remote_name: str, ref_name: str) -> GitOutcome:
        """Bring a single branch of remote_name up to date for the current branch.

        Forced fetch of ref_name only, never a merge; the caller hard-resets
        to the remote commit afterwards. Up to date means HEAD already points
        at the fetched commit.
        """
        try:
            self.repo.git.fetch("--force", "--no-tags", remote_name, ref_name)
            fetched = self.repo.git.rev_parse("FETCH_HEAD").strip()
        except GitCommandError as e:
            raise PullFailed(
                f"failed to pull {short_ref_name(ref_name)} in {self.path}: "
                f"{describe_git_error(e)}"
            ) from e
        try:
            current = self.repo.head.commit.hexsha
        except ValueError:
            current = None
        if current == fetched:
            return GitOutcome.ALREADY_UP_TO_DATE
        return GitOutcome.OK

    def reset_hard(self, commit: str) -> None:
        try:
            self.repo.head.reset(commit, index=True, working_tree=True)
        except GitCommandError as e:
            raise ResetFailed(
                f"failed to reset to {commit} in {self.path}: {describe_git_error(e)}"
            ) from e

    def push(
        self, remote_name: str, refspecs: Sequence[str], atomic: bool = False
    ) -> GitOutcome:
        """Force push refspecs to remote_name."""
        kwargs = {"force": True}
        if atomic:
            kwargs["atomic"] = True
        try:
            infos = self.repo.remote(remote_name).push(refspec=list(refspecs), **kwargs)
        except (GitCommandError, ValueError) as e:
            raise PushFailed(
                f"failed to push {', '.join(refspecs)}: {describe_git_error(e)}"
            ) from e

        failed = [info for info in infos if info.flags & PUSH_ERROR_FLAGS]
        if failed:
            summary = "; ".join(info.summary.strip() for info in failed)
            raise PushFailed(f"failed to push {', '.join(refspecs)}: {summary}")
        if infos and all(info.flags & PushInfo.UP_TO_DATE for info in infos):
            return GitOutcome.ALREADY_UP_TO_DATE
        return GitOutcome.OK

    def list_tags(self) -> List[TagRef]:
        return [TagRef(name=tag.path) for tag in self.repo.tags]

    def status(self) -> str:
        try:
            return self.repo.git.status("--short", "--branch")
        except GitCommandError as e:
            Logger.warn(f"failed to get repo status for {self.path}: {describe_git_error(e)}")
            return ""
