#!/usr/bin/env python3
"""Error taxonomy for git-remote-sync."""

from __future__ import annotations

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_REPO_ERROR = 30
EXIT_REMOTE_ERROR = 31
EXIT_BRANCH_ERROR = 32
EXIT_PUSH_ERROR = 33


class SyncError(Exception):
    """Base class for errors that stop the whole run."""

    exit_code = EXIT_EXECUTION_ERROR


class ConfigError(SyncError):
    """Configuration file is unreadable, unparseable or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class RepoOpenFailed(SyncError):
    """Local path is not a usable git repository."""

    exit_code = EXIT_REPO_ERROR


class RemoteError(SyncError):
    exit_code = EXIT_REMOTE_ERROR


class RemoteListFailed(RemoteError):
    pass


class FetchFailed(RemoteError):
    pass


class BranchSyncError(SyncError):
    exit_code = EXIT_BRANCH_ERROR


class CheckoutFailed(BranchSyncError):
    pass


class PullFailed(BranchSyncError):
    pass


class ResetFailed(BranchSyncError):
    pass


class BranchCheckInconsistent(BranchSyncError):
    """Branch created from a remote ref does not match that ref."""


class PushError(SyncError):
    exit_code = EXIT_PUSH_ERROR


class PushFailed(PushError):
    pass
