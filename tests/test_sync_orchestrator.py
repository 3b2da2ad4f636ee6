"""Tests for SyncOrchestrator flows against a mocked git repository."""

from __future__ import annotations

from typing import List, Optional
from unittest.mock import MagicMock, patch

from config import Config, RemoteConfig, RepoConfig, SyncBehaviorConfig
from errors import (
    EXIT_BRANCH_ERROR,
    EXIT_PUSH_ERROR,
    EXIT_REMOTE_ERROR,
    EXIT_REPO_ERROR,
    EXIT_SUCCESS,
    FetchFailed,
    PullFailed,
    PushFailed,
    RepoOpenFailed,
)
from git_repository import GitOutcome, GitRepository
from reconciler import LocalBranchRef, RemoteBranchRef, TagRef
from sync_orchestrator import SyncOrchestrator

MASTER = RemoteBranchRef('refs/heads/master', 'abc123')


def _make_repo_config(
    name: str = 'foo', target_url: Optional[str] = 'git@github.com:bar/foo.git'
) -> RepoConfig:
    return RepoConfig(
        name=name,
        path=f'/srv/git/{name}',
        source_remote=RemoteConfig(name='origin'),
        target_remote=RemoteConfig(name='github', url=target_url),
    )


def _make_config(*repos: RepoConfig, dry_run: bool = False) -> Config:
    return Config(
        repos=repos or (_make_repo_config(),),
        branch_mapping={'master': 'main'},
        behavior=SyncBehaviorConfig(dry_run=dry_run),
    )


def _make_git_repo(
    remotes: List[str],
    remote_branches: List[RemoteBranchRef],
    local_branches: Optional[List[LocalBranchRef]] = None,
    tags: Optional[List[TagRef]] = None,
) -> MagicMock:
    repo = MagicMock(spec=GitRepository)
    repo.list_remotes.return_value = remotes
    repo.fetch.return_value = GitOutcome.OK
    repo.list_remote_refs.return_value = remote_branches
    repo.list_local_branches.return_value = local_branches or []
    repo.list_tags.return_value = tags or []
    repo.head.return_value = LocalBranchRef(MASTER.name, MASTER.commit)
    repo.pull.return_value = GitOutcome.ALREADY_UP_TO_DATE
    repo.push.return_value = GitOutcome.OK
    repo.status.return_value = ''
    return repo


def _call_names(repo: MagicMock) -> List[str]:
    return [call[0] for call in repo.method_calls]


def test_master_is_created_and_pushed_as_main() -> None:
    """A new branch is force-created at the remote commit and pushed mapped."""
    repo = _make_git_repo(['origin', 'github'], [MASTER])

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_SUCCESS

    repo.checkout.assert_called_once_with('refs/heads/master', commit='abc123', create=True)
    repo.pull.assert_called_once_with('origin', 'refs/heads/master')
    repo.reset_hard.assert_called_once_with('abc123')
    repo.push.assert_called_once_with(
        'github', ['+refs/heads/master:refs/heads/main'], atomic=True
    )
    repo.create_remote.assert_not_called()


def test_missing_target_remote_is_created_before_push() -> None:
    repo = _make_git_repo(['origin'], [MASTER])

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_SUCCESS

    repo.create_remote.assert_called_once_with('github', 'git@github.com:bar/foo.git')
    names = _call_names(repo)
    assert names.index('create_remote') < names.index('push')
    # Only remotes present before provisioning are fetched
    repo.fetch.assert_called_once_with('origin')


def test_missing_target_remote_without_url_fails() -> None:
    repo = _make_git_repo(['origin'], [MASTER])
    cfg = _make_config(_make_repo_config(target_url=None))

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(cfg).run() == EXIT_REMOTE_ERROR

    repo.fetch.assert_not_called()


def test_existing_branch_is_switched_and_reset() -> None:
    local = LocalBranchRef('refs/heads/master', 'old456')
    repo = _make_git_repo(['origin', 'github'], [MASTER], local_branches=[local])

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_SUCCESS

    repo.checkout.assert_called_once_with('refs/heads/master')
    repo.reset_hard.assert_called_once_with('abc123')
    repo.push.assert_called_once_with(
        'github', ['+refs/heads/master:refs/heads/main'], atomic=True
    )


def test_fetch_failure_on_other_remote_stops_before_reconciliation() -> None:
    repo = _make_git_repo(['origin', 'upstream', 'github'], [MASTER])

    def fetch(remote_name: str) -> GitOutcome:
        if remote_name == 'upstream':
            raise FetchFailed('failed to fetch upstream')
        return GitOutcome.OK

    repo.fetch.side_effect = fetch

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_REMOTE_ERROR

    repo.checkout.assert_not_called()
    repo.push.assert_not_called()


def test_push_up_to_date_is_not_an_error() -> None:
    repo = _make_git_repo(
        ['origin', 'github'], [MASTER], tags=[TagRef('refs/tags/v1.0')]
    )
    repo.fetch.return_value = GitOutcome.ALREADY_UP_TO_DATE
    repo.push.return_value = GitOutcome.ALREADY_UP_TO_DATE

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_SUCCESS

    assert repo.push.call_count == 2
    repo.push.assert_called_with(
        'github', ['+refs/tags/v1.0:refs/tags/v1.0'], atomic=False
    )


def test_tags_are_pushed_without_branches() -> None:
    repo = _make_git_repo(
        ['origin', 'github'], [], tags=[TagRef('refs/tags/a'), TagRef('refs/tags/b')]
    )

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_SUCCESS

    repo.checkout.assert_not_called()
    pushed = [call.args[1] for call in repo.push.call_args_list]
    assert pushed == [['+refs/tags/a:refs/tags/a'], ['+refs/tags/b:refs/tags/b']]


def test_inconsistent_checkout_stops_run() -> None:
    repo = _make_git_repo(['origin', 'github'], [MASTER])
    repo.head.return_value = LocalBranchRef('refs/heads/master', 'other999')

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_BRANCH_ERROR

    repo.pull.assert_not_called()
    repo.push.assert_not_called()


def test_first_error_halts_remaining_repositories() -> None:
    cfg = _make_config(_make_repo_config('first'), _make_repo_config('second'))

    with patch.object(
        GitRepository, 'open', side_effect=RepoOpenFailed('not a git repository')
    ) as mock_open:
        assert SyncOrchestrator(cfg).run() == EXIT_REPO_ERROR

    mock_open.assert_called_once_with('/srv/git/first')



def test_push_failure_stops_run_before_next_repository() -> None:
    """A rejected branch push ends the run with the push exit code."""
    cfg = _make_config(_make_repo_config('first'), _make_repo_config('second'))
    repo = _make_git_repo(['origin', 'github'], [MASTER], tags=[TagRef('refs/tags/v1.0')])
    repo.push.side_effect = PushFailed(
        'failed to push +refs/heads/master:refs/heads/main: [rejected] (non-fast-forward)'
    )

    with patch.object(GitRepository, 'open', return_value=repo) as mock_open:
        assert SyncOrchestrator(cfg).run() == EXIT_PUSH_ERROR

    mock_open.assert_called_once_with('/srv/git/first')
    repo.push.assert_called_once_with(
        'github', ['+refs/heads/master:refs/heads/main'], atomic=True
    )


def test_pull_failure_stops_before_push() -> None:
    local = LocalBranchRef('refs/heads/master', 'old456')
    repo = _make_git_repo(['origin', 'github'], [MASTER], local_branches=[local])
    repo.pull.side_effect = PullFailed('failed to pull master in /srv/git/foo: fatal: gone')

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config()).run() == EXIT_BRANCH_ERROR

    repo.reset_hard.assert_not_called()
    repo.push.assert_not_called()

def test_dry_run_does_not_mutate() -> None:
    repo = _make_git_repo(['origin'], [MASTER], tags=[TagRef('refs/tags/v1.0')])

    with patch.object(GitRepository, 'open', return_value=repo):
        assert SyncOrchestrator(_make_config(dry_run=True)).run() == EXIT_SUCCESS

    repo.list_remote_refs.assert_called_once_with('origin')
    for method in ('create_remote', 'fetch', 'checkout', 'pull', 'reset_hard', 'push'):
        getattr(repo, method).assert_not_called()
