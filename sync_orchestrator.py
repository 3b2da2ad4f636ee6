#!/usr/bin/env python3
"""Main orchestrator for mirroring repositories from a source to a target remote."""

from __future__ import annotations

from typing import List

from config import Config, RepoConfig
from errors import (EXIT_EXECUTION_ERROR, EXIT_SUCCESS, BranchCheckInconsistent,
                    RemoteError, RemoteListFailed, SyncError)
from git_repository import GitOutcome, GitRepository
from logging_utils import Logger
from reconciler import (BranchReconciler, CreateLocal, PushBranch, PushTag,
                        ReconciliationAction, RemoteBranchRef, UpdateLocal)


class SyncOrchestrator:
    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self.reconciler = BranchReconciler(cfg.branch_mapping)

    def run(self) -> int:
        try:
            repos = self.cfg.ordered_repos()
            total = len(repos)
            for idx, repo_cfg in enumerate(repos, start=1):
                Logger.info(f"[{idx}/{total}] sync: {repo_cfg.name} ({repo_cfg.path})")
                if self.cfg.behavior.dry_run:
                    self._dry_run_repo(repo_cfg)
                else:
                    self._sync_repo(repo_cfg)

            if self.cfg.behavior.dry_run:
                Logger.info("dry-run completed")
            else:
                Logger.info("mission accomplished")
            return EXIT_SUCCESS
        except SyncError as e:
            Logger.error(str(e))
            return e.exit_code
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _sync_repo(self, repo_cfg: RepoConfig) -> None:
        Logger.info(f"Opening {repo_cfg.path}...")
        repo = GitRepository.open(repo_cfg.path)

        # Snapshot before provisioning; a freshly created target is not fetched.
        remotes = repo.list_remotes()
        self._ensure_target_remote(repo, repo_cfg, remotes)

        remote_branches = self._fetch_remotes(repo, repo_cfg, remotes)
        Logger.info(
            f"Branches to sync: {[branch.name for branch in remote_branches]}"
        )

        actions = self.reconciler.plan(
            remote_branches, repo.list_local_branches(), repo.list_tags()
        )
        for action in actions:
            self._apply_action(repo, repo_cfg, action)

    def _ensure_target_remote(
        self, repo: GitRepository, repo_cfg: RepoConfig, remotes: List[str]
    ) -> None:
        target = repo_cfg.target_remote
        if target.name in remotes:
            return
        if not target.url:
            raise RemoteError(
                f"target remote {target.name} missing for '{repo_cfg.path}' "
                "and no url configured"
            )
        Logger.info(
            f"Target remote {target.name} missing for '{repo_cfg.path}' ... "
            f"adding {target.url}"
        )
        repo.create_remote(target.name, target.url)
        Logger.security_event(
            "REMOTE_CREATED", f"added remote {target.name} to {repo_cfg.path}"
        )

    def _fetch_remotes(
        self, repo: GitRepository, repo_cfg: RepoConfig, remotes: List[str]
    ) -> List[RemoteBranchRef]:
        """Fetch every remote and return the source remote's branches."""
        source_name = repo_cfg.source_remote.name
        if source_name not in remotes:
            raise RemoteListFailed(
                f"source remote '{source_name}' not found in '{repo_cfg.path}'"
            )

        branches: List[RemoteBranchRef] = []
        for remote_name in remotes:
            Logger.info(f"Found remote '{remote_name}' in '{repo_cfg.path}' repo... fetching")
            if repo.fetch(remote_name) is GitOutcome.ALREADY_UP_TO_DATE:
                Logger.debug(f"remote '{remote_name}' already up to date")

            if remote_name == source_name:
                for branch in repo.list_remote_refs(remote_name):
                    Logger.info(
                        f"Found remote branch '{branch.name}' for remote "
                        f"'{remote_name}' in repo '{repo_cfg.path}'."
                    )
                    branches.append(branch)
        return branches

    def _apply_action(
        self, repo: GitRepository, repo_cfg: RepoConfig, action: ReconciliationAction
    ) -> None:
        if isinstance(action, CreateLocal):
            self._create_local(repo, repo_cfg, action)
        elif isinstance(action, UpdateLocal):
            self._update_local(repo, repo_cfg, action)
        elif isinstance(action, PushBranch):
            self._push(repo, repo_cfg, action.refspec, atomic=True)
        elif isinstance(action, PushTag):
            Logger.info(
                f"Pushing tag {action.tag_short_name} to "
                f"{repo_cfg.target_remote.name} with refspec {action.refspec}"
            )
            self._push(repo, repo_cfg, action.refspec, atomic=False)
        else:
            raise TypeError(f"unknown reconciliation action: {action!r}")

    def _create_local(
        self, repo: GitRepository, repo_cfg: RepoConfig, action: CreateLocal
    ) -> None:
        remote_ref = action.remote_ref
        Logger.info(f"Checking out branch {remote_ref.short_name} in {repo_cfg.path}")
        repo.checkout(remote_ref.name, commit=remote_ref.commit, create=True)

        head = repo.head()
        if head.commit != remote_ref.commit or head.name != remote_ref.name:
            raise BranchCheckInconsistent(
                f"failed to check out branch correctly: {head.commit} vs "
                f"{remote_ref.commit}; {head.name} vs {remote_ref.name}"
            )
        self._pull_and_reset(repo, repo_cfg, remote_ref)

    def _update_local(
        self, repo: GitRepository, repo_cfg: RepoConfig, action: UpdateLocal
    ) -> None:
        Logger.info(
            f"Switching to branch {action.local_ref.short_name} in {repo_cfg.path}"
        )
        repo.checkout(action.local_ref.name)
        Logger.debug(f"HEAD after checkout: {repo.head().commit}")
        self._pull_and_reset(repo, repo_cfg, action.remote_ref)

    def _pull_and_reset(
        self, repo: GitRepository, repo_cfg: RepoConfig, remote_ref: RemoteBranchRef
    ) -> None:
        source_name = repo_cfg.source_remote.name
        Logger.info(
            f"Pulling {remote_ref.short_name} from '{source_name}' of {repo_cfg.path}"
        )
        if repo.pull(source_name, remote_ref.name) is GitOutcome.ALREADY_UP_TO_DATE:
            Logger.info(f"{remote_ref.short_name} already up to date")

        Logger.info(f"Resetting branch {remote_ref.short_name} to {remote_ref.commit}")
        repo.reset_hard(remote_ref.commit)
        Logger.git_output("Repository status:", repo.status())

    def _push(
        self, repo: GitRepository, repo_cfg: RepoConfig, refspec: str, atomic: bool
    ) -> None:
        target_name = repo_cfg.target_remote.name
        Logger.info(f"Pushing {refspec} to {target_name}")
        if repo.push(target_name, [refspec], atomic=atomic) is GitOutcome.ALREADY_UP_TO_DATE:
            Logger.info(f"remote up to date - {refspec}")

    def _dry_run_repo(self, repo_cfg: RepoConfig) -> None:
        repo = GitRepository.open(repo_cfg.path)
        remotes = repo.list_remotes()
        target = repo_cfg.target_remote
        if target.name not in remotes:
            Logger.info(f"would add remote {target.name}: {target.url}")
        source_name = repo_cfg.source_remote.name
        if source_name not in remotes:
            raise RemoteListFailed(
                f"source remote '{source_name}' not found in '{repo_cfg.path}'"
            )

        actions = self.reconciler.plan(
            repo.list_remote_refs(source_name),
            repo.list_local_branches(),
            repo.list_tags(),
        )
        for action in actions:
            Logger.info(f"would {self._describe(action, repo_cfg)}")

    @staticmethod
    def _describe(action: ReconciliationAction, repo_cfg: RepoConfig) -> str:
        if isinstance(action, CreateLocal):
            ref = action.remote_ref
            return f"create {ref.name} at {ref.commit}"
        if isinstance(action, UpdateLocal):
            return (
                f"update {action.local_ref.name} "
                f"{action.local_ref.commit} -> {action.remote_ref.commit}"
            )
        if isinstance(action, (PushBranch, PushTag)):
            return f"push {action.refspec} to {repo_cfg.target_remote.name}"
        raise TypeError(f"unknown reconciliation action: {action!r}")
