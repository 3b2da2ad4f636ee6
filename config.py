#!/usr/bin/env python3
"""Configuration dataclasses for git-remote-sync."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class RemoteConfig:
    """Remote descriptor; url is only needed when the remote must be created."""
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class RepoConfig:
    """A single repository to mirror."""
    name: str
    path: str
    source_remote: RemoteConfig
    target_remote: RemoteConfig


@dataclass(frozen=True)
class SyncBehaviorConfig:
    """Sync behavior configuration."""
    dry_run: bool = False
    sort_repos: bool = False


@dataclass(frozen=True)
class Config:
    """Main configuration for mirroring repositories between remotes."""
    repos: Tuple[RepoConfig, ...]
    branch_mapping: Dict[str, str] = field(default_factory=dict)
    behavior: SyncBehaviorConfig = field(default_factory=SyncBehaviorConfig)

    def ordered_repos(self) -> Tuple[RepoConfig, ...]:
        if self.behavior.sort_repos:
            return tuple(sorted(self.repos, key=lambda repo: repo.name))
        return self.repos
