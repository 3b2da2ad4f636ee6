#!/usr/bin/env python3
"""Branch reconciliation between a source remote and local branches.

The reconciler does not touch git. It turns snapshots of remote branches,
local branches and tags into an ordered list of actions which the
orchestrator then applies through ``GitRepository``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Union

from utils import branch_refspec, map_branch_name, short_ref_name, tag_refspec


@dataclass(frozen=True)
class RemoteBranchRef:
    """Branch as advertised by the source remote (e.g. refs/heads/master)."""
    name: str
    commit: str

    @property
    def short_name(self) -> str:
        return short_ref_name(self.name)


@dataclass(frozen=True)
class LocalBranchRef:
    name: str
    commit: str

    @property
    def short_name(self) -> str:
        return short_ref_name(self.name)


@dataclass(frozen=True)
class TagRef:
    name: str

    @property
    def short_name(self) -> str:
        return short_ref_name(self.name)


@dataclass(frozen=True)
class CreateLocal:
    remote_ref: RemoteBranchRef


@dataclass(frozen=True)
class UpdateLocal:
    remote_ref: RemoteBranchRef
    local_ref: LocalBranchRef


@dataclass(frozen=True)
class PushBranch:
    local_ref_name: str
    target_short_name: str

    @property
    def refspec(self) -> str:
        return branch_refspec(self.local_ref_name, self.target_short_name)


@dataclass(frozen=True)
class PushTag:
    tag_short_name: str

    @property
    def refspec(self) -> str:
        return tag_refspec(self.tag_short_name)


ReconciliationAction = Union[CreateLocal, UpdateLocal, PushBranch, PushTag]


class BranchReconciler:
    """Plans create/update/push actions for one repository."""

    def __init__(self, branch_mapping: Mapping[str, str]) -> None:
        self.branch_mapping = branch_mapping

    def map_branch(self, branch_name: str) -> str:
        return map_branch_name(branch_name, self.branch_mapping)

    def plan(
        self,
        remote_branches: Iterable[RemoteBranchRef],
        local_branches: Iterable[LocalBranchRef],
        tags: Iterable[TagRef] = (),
    ) -> List[ReconciliationAction]:
        """Return the ordered actions for the given snapshots.

        Remote branches keep the order they were listed in. A local branch
        matches a remote branch only when both full ref names are equal as
        received, so a remote listing that reports refs/remotes/<r>/<b>
        names never matches a local refs/heads/<b> branch.
        """
        local_by_name: Dict[str, LocalBranchRef] = {}
        for local in local_branches:
            local_by_name.setdefault(local.name, local)

        actions: List[ReconciliationAction] = []
        for remote in remote_branches:
            match = local_by_name.get(remote.name)
            if match is None:
                actions.append(CreateLocal(remote))
                local_ref_name = remote.name
            else:
                actions.append(UpdateLocal(remote, match))
                local_ref_name = match.name
            actions.append(PushBranch(local_ref_name, self.map_branch(remote.short_name)))

        # Tags are never renamed
        for tag in tags:
            actions.append(PushTag(tag.short_name))

        return actions
