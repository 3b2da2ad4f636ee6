#!/usr/bin/env python3
"""Utility functions for git-remote-sync."""

from typing import Mapping

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"
REMOTES_PREFIX = "refs/remotes/"


def short_ref_name(ref_name: str) -> str:
    """Strip the refs/heads/, refs/tags/ or refs/remotes/<remote>/ prefix.

    Example: 'refs/heads/feature/x' -> 'feature/x'
    """
    if ref_name.startswith(HEADS_PREFIX):
        return ref_name[len(HEADS_PREFIX):]
    if ref_name.startswith(TAGS_PREFIX):
        return ref_name[len(TAGS_PREFIX):]
    if ref_name.startswith(REMOTES_PREFIX):
        _, _, rest = ref_name[len(REMOTES_PREFIX):].partition("/")
        return rest
    return ref_name


def is_branch_ref(ref_name: str) -> bool:
    return ref_name.startswith(HEADS_PREFIX)


def map_branch_name(branch_name: str, mapping: Mapping[str, str]) -> str:
    """Return the configured target name for a branch, or the name itself."""
    return mapping.get(branch_name, branch_name)


def branch_refspec(local_ref_name: str, target_branch: str) -> str:
    return f"+{local_ref_name}:{HEADS_PREFIX}{target_branch}"


def tag_refspec(tag_name: str) -> str:
    return f"+{TAGS_PREFIX}{tag_name}:{TAGS_PREFIX}{tag_name}"
