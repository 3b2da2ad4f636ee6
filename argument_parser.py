#!/usr/bin/env python3
"""Command line argument parsing and configuration loading."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

import yaml

from config import Config, RemoteConfig, RepoConfig, SyncBehaviorConfig
from errors import EXIT_CONFIG_ERROR, ConfigError
from logging_utils import Logger
from security import SecurityValidator

CONFIG_ENV_VAR = "GIT_REMOTE_SYNC_CONFIG"


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Mirror branches and tags of local repositories from a "
        "source remote to a target remote",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s repos.yaml
  %(prog)s repos.yaml --dry-run
  %(prog)s repos.yaml --sort-repos --verbose

Config file:
  repos:
    foo:
      path: ~/src/foo
      sourceRemote:
        name: origin
      targetRemote:
        name: github
        url: git@github.com:bar/foo.git
  branchMapping:
    master: main
        """,
    )
    parser.add_argument(
        "config",
        nargs="?",
        help=f"Path to the YAML config file (or set {CONFIG_ENV_VAR} env var)",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="List actions without doing them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Show debug output, including git status after each branch",
    )
    parser.add_argument(
        "--sort-repos",
        action="store_true",
        dest="sort_repos",
        help="Process repositories sorted by name instead of file order",
    )
    return parser


def _require_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"'{where}' must be a mapping")
    return value


def _parse_remote(data: Any, where: str, url_required: bool = False) -> RemoteConfig:
    remote = _require_mapping(data, where)
    name = remote.get("name")
    url: Optional[str] = remote.get("url")
    try:
        validated_name = SecurityValidator.validate_remote_name(name)
        validated_url = SecurityValidator.validate_url(url) if url else None
    except ValueError as e:
        raise ConfigError(f"invalid '{where}': {e}") from e
    if url_required and not validated_url:
        raise ConfigError(f"'{where}.url' is required")
    return RemoteConfig(name=validated_name, url=validated_url)


def _parse_repo(name: str, data: Any) -> RepoConfig:
    where = f"repos.{name}"
    entry = _require_mapping(data, where)
    path = entry.get("path")
    try:
        validated_path = SecurityValidator.validate_file_path(path)
    except ValueError as e:
        raise ConfigError(f"invalid '{where}.path': {e}") from e

    return RepoConfig(
        name=str(name),
        path=validated_path,
        source_remote=_parse_remote(entry.get("sourceRemote"), f"{where}.sourceRemote"),
        target_remote=_parse_remote(entry.get("targetRemote"), f"{where}.targetRemote"),
    )


def _parse_branch_mapping(data: Any) -> Dict[str, str]:
    if data is None:
        return {}
    mapping = _require_mapping(data, "branchMapping")
    validated: Dict[str, str] = {}
    for source, target in mapping.items():
        try:
            validated[SecurityValidator.validate_branch_name(source)] = (
                SecurityValidator.validate_branch_name(target)
            )
        except ValueError as e:
            raise ConfigError(f"invalid branchMapping entry '{source}': {e}") from e
    return validated


def load_sync_config(
    path: str, dry_run: bool = False, sort_repos: bool = False
) -> Config:
    """Read and validate the YAML config file."""
    try:
        with open(path, encoding="utf-8") as config_file:
            document = yaml.safe_load(config_file)
    except OSError as e:
        raise ConfigError(f"failed to read Yaml file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse Yaml file '{path}': {e}") from e

    document = _require_mapping(document, "<document>")
    if "repos" not in document:
        raise ConfigError("config is missing the 'repos' key")
    repos_data = _require_mapping(document["repos"] or {}, "repos")

    repos: List[RepoConfig] = [
        _parse_repo(name, entry) for name, entry in repos_data.items()
    ]
    Logger.security_event(
        "CONFIG_VALIDATION", f"validated {len(repos)} repositories from {path}"
    )

    return Config(
        repos=tuple(repos),
        branch_mapping=_parse_branch_mapping(document.get("branchMapping")),
        behavior=SyncBehaviorConfig(dry_run=dry_run, sort_repos=sort_repos),
    )


def parse_arguments(argv: Optional[List[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    args = parser.parse_args(argv)
    Logger.set_verbose(args.verbose)

    config_path = args.config or os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        Logger.error(f"error: config file not provided (pass CONFIG or set {CONFIG_ENV_VAR})")
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        return load_sync_config(
            config_path, dry_run=args.dry_run, sort_repos=args.sort_repos
        )
    except ConfigError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)
