#!/usr/bin/env python3
"""Security validation utilities for git-remote-sync."""

import os
import re
from typing import List, Optional


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # Maximum lengths to keep config values sane
    MAX_REF_NAME_LENGTH = 255
    MAX_URL_LENGTH = 2048
    MAX_REMOTE_NAME_LENGTH = 100
    MAX_PATH_LENGTH = 4096

    SAFE_REMOTE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    # Characters git refuses in ref names (see git-check-ref-format)
    INVALID_REF_CHARS_PATTERN = re.compile(r"[\s~^:?*\[\\]")
    SCP_URL_PATTERN = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9.-]+:[^/].*$")
    URL_SCHEMES = ["https", "http", "ssh", "git", "file"]

    @staticmethod
    def _has_control_chars(value: str) -> bool:
        return "\x00" in value or any(ord(c) < 32 or ord(c) == 127 for c in value)

    @classmethod
    def validate_remote_name(cls, name: str) -> str:
        """Validate a git remote name."""
        if not name or not isinstance(name, str):
            raise ValueError("Remote name must be a non-empty string")

        if len(name) > cls.MAX_REMOTE_NAME_LENGTH:
            raise ValueError(
                f"Remote name exceeds maximum length of {cls.MAX_REMOTE_NAME_LENGTH}"
            )

        if name.startswith("-") or ".." in name:
            raise ValueError(f"Remote name '{name}' is not allowed")

        if not cls.SAFE_REMOTE_NAME_PATTERN.match(name):
            raise ValueError(f"Remote name '{name}' contains invalid characters")

        return name

    @classmethod
    def validate_branch_name(cls, name: str) -> str:
        """Validate a branch short name following git-check-ref-format rules."""
        if not name or not isinstance(name, str):
            raise ValueError("Branch name must be a non-empty string")

        if len(name) > cls.MAX_REF_NAME_LENGTH:
            raise ValueError(
                f"Branch name exceeds maximum length of {cls.MAX_REF_NAME_LENGTH}"
            )

        if cls._has_control_chars(name):
            raise ValueError("Branch name contains null bytes or control characters")

        if cls.INVALID_REF_CHARS_PATTERN.search(name):
            raise ValueError(f"Branch name '{name}' contains invalid characters")

        if (
            name.startswith(("-", "/"))
            or name.endswith(("/", ".", ".lock"))
            or ".." in name
            or "//" in name
            or "@{" in name
            or name == "@"
            or any(part.startswith(".") for part in name.split("/"))
        ):
            raise ValueError(f"Branch name '{name}' is not a valid git ref name")

        return name

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate a remote URL (scheme URLs or scp-like user@host:path)."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        if cls._has_control_chars(url):
            raise ValueError("URL contains null bytes or control characters")

        if url.startswith("-"):
            raise ValueError("URL must not start with '-'")

        allowed = allowed_schemes or cls.URL_SCHEMES
        if "://" in url:
            scheme = url.split("://")[0].lower()
        elif cls.SCP_URL_PATTERN.match(url):
            scheme = "ssh"
        else:
            raise ValueError(
                "URL must be a scheme URL (https, ssh, ...) or scp-like user@host:path"
            )

        if scheme not in allowed:
            raise ValueError(
                f"URL scheme '{scheme}' not in allowed schemes: {allowed}"
            )

        return url

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate a local repository path."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        return os.path.normpath(os.path.expanduser(path))

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"(https?)://[^:/@\s]+:[^@\s]+@", r"\1://[REDACTED]@"),  # URLs with credentials
            (r"(https?)://[^/@\s]{20,}@", r"\1://[REDACTED]@"),  # token-as-username URLs
            (r"token[=:\s]+[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"password[=:\s]+[^\s]+", "password=[REDACTED]"),  # Password assignments
            (r"glpat-[A-Za-z0-9_-]+", "[GITLAB_TOKEN_REDACTED]"),  # GitLab tokens
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub tokens
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
