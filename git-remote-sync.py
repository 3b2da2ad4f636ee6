#!/usr/bin/env python3
"""
git-remote-sync - Mirror branches and tags of local repositories from a
source remote to a target remote.

Each configured repository is fetched, every branch of the source remote is
created or hard-reset locally, then force-pushed to the target remote under
its mapped name (e.g. master -> main). All tags are pushed as well.
It is a one-way sync intended to be run as a batch job.
"""

from __future__ import annotations

import sys
from typing import NoReturn

from argument_parser import parse_arguments
from errors import EXIT_EXECUTION_ERROR
from sync_orchestrator import SyncOrchestrator


def main() -> NoReturn:
    if __name__ != "__main__":
        sys.exit(EXIT_EXECUTION_ERROR)

    cfg = parse_arguments()
    orchestrator = SyncOrchestrator(cfg)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
