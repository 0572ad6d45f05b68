"""Issue-fix command."""

from __future__ import annotations

import argparse
import asyncio
import logging

from code_agent.commands.common import build_reporter, load_config, validate_repo_path_if_needed
from code_agent.services.command_runtime import CommandRuntime
from code_agent.services.runs import run_issue_fix

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    validate_repo_path_if_needed(args)
    config = load_config(args)
    reporter = build_reporter(args, config, runtime=runtime)
    result = asyncio.run(
        run_issue_fix(
            runtime,
            config,
            repo=args.repo,
            repo_path=args.repo_path,
            reporter=reporter,
            issue_number=args.issue,
        )
    )
    logger.info("Issue #%s fixed on %s: PR #%s %s", result.issue_number, result.branch, result.pull_number, result.pull_url)
    return 0
