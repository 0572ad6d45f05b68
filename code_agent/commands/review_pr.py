"""Pull request review command."""

from __future__ import annotations

import argparse
import asyncio
import logging

from code_agent.commands.common import build_reporter, load_config
from code_agent.services.command_runtime import CommandRuntime
from code_agent.services.runs import run_pr_review

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    config = load_config(args)
    reporter = build_reporter(args, config, runtime=runtime)
    counters = asyncio.run(run_pr_review(runtime, config, repo=args.repo, number=args.pr, reporter=reporter))
    logger.info(
        "Review of PR #%s complete: processed=%s skipped=%s errored=%s comments=%s",
        args.pr,
        counters.processed,
        counters.skipped,
        counters.errored,
        counters.comments_posted,
    )
    return 0
