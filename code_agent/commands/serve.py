"""Serve the webhook receiver."""

from __future__ import annotations

import argparse
import logging

from code_agent.commands.common import load_config, validate_repo_path_if_needed
from code_agent.services.command_runtime import CommandRuntime

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    validate_repo_path_if_needed(args)
    config = load_config(args)

    import uvicorn

    from code_agent.webapp import create_app

    app = create_app(config, runtime=runtime, repo=args.repo, repo_path=args.repo_path)
    logger.info("Starting webhook receiver on http://%s:%s (repo=%s)", args.host, args.port, args.repo)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0
