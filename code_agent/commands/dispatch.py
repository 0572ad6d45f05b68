"""GitHub Actions event dispatch command."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from code_agent.commands.common import build_reporter, load_config, validate_repo_path_if_needed
from code_agent.events import RunKind, route_event
from code_agent.services.command_runtime import CommandRuntime
from code_agent.services.runs import run_route

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace, *, runtime: CommandRuntime) -> int:
    if not args.event_name or not args.event_path:
        raise ValueError("dispatch needs --event-name and --event-path (or GITHUB_EVENT_NAME/GITHUB_EVENT_PATH)")
    payload = json.loads(Path(args.event_path).read_text())
    if not isinstance(payload, dict):
        raise ValueError("Event payload must be a JSON object")

    config = load_config(args)
    route = route_event(args.event_name, payload, config)
    if route is None:
        logger.info("Event %s/%s does not match any trigger; nothing to do", args.event_name, payload.get("action"))
        return 0

    repo = route.repo or args.repo
    if not repo:
        raise ValueError("Unable to determine repository; pass --repo or set GITHUB_REPOSITORY")
    args.repo = repo
    if route.kind == RunKind.ISSUE_FIX:
        validate_repo_path_if_needed(args)

    reporter = build_reporter(args, config, runtime=runtime)
    asyncio.run(run_route(runtime, config, route, repo=repo, repo_path=args.repo_path, reporter=reporter))
    return 0
