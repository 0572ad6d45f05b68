"""CLI entrypoint for issue-fix and pull request review runs."""

from __future__ import annotations

import logging

from code_agent.commands import dispatch, fix_issue, review_pr, serve
from code_agent.commands.common import normalize_command
from code_agent.commands.parser import build_parser
from code_agent.logging_utils import configure_logging
from code_agent.services.command_runtime import CommandRuntime, default_runtime

logger = logging.getLogger(__name__)

COMMANDS = {
    "fix-issue": fix_issue.run,
    "review-pr": review_pr.run,
    "dispatch": dispatch.run,
    "serve": serve.run,
}


def main(argv: list[str] | None = None, *, runtime: CommandRuntime | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    command = COMMANDS.get(normalize_command(args.command))
    if command is None:
        parser.print_help()
        return 1

    try:
        return command(args, runtime=runtime or default_runtime())
    except Exception as exc:
        logger.error("%s failed: %s", normalize_command(args.command), exc)
        logger.debug("Failure details", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
