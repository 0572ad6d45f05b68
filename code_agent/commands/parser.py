"""CLI parser construction."""

from __future__ import annotations

import argparse
import os

from code_agent.commands.common import (
    add_common_config_flags,
    add_github_flags,
    add_repo_validation_flags,
    add_reporter_flags,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI issue fixer and pull request reviewer")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    sub = parser.add_subparsers(dest="command", required=True)

    fix = sub.add_parser("fix-issue", aliases=["fix"], help="Create a fix branch and pull request for an issue")
    fix.add_argument("--repo", required=True, help="GitHub repo slug, e.g. owner/repo")
    fix.add_argument("--issue", type=int, required=True, help="Issue number")
    add_common_config_flags(fix)
    add_repo_validation_flags(fix)
    add_github_flags(fix)
    add_reporter_flags(fix)

    review = sub.add_parser("review-pr", aliases=["review"], help="Post AI review comments on a pull request")
    review.add_argument("--repo", required=True, help="GitHub repo slug, e.g. owner/repo")
    review.add_argument("--pr", type=int, required=True, help="Pull request number")
    add_common_config_flags(review)
    add_github_flags(review)
    add_reporter_flags(review)

    dispatch = sub.add_parser("dispatch", help="Route a GitHub Actions event payload to the matching run")
    dispatch.add_argument("--event-name", default=os.environ.get("GITHUB_EVENT_NAME"), help="Event name (default: $GITHUB_EVENT_NAME)")
    dispatch.add_argument("--event-path", default=os.environ.get("GITHUB_EVENT_PATH"), help="Event payload JSON (default: $GITHUB_EVENT_PATH)")
    dispatch.add_argument("--repo", default=os.environ.get("GITHUB_REPOSITORY"), help="GitHub repo slug (default: $GITHUB_REPOSITORY)")
    add_common_config_flags(dispatch)
    add_repo_validation_flags(dispatch)
    add_github_flags(dispatch)
    add_reporter_flags(dispatch)

    serve = sub.add_parser("serve", aliases=["webhook"], help="Serve the GitHub webhook receiver")
    serve.add_argument("--repo", required=True, help="GitHub repo slug handled by this receiver")
    serve.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=8765, help="Bind port")
    add_common_config_flags(serve)
    add_repo_validation_flags(serve)
    add_github_flags(serve)

    return parser
