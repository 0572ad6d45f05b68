"""GitHub webhook receiver that starts issue-fix and review runs."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
from pathlib import Path

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from code_agent.config import AgentConfig, resolve_setting
from code_agent.events import EventRoute, route_event
from code_agent.reporting import LoggingReporter
from code_agent.services.command_runtime import CommandRuntime
from code_agent.services.runs import run_route

logger = logging.getLogger(__name__)


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    if not signature or not secret:
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def create_app(config: AgentConfig, *, runtime: CommandRuntime, repo: str, repo_path: str | Path) -> FastAPI:
    app = FastAPI(title="code-agent webhook receiver")
    secret = resolve_setting(None, config.github.webhook_secret_env, runtime.environ)
    if not secret:
        logger.warning("No webhook secret configured; signatures will not be verified")
    # Runs share one working tree, so they execute one at a time.
    run_lock = asyncio.Lock()

    async def _execute(route: EventRoute) -> None:
        async with run_lock:
            try:
                await run_route(runtime, config, route, repo=repo, repo_path=repo_path, reporter=LoggingReporter())
            except Exception:
                logger.exception("Background %s run failed", route.kind.value)

    @app.get("/healthz", response_class=JSONResponse)
    def healthz() -> JSONResponse:
        return JSONResponse({"status": "ok", "repo": repo})

    @app.post("/webhook/github", response_class=JSONResponse)
    async def github_webhook(request: Request, background: BackgroundTasks) -> JSONResponse:
        body = await request.body()
        if secret and not verify_signature(body, request.headers.get("X-Hub-Signature-256", ""), secret):
            raise HTTPException(status_code=401, detail="invalid signature")

        try:
            payload = json.loads(body or b"{}")
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail="payload is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="payload must be a JSON object")

        event_name = request.headers.get("X-GitHub-Event", "")
        route = route_event(event_name, payload, config)
        if route is None:
            return JSONResponse({"status": "ignored", "event": event_name})
        if route.repo and route.repo.lower() != repo.lower():
            logger.info("Ignoring %s event for %s (serving %s)", event_name, route.repo, repo)
            return JSONResponse({"status": "ignored", "event": event_name})

        background.add_task(_execute, route)
        return JSONResponse({"status": "accepted", "run": route.kind.value}, status_code=202)

    return app
