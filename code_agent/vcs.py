"""Git working-tree operations used by the issue-fix run."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        super().__init__(f"git {' '.join(args)} failed ({returncode}): {stderr.strip()}")
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


def extract_repo_slug(remote_url: str) -> str | None:
    url = remote_url.strip()
    m = re.search(r"github\.com[:/](?P<slug>[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+?)(?:\.git)?$", url)
    if not m:
        return None
    return m.group("slug")


class GitRepository:
    def __init__(self, path: str | Path, git_bin: str = "git") -> None:
        self.path = Path(path)
        self.git_bin = git_bin

    async def run(self, *args: str) -> str:
        proc = await asyncio.create_subprocess_exec(
            self.git_bin,
            "-C",
            str(self.path),
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise GitCommandError(list(args), proc.returncode or 1, stderr.decode("utf-8", errors="replace"))
        logger.debug("git %s", " ".join(args))
        return stdout.decode("utf-8", errors="replace")

    async def fetch_branch(self, remote: str, branch: str, *, depth: int | None = 1) -> None:
        args = ["fetch", remote, branch]
        if depth:
            args.append(f"--depth={depth}")
        await self.run(*args)

    async def create_branch(self, branch: str, start_point: str | None = None) -> None:
        args = ["checkout", "-b", branch]
        if start_point:
            args.append(start_point)
        await self.run(*args)

    async def checkout_new_branch(self, branch: str, remote: str, base: str) -> GitCommandError | None:
        """Create ``branch`` from ``remote/base``, falling back to the current HEAD.

        Returns the error that forced the fallback, or ``None`` when the remote
        base was used. A failure of the fallback itself propagates.
        """
        try:
            await self.fetch_branch(remote, base, depth=1)
            await self.create_branch(branch, f"{remote}/{base}")
        except GitCommandError as exc:
            logger.debug("Checkout of %s/%s failed, branching from HEAD", remote, base)
            await self.create_branch(branch)
            return exc
        return None

    async def add_all(self) -> None:
        await self.run("add", ".")

    async def commit(self, message: str) -> None:
        await self.run("commit", "-m", message)

    async def push(self, remote: str, branch: str) -> None:
        await self.run("push", "-u", remote, branch)

    async def origin_slug(self, remote: str = "origin") -> str | None:
        """``owner/repo`` of ``remote`` when it points at GitHub."""
        url = await self.run("remote", "get-url", remote)
        return extract_repo_slug(url)


async def validate_repo_path_matches(repo_path: str | Path, expected_repo: str, git_bin: str = "git") -> None:
    repo = GitRepository(repo_path, git_bin)
    if not repo.path.exists():
        raise ValueError(f"repo_path does not exist: {repo.path}")

    try:
        detected = await repo.origin_slug()
    except GitCommandError as exc:
        raise ValueError(
            f"No origin remote in {repo.path} ({exc.stderr.strip()}). "
            "Point --repo-path at a clone of the target repository or pass --skip-repo-path-check."
        ) from exc
    if not detected:
        raise ValueError(f"Origin of {repo.path} is not a GitHub remote")
    if detected.lower() != expected_repo.lower():
        raise ValueError(
            f"--repo is '{expected_repo}' but {repo.path} tracks '{detected}'. "
            "Fix --repo-path or pass --skip-repo-path-check."
        )
