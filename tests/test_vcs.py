import asyncio
import shutil
import subprocess
from pathlib import Path

import pytest

from code_agent.vcs import GitCommandError, GitRepository, extract_repo_slug, validate_repo_path_matches

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")


def _git(repo: Path, *args: str) -> str:
    proc = subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True, text=True)
    return proc.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "config", "user.email", "bot@example.com")
    _git(repo, "config", "user.name", "Code Agent Bot")
    _git(repo, "remote", "add", "origin", "https://github.com/acme/widgets.git")
    (repo / "README.md").write_text("hello\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-m", "initial")
    return repo


@pytest.mark.parametrize(
    ("url", "slug"),
    [
        ("https://github.com/acme/widgets.git", "acme/widgets"),
        ("git@github.com:acme/widgets.git\n", "acme/widgets"),
        ("https://github.com/acme/widgets", "acme/widgets"),
        ("https://gitlab.com/acme/widgets.git", None),
    ],
)
def test_extract_repo_slug(url: str, slug: str | None) -> None:
    assert extract_repo_slug(url) == slug


def test_origin_slug(git_repo: Path) -> None:
    assert asyncio.run(GitRepository(git_repo).origin_slug()) == "acme/widgets"


def test_repo_validation_passes_on_matching_slug(git_repo: Path) -> None:
    asyncio.run(validate_repo_path_matches(git_repo, "ACME/widgets"))


def test_repo_validation_fails_on_mismatch(git_repo: Path) -> None:
    with pytest.raises(ValueError, match="acme/widgets"):
        asyncio.run(validate_repo_path_matches(git_repo, "acme/other"))


def test_repo_validation_fails_without_origin(git_repo: Path) -> None:
    _git(git_repo, "remote", "remove", "origin")
    with pytest.raises(ValueError, match="--skip-repo-path-check"):
        asyncio.run(validate_repo_path_matches(git_repo, "acme/widgets"))


def test_branch_commit_cycle(git_repo: Path) -> None:
    git = GitRepository(git_repo)

    async def _cycle() -> None:
        await git.create_branch("issue-42")
        (git_repo / "README.md").write_text("fixed\n")
        await git.add_all()
        await git.commit("Fix issue #42")

    asyncio.run(_cycle())

    assert _git(git_repo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "issue-42"
    assert _git(git_repo, "log", "-1", "--format=%s").strip() == "Fix issue #42"


def test_failed_commands_raise_git_command_error(git_repo: Path) -> None:
    git = GitRepository(git_repo)
    with pytest.raises(GitCommandError) as excinfo:
        asyncio.run(git.create_branch("issue-1", "origin/does-not-exist"))
    assert excinfo.value.args_list == ["checkout", "-b", "issue-1", "origin/does-not-exist"]
    assert excinfo.value.returncode != 0


@pytest.fixture
def upstream(git_repo: Path, tmp_path: Path) -> str:
    bare = tmp_path / "upstream.git"
    subprocess.run(["git", "init", "--bare", str(bare)], check=True, capture_output=True)
    _git(git_repo, "remote", "add", "upstream", bare.as_uri())
    _git(git_repo, "push", "upstream", "HEAD:refs/heads/develop")
    return "upstream"


def test_checkout_new_branch_from_remote_base(git_repo: Path, upstream: str) -> None:
    error = asyncio.run(GitRepository(git_repo).checkout_new_branch("issue-7", upstream, "develop"))

    assert error is None
    assert _git(git_repo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "issue-7"
    assert _git(git_repo, "rev-parse", "issue-7") == _git(git_repo, "rev-parse", "upstream/develop")


def test_checkout_new_branch_falls_back_to_head(git_repo: Path, upstream: str) -> None:
    error = asyncio.run(GitRepository(git_repo).checkout_new_branch("issue-8", upstream, "no-such-branch"))

    assert isinstance(error, GitCommandError)
    assert error.args_list[0] == "fetch"
    assert _git(git_repo, "rev-parse", "--abbrev-ref", "HEAD").strip() == "issue-8"


def test_checkout_new_branch_raises_when_fallback_fails(git_repo: Path, upstream: str) -> None:
    _git(git_repo, "branch", "issue-9")
    with pytest.raises(GitCommandError) as excinfo:
        asyncio.run(GitRepository(git_repo).checkout_new_branch("issue-9", upstream, "no-such-branch"))
    assert excinfo.value.args_list == ["checkout", "-b", "issue-9"]
