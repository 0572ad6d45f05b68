import asyncio
import json
from pathlib import Path

import pytest
from conftest import FakeGit, FakeTracker, RecordingReporter, ScriptedProvider

from code_agent.ai_response import AIResponseMalformedError
from code_agent.config import IssueFixConfig
from code_agent.drivers.issue_fix import IssueFixDriver, build_pull_body
from code_agent.models import Issue, Solution
from code_agent.vcs import GitCommandError

ISSUE = Issue(number=42, title="Crash on save", body="Saving crashes. Seen on branch develop.")


def _solution(**overrides: object) -> str:
    payload = {
        "analysis": "save() dereferences a missing document",
        "files": ["src/save.js"],
        "solution": "Guard the call",
        "changes": [{"file": "src/save.js", "original": "doc.save()", "replacement": "doc && doc.save()"}],
        "commitMessage": "Guard save against missing document",
    }
    payload.update(overrides)
    return f"Here you go:\n```json\n{json.dumps(payload)}\n```"


def _driver(tmp_path: Path, *, solution: ScriptedProvider, branch: ScriptedProvider | None, git: FakeGit, tracker: FakeTracker, reporter: RecordingReporter) -> IssueFixDriver:
    return IssueFixDriver(
        config=IssueFixConfig(),
        tracker=tracker,
        git=git,
        solution_provider=solution,
        branch_provider=branch,
        reporter=reporter,
        workdir=tmp_path,
    )


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "save.js").write_text("function run(doc) { doc.save(); }\n")
    return tmp_path


def test_issue_fix_happy_path(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir)
    tracker = FakeTracker()
    solution = ScriptedProvider(_solution())
    branch = ScriptedProvider('{"branch": "develop"}')

    result = asyncio.run(_driver(workdir, solution=solution, branch=branch, git=git, tracker=tracker, reporter=reporter).run(ISSUE))

    assert (workdir / "src" / "save.js").read_text() == "function run(doc) { doc && doc.save(); }\n"
    assert git.calls == [
        ("fetch", "origin", "develop"),
        ("checkout", "issue-42", "origin/develop"),
        ("add",),
        ("commit", "Guard save against missing document"),
        ("push", "origin", "issue-42"),
    ]
    assert tracker.created_pulls[0]["title"] == "Fix issue #42: Crash on save"
    assert tracker.created_pulls[0]["head"] == "issue-42"
    assert tracker.created_pulls[0]["base"] == "develop"
    assert "save() dereferences a missing document" in tracker.created_pulls[0]["body"]
    assert tracker.issue_comments == [
        (42, "I've created a fix for this issue in PR #99 (https://github.com/acme/repo/pull/99). Please review the changes.")
    ]
    assert result.pull_number == 99
    assert result.changed_files == ["src/save.js"]
    assert "Issue #42: Crash on save" in solution.prompts[0]


def test_missing_branch_falls_back_to_default_and_default_commit_message(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir)
    tracker = FakeTracker()
    solution = ScriptedProvider(_solution(commitMessage=None))
    branch = ScriptedProvider('{"branch": null}')

    result = asyncio.run(_driver(workdir, solution=solution, branch=branch, git=git, tracker=tracker, reporter=reporter).run(ISSUE))

    assert result.base_branch == "main"
    assert ("commit", "Fix issue #42") in git.calls
    assert tracker.created_pulls[0]["base"] == "main"


def test_branch_extraction_failure_is_not_fatal(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir)
    branch = ScriptedProvider(RuntimeError("overloaded"))

    result = asyncio.run(
        _driver(workdir, solution=ScriptedProvider(_solution()), branch=branch, git=git, tracker=FakeTracker(), reporter=reporter).run(ISSUE)
    )

    assert result.base_branch == "main"
    assert any("Error extracting branch info" in message for message in reporter.messages("warning"))


def test_checkout_failure_falls_back_to_local_branch(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir, fail={"fetch"})

    asyncio.run(
        _driver(workdir, solution=ScriptedProvider(_solution()), branch=None, git=git, tracker=FakeTracker(), reporter=reporter).run(ISSUE)
    )

    assert git.calls[:2] == [("fetch", "origin", "main"), ("checkout", "issue-42")]
    assert any("Error checking out branch" in message for message in reporter.messages("warning"))


def test_second_checkout_failure_aborts(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir, fail={"fetch", "checkout"})
    tracker = FakeTracker()
    solution = ScriptedProvider(_solution())

    with pytest.raises(GitCommandError):
        asyncio.run(_driver(workdir, solution=solution, branch=None, git=git, tracker=tracker, reporter=reporter).run(ISSUE))

    assert solution.prompts == []
    assert tracker.created_pulls == []
    assert reporter.messages("error")[0].startswith("Error processing issue")


def test_malformed_solution_aborts_before_touching_files(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir)
    tracker = FakeTracker()
    before = (workdir / "src" / "save.js").read_text()

    with pytest.raises(AIResponseMalformedError):
        asyncio.run(
            _driver(workdir, solution=ScriptedProvider("I am not sure."), branch=None, git=git, tracker=tracker, reporter=reporter).run(ISSUE)
        )

    assert (workdir / "src" / "save.js").read_text() == before
    assert [call[0] for call in git.calls] == ["fetch", "checkout"]
    assert tracker.created_pulls == []
    assert tracker.issue_comments == []


def test_push_failure_leaves_no_pull_request(workdir: Path, reporter: RecordingReporter) -> None:
    git = FakeGit(workdir, fail={"push"})
    tracker = FakeTracker()

    with pytest.raises(GitCommandError):
        asyncio.run(_driver(workdir, solution=ScriptedProvider(_solution()), branch=None, git=git, tracker=tracker, reporter=reporter).run(ISSUE))

    assert tracker.created_pulls == []


def test_build_pull_body_skips_empty_sections() -> None:
    solution = Solution(analysis="", solution="Guard the call")
    body = build_pull_body(ISSUE, solution, "Automatically generated by Code Agent.")
    assert body == "This PR addresses issue #42\n\nGuard the call\n\nAutomatically generated by Code Agent."


def test_changed_files_lists_each_file_once(workdir: Path, reporter: RecordingReporter) -> None:
    changes = [
        {"file": "src/save.js", "original": "doc.save()", "replacement": "doc.save(true)"},
        {"file": "src/save.js", "original": "run(doc)", "replacement": "run(doc, opts)"},
    ]

    result = asyncio.run(
        _driver(
            workdir,
            solution=ScriptedProvider(_solution(changes=changes)),
            branch=None,
            git=FakeGit(workdir),
            tracker=FakeTracker(),
            reporter=reporter,
        ).run(ISSUE)
    )

    assert result.changed_files == ["src/save.js"]
    assert (workdir / "src" / "save.js").read_text() == "function run(doc, opts) { doc.save(true); }\n"
