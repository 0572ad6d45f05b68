"""Prompt templates for the completion calls."""

from __future__ import annotations

from code_agent.models import Issue

REVIEW_PROMPT = """As a Senior Developer, review the following code changes and provide specific feedback.

IMPORTANT - You must format your response EXACTLY as a JSON array like this example:
[
  {{
    "line": 12,
    "comment": "Consider using const instead of let here since the value isn't reassigned"
  }},
  {{
    "line": 45,
    "comment": "This loop could be simplified using a comprehension"
  }}
]

Rules:
1. Each comment must reference a specific line number from the diff
2. Comments must be short and specific to that line
3. The line number must be the actual line number from the new file
4. Response must be valid JSON that can be parsed
5. Do not include any text outside the JSON array

Here are the changes to review:
File: {filename}
Diff:
{patch}"""

BRANCH_PROMPT = """Extract the branch name where the issue was found from this GitHub issue description.
Return ONLY a JSON object with the format {{"branch": "branch-name"}} or {{"branch": null}} if not found.

Issue description:
{body}"""

SOLUTION_PROMPT = """I need to fix a bug in our codebase. Here's the GitHub issue:

Issue #{number}: {title}

Description:
{body}

Please analyze this issue and:
1. Identify which files are likely involved
2. Explain what's causing the issue
3. Provide a specific fix

Return your response as a JSON object with this format:
{{
  "analysis": "Your analysis of the issue",
  "files": ["list", "of", "affected", "files"],
  "solution": "Description of the solution",
  "changes": [
    {{
      "file": "path/to/file",
      "original": "snippet of code to be replaced",
      "replacement": "replacement code"
    }}
  ],
  "commitMessage": "Suggested commit message"
}}"""


def review_prompt(filename: str, patch: str) -> str:
    return REVIEW_PROMPT.format(filename=filename, patch=patch)


def branch_prompt(body: str | None) -> str:
    return BRANCH_PROMPT.format(body=body or "")


def solution_prompt(issue: Issue) -> str:
    return SOLUTION_PROMPT.format(number=issue.number, title=issue.title, body=issue.body or "")
