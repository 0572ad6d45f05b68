"""AI issue fixer and pull request reviewer for GitHub repositories."""
