"""GitHub API access for the cloner."""
