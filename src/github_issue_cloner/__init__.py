"""GitHub issue cloner.

Copies issues and milestones from a source repository into a per-user planner
repository and links them to the user's project board.
"""

__version__ = "0.1.0"

from github_issue_cloner.cloner.config import ClonerSettings

__all__ = ["__version__", "ClonerSettings"]
