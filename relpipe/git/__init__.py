"""Git access."""

from .repository import Commit, GitError, Repository

__all__ = ["Commit", "GitError", "Repository"]
