"""Git repository discovery and tracked-path lookup."""

from sweep.git.index import GitLookup, GitRepoHandle, GitStatusIndex, find_enclosing_repo

__all__ = [
    "GitLookup",
    "GitRepoHandle",
    "GitStatusIndex",
    "find_enclosing_repo",
]
