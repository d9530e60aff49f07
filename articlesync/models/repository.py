"""Data structures describing the git repository that holds the articles."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class RepoContext:
    """Owner, repository and branch details read from the local git configuration."""

    owner: str | None = None
    repository: str | None = None
    branch: str | None = None
    upstream: str | None = None

    @property
    def is_complete(self) -> bool:
        """Return ``True`` when remote-dependent features have everything they need."""

        return bool(self.owner and self.repository and self.branch)

    @property
    def is_detached(self) -> bool:
        return self.branch in (None, "", "HEAD")
