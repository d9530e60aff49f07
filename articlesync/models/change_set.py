"""Data structures describing the articles selected for a publish run."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ChangeSet:
    """Candidate article paths grouped by the signal that detected them."""

    remote_diff: set[str] = field(default_factory=set)
    missing_remote_id: set[str] = field(default_factory=set)
    working_tree: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Return the deduplicated union of all signals in a stable order."""

        return sorted(self.remote_diff | self.missing_remote_id | self.working_tree)

    def __len__(self) -> int:
        return len(self.paths)
