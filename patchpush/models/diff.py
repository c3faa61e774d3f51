"""Diff-related data models"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    """Line operation inside a hunk"""

    ADD = "add"
    REMOVE = "remove"
    CONTEXT = "context"


class Change(BaseModel):
    """A single line of a hunk, without its diff prefix"""

    kind: ChangeKind
    content: str


class Hunk(BaseModel):
    """A single change hunk in a diff"""

    old_start: int = Field(ge=0)  # 1-indexed, 0 only for empty ranges
    old_lines: int = Field(default=1, ge=0)
    new_start: int = Field(ge=0)
    new_lines: int = Field(default=1, ge=0)
    changes: list[Change] = []

    @property
    def consumed_lines(self) -> int:
        """Original lines this hunk reads (Remove + Context)"""
        return sum(1 for c in self.changes if c.kind != ChangeKind.ADD)

    @property
    def emitted_lines(self) -> int:
        """Lines this hunk writes (Add + Context)"""
        return sum(1 for c in self.changes if c.kind != ChangeKind.REMOVE)

    @property
    def is_consistent(self) -> bool:
        return self.consumed_lines == self.old_lines and self.emitted_lines == self.new_lines


class FileDiff(BaseModel):
    """Parsed diff for one file"""

    path: str
    renamed_from: str | None = None  # pre-rename path from "rename from"
    is_new: bool = False
    is_deleted: bool = False
    is_binary: bool = False
    hunks: list[Hunk] = []

    @property
    def additions(self) -> int:
        return sum(1 for h in self.hunks for c in h.changes if c.kind == ChangeKind.ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for h in self.hunks for c in h.changes if c.kind == ChangeKind.REMOVE)


class FileChangeResult(BaseModel):
    """Reconstructed content for a file, ready to commit"""

    path: str
    new_content: str
    is_new: bool = False
    is_truncated: bool = False
    original_size: int
    truncated_size: int


class GeneratedDiff(BaseModel):
    """Unified diff produced from two versions of a file"""

    file_path: str
    unified_diff: str
    additions: int
    deletions: int
