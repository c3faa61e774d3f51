"""
Diff Parser Service - Split git-style unified diffs into per-file hunks
"""

from __future__ import annotations

import logging
import re

from patchpush.models.diff import Change, ChangeKind, FileDiff, Hunk
from patchpush.services.errors import InvalidInputError

logger = logging.getLogger(__name__)

DIFF_FILE_HEADER = re.compile(r"^diff --git a/(.*?) b/(.*?)$")
FILE_MODE_NEW = re.compile(r"^new file mode \d+$")
FILE_MODE_DELETED = re.compile(r"^deleted file mode \d+$")
INDEX_LINE = re.compile(r"^index [0-9a-fA-F]+\.\.[0-9a-fA-F]+")
HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
BINARY_FILE = re.compile(r"^(Binary files? |GIT binary patch)")
RENAME_FROM = re.compile(r"^rename from (.+)$")
# Extended git headers that carry no content
METADATA_LINE = re.compile(
    r"^(old mode|new mode|similarity index|dissimilarity index|rename from|rename to|copy from|copy to) "
)
NO_NEWLINE_MARKER = "\\"


class DiffParser:
    """Parse unified diff text produced by ``git diff``"""

    def parse(self, diff_text: str) -> list[FileDiff]:
        """Parse a multi-file diff. Text without any file header yields []."""
        if not isinstance(diff_text, str) or not diff_text:
            raise InvalidInputError("diff text must be a non-empty string")

        files = []
        for segment in self.split_files(diff_text):
            file_diff = self.parse_file(segment)
            if file_diff is None:
                logger.debug("[DiffParser] Dropping segment without a path: %r", segment[0])
                continue
            files.append(file_diff)
        return files

    def split_files(self, diff_text: str) -> list[list[str]]:
        """Split diff text into per-file line segments"""
        lines = diff_text.replace("\r\n", "\n").split("\n")
        segments: list[list[str]] = []
        current: list[str] = []

        for line in lines:
            if line.startswith("diff --git"):
                if current:
                    segments.append(current)
                current = [line]
            elif current:
                current.append(line)

        if current:
            segments.append(current)
        return segments

    def parse_file(self, lines: list[str]) -> FileDiff | None:
        """Parse the lines of a single file segment"""
        if not lines:
            return None

        path: str | None = None
        renamed_from: str | None = None
        is_new = is_deleted = is_binary = False
        hunks: list[Hunk] = []
        current: Hunk | None = None

        for line in lines:
            # Inside an unfinished hunk every line is content, even "---"/"+++"
            if current is not None and not self._hunk_filled(current):
                change = self._parse_change(line)
                if change is not None:
                    current.changes.append(change)
                    continue

            header = DIFF_FILE_HEADER.match(line)
            if header:
                path = header.group(2)  # post-change path
                continue
            rename = RENAME_FROM.match(line)
            if rename:
                renamed_from = rename.group(1)
                continue
            if FILE_MODE_NEW.match(line):
                is_new = True
                continue
            if FILE_MODE_DELETED.match(line):
                is_deleted = True
                continue
            if BINARY_FILE.match(line):
                is_binary = True
                continue
            if INDEX_LINE.match(line) or METADATA_LINE.match(line):
                continue
            # Path echoes outside a hunk; the diff --git line wins
            if line.startswith("---") or line.startswith("+++"):
                current = None
                continue

            hunk_header = HUNK_HEADER.match(line)
            if hunk_header:
                current = Hunk(
                    old_start=int(hunk_header.group(1)),
                    old_lines=int(hunk_header.group(2) or 1),
                    new_start=int(hunk_header.group(3)),
                    new_lines=int(hunk_header.group(4) or 1),
                )
                hunks.append(current)
                continue

            if current is None:
                continue

            change = self._parse_change(line)
            if change is not None:
                current.changes.append(change)
            elif not line.startswith(NO_NEWLINE_MARKER):
                current = None

        if not path:
            return None

        if renamed_from == path:
            renamed_from = None

        return FileDiff(
            path=path,
            renamed_from=renamed_from,
            is_new=is_new,
            is_deleted=is_deleted,
            is_binary=is_binary,
            hunks=hunks,
        )

    @staticmethod
    def _hunk_filled(hunk: Hunk) -> bool:
        """True once the header's old and new line counts are used up"""
        return hunk.consumed_lines >= hunk.old_lines and hunk.emitted_lines >= hunk.new_lines

    def _parse_change(self, line: str) -> Change | None:
        if line.startswith("+"):
            return Change(kind=ChangeKind.ADD, content=line[1:])
        if line.startswith("-"):
            return Change(kind=ChangeKind.REMOVE, content=line[1:])
        if line.startswith(" "):
            return Change(kind=ChangeKind.CONTEXT, content=line[1:])
        return None


def parse_unified_diff(diff_text: str) -> list[FileDiff]:
    """Convenience function to parse a diff with a fresh parser."""
    return DiffParser().parse(diff_text)
