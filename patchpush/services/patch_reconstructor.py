"""
Patch Reconstructor Service - Turn parsed hunks into full file contents
"""

from __future__ import annotations

import logging
from typing import Mapping

from patchpush.models.diff import ChangeKind, FileChangeResult, FileDiff, Hunk
from patchpush.services.diff_parser import DiffParser
from patchpush.services.errors import PatchConflictError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 2000  # characters per file
TRUNCATION_MARKER = "\n\n... (truncated)"
LINE_BOUNDARY_RATIO = 0.8


def truncate_content(content: str, max_size: int = MAX_FILE_SIZE) -> str:
    """Truncate content to max_size, preferring a line boundary near the end.

    Output of a previous truncation is returned as is, so truncating twice
    gives the same text as truncating once. Content that the marker would
    make longer is also left alone.
    """
    if not content or len(content) <= max_size:
        return content
    if content.endswith(TRUNCATION_MARKER) and len(content) - len(TRUNCATION_MARKER) <= max_size:
        return content

    truncated = content[:max_size]
    last_newline = truncated.rfind("\n")
    if last_newline >= max_size * LINE_BOUNDARY_RATIO:
        truncated = truncated[:last_newline]
    truncated += TRUNCATION_MARKER
    if len(truncated) >= len(content):
        return content
    return truncated


def _hunk_offset(hunk: Hunk) -> int:
    """0-based index of the first original line a hunk touches"""
    # An empty old range ("-5,0") inserts after line 5
    if hunk.old_lines == 0:
        return hunk.old_start
    return max(hunk.old_start - 1, 0)


def apply_hunks(
    original_lines: list[str],
    hunks: list[Hunk],
    strict: bool = False,
    path: str | None = None,
) -> list[str]:
    """Splice hunks into the original lines in one pass.

    Hunk positions refer to the original content. Context and removed lines
    are trusted by position unless ``strict`` is set.
    """
    result: list[str] = []
    index = 0

    for number, hunk in enumerate(hunks, start=1):
        start = _hunk_offset(hunk)
        if strict and start < index:
            raise PatchConflictError(
                f"Hunk #{number} overlaps the previous hunk",
                path=path,
                line=hunk.old_start,
            )

        while index < start and index < len(original_lines):
            result.append(original_lines[index])
            index += 1

        for change in hunk.changes:
            if change.kind == ChangeKind.ADD:
                result.append(change.content)
                continue

            if strict:
                actual = original_lines[index] if index < len(original_lines) else None
                if actual != change.content:
                    raise PatchConflictError(
                        f"Hunk #{number} does not match line {index + 1}",
                        path=path,
                        line=index + 1,
                        expected=change.content,
                        actual=actual,
                    )

            if change.kind == ChangeKind.CONTEXT:
                result.append(change.content)
            index += 1

    result.extend(original_lines[index:])
    return result


def reconstruct_file_content(
    file_diff: FileDiff,
    original_content: str = "",
    strict: bool = False,
) -> str | None:
    """Build the post-change content of a file.

    Returns None for deleted and binary files, which must not be written.
    """
    if file_diff.is_deleted:
        return None

    if file_diff.is_binary:
        logger.warning("[PatchReconstructor] Binary file detected: %s. Skipping.", file_diff.path)
        return None

    if file_diff.is_new and not original_content:
        lines = [
            change.content
            for hunk in file_diff.hunks
            for change in hunk.changes
            if change.kind != ChangeKind.REMOVE
        ]
        return "\n".join(lines)

    lines = apply_hunks(original_content.split("\n"), file_diff.hunks, strict=strict, path=file_diff.path)
    return "\n".join(lines)


def apply_unified_diff(
    diff_text: str,
    originals: Mapping[str, str] | None = None,
    max_size: int = MAX_FILE_SIZE,
    strict: bool = False,
) -> list[FileChangeResult]:
    """Parse a diff and reconstruct every writable file in it.

    ``originals`` maps paths to their current content; files missing from it
    are reconstructed against an empty original.
    """
    file_diffs = DiffParser().parse(diff_text)
    return build_file_changes(file_diffs, originals, max_size=max_size, strict=strict)


def build_file_changes(
    file_diffs: list[FileDiff],
    originals: Mapping[str, str] | None = None,
    max_size: int = MAX_FILE_SIZE,
    strict: bool = False,
) -> list[FileChangeResult]:
    """Reconstruct and truncate already parsed file diffs"""
    originals = originals or {}
    changes = []

    for file_diff in file_diffs:
        if file_diff.is_deleted:
            logger.info("[PatchReconstructor] Skipping deleted file: %s", file_diff.path)
            continue
        if file_diff.is_binary:
            logger.info("[PatchReconstructor] Skipping binary file: %s", file_diff.path)
            continue

        original = originals.get(file_diff.path)
        if original is None and file_diff.renamed_from:
            original = originals.get(file_diff.renamed_from)
        new_content = reconstruct_file_content(file_diff, original or "", strict=strict)
        if new_content is None:
            continue

        truncated = truncate_content(new_content, max_size)
        changes.append(
            FileChangeResult(
                path=file_diff.path,
                new_content=truncated,
                is_new=file_diff.is_new,
                is_truncated=truncated != new_content,
                original_size=len(new_content),
                truncated_size=len(truncated),
            )
        )

    return changes


def skipped_paths(file_diffs: list[FileDiff]) -> list[str]:
    """Describe files excluded from reconstruction and paths left in place"""
    notes = []
    for file_diff in file_diffs:
        if file_diff.is_deleted:
            notes.append(f"{file_diff.path}: deleted file")
        elif file_diff.is_binary:
            notes.append(f"{file_diff.path}: binary file")
        elif file_diff.renamed_from:
            notes.append(f"{file_diff.renamed_from}: rename source not deleted (now {file_diff.path})")
    return notes
