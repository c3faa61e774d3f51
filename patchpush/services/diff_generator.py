"""
Diff Generator Service - Generate git-style unified diffs for file contents
"""

from __future__ import annotations

from difflib import unified_diff

from patchpush.models.diff import GeneratedDiff


class DiffGenerator:
    """Generate unified diffs that the diff parser can apply back"""

    def generate_diff(
        self,
        original_content: str | None,
        new_content: str,
        file_path: str,
        context_lines: int = 3,
    ) -> GeneratedDiff:
        """Generate a diff from original to new content.

        ``original_content=None`` marks a new file. Content is split on
        newlines only, so applying the diff to the original reproduces
        ``new_content`` exactly.
        """
        is_new = original_content is None
        original_lines = [] if is_new else original_content.split("\n")
        new_lines = new_content.split("\n")

        body = list(
            unified_diff(
                original_lines,
                new_lines,
                fromfile="/dev/null" if is_new else f"a/{file_path}",
                tofile=f"b/{file_path}",
                n=context_lines,
                lineterm="",
            )
        )

        header = [f"diff --git a/{file_path} b/{file_path}"]
        if is_new:
            header.append("new file mode 100644")

        additions = sum(1 for line in body if line.startswith("+") and not line.startswith("+++"))
        deletions = sum(1 for line in body if line.startswith("-") and not line.startswith("---"))

        return GeneratedDiff(
            file_path=file_path,
            unified_diff="\n".join(header + body) + "\n" if body else "",
            additions=additions,
            deletions=deletions,
        )

    def combine(self, diffs: list[GeneratedDiff]) -> str:
        """Concatenate per-file diffs into one multi-file diff"""
        return "".join(d.unified_diff for d in diffs)
