"""Round trips: generated diffs applied back to the original content."""

import pytest

from patchpush.services.diff_generator import DiffGenerator
from patchpush.services.diff_parser import parse_unified_diff
from patchpush.services.patch_reconstructor import apply_unified_diff, reconstruct_file_content

ORIGINAL = "\n".join(f"line {i}" for i in range(1, 41))


@pytest.fixture
def generator():
    return DiffGenerator()


@pytest.mark.parametrize(
    "new_content",
    [
        ORIGINAL.replace("line 3\n", "line 3\ninserted\n"),
        ORIGINAL.replace("line 10\n", "").replace("line 30", "line thirty"),
        "header\n" + ORIGINAL + "\nfooter",
        ORIGINAL.replace("line 1\n", "").replace("\nline 40", ""),
        ORIGINAL + "\n",
    ],
    ids=["insert", "delete-and-replace", "both-ends", "trim-ends", "trailing-newline"],
)
def test_round_trip_reproduces_new_content(generator, new_content):
    generated = generator.generate_diff(ORIGINAL, new_content, "notes.txt")
    (file_diff,) = parse_unified_diff(generated.unified_diff)

    for hunk in file_diff.hunks:
        assert hunk.is_consistent

    assert reconstruct_file_content(file_diff, ORIGINAL) == new_content


def test_new_file_round_trip(generator):
    generated = generator.generate_diff(None, "a\nb\nc", "pkg/new.py")
    assert "new file mode 100644" in generated.unified_diff
    assert generated.additions == 3
    (change,) = apply_unified_diff(generated.unified_diff)
    assert change.is_new
    assert change.new_content == "a\nb\nc"


def test_unchanged_content_gives_empty_diff(generator):
    generated = generator.generate_diff("same", "same", "x.txt")
    assert generated.unified_diff == ""
    assert generated.additions == generated.deletions == 0


def test_combined_diff_applies_every_file(generator):
    first = generator.generate_diff("a\nb", "a\nB", "one.txt")
    second = generator.generate_diff(None, "fresh", "two.txt")
    combined = generator.combine([first, second])

    changes = apply_unified_diff(combined, originals={"one.txt": "a\nb"})
    assert {c.path: c.new_content for c in changes} == {"one.txt": "a\nB", "two.txt": "fresh"}


@pytest.mark.parametrize(
    "original, new_content",
    [
        ("a\n-- sql comment\nb", "a\nb"),
        ("a\nb", "a\n++counter;\nb"),
        ("---\ntitle: x\n---\nbody", "title: x\nbody"),
        ("keep\n--- old rule\nend", "keep\n+++ new rule\nend"),
    ],
    ids=["sql-comment-removed", "increment-added", "front-matter-removed", "marker-lines-swapped"],
)
def test_round_trip_with_dash_and_plus_lines(generator, original, new_content):
    generated = generator.generate_diff(original, new_content, "query.sql")
    (file_diff,) = parse_unified_diff(generated.unified_diff)
    assert reconstruct_file_content(file_diff, original) == new_content
