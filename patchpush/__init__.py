"""patchpush - apply unified diffs to GitHub branches"""

__version__ = "0.1.0"
