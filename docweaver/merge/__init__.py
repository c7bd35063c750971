"""Comment rendering and merging into source text."""

from docweaver.merge.engine import MergeEngine, MergeResult, apply_merge_results, detect_newline
from docweaver.merge.renderer import render_comment, render_lines

__all__ = [
    "MergeEngine",
    "MergeResult",
    "apply_merge_results",
    "detect_newline",
    "render_comment",
    "render_lines",
]
