"""HTML rendering of local comparison results."""

from __future__ import annotations

from html import escape
from typing import List, Sequence

from docscope.compare.differ import ComparisonReport, ComparisonStats, DiffSegment, diff_texts

MAX_CHANGES = 50
MAX_LINE_CHARS = 200


def _summary_block(stats: ComparisonStats) -> str:
    return f"""
<div class="comparison-summary">
  <h3>Comparison Summary</h3>
  <div class="stats-grid">
    <div class="stat-item">
      <span class="stat-label">Similarity</span>
      <span class="stat-value">{stats.similarity_percent}%</span>
    </div>
    <div class="stat-item added">
      <span class="stat-label">Added</span>
      <span class="stat-value">+{stats.added_lines} lines</span>
    </div>
    <div class="stat-item removed">
      <span class="stat-label">Removed</span>
      <span class="stat-value">-{stats.removed_lines} lines</span>
    </div>
    <div class="stat-item">
      <span class="stat-label">Unchanged</span>
      <span class="stat-value">{stats.unchanged_lines} lines</span>
    </div>
  </div>
</div>
"""


def _details_block(stats: ComparisonStats, label_a: str, label_b: str) -> str:
    return f"""
<div class="comparison-details">
  <h3>Document Details</h3>
  <div class="doc-details-grid">
    <div class="doc-detail">
      <strong>{escape(label_a)}</strong>
      <p>{stats.lines_a} lines &bull; {stats.chars_a} characters</p>
    </div>
    <div class="doc-detail">
      <strong>{escape(label_b)}</strong>
      <p>{stats.lines_b} lines &bull; {stats.chars_b} characters</p>
    </div>
  </div>
</div>
"""


def _key_changes_block(stats: ComparisonStats) -> str:
    items: List[str] = []
    if stats.added_lines > 0:
        items.append(
            f'<li class="change-added">{stats.added_lines} line(s) added ({stats.added_words} words)</li>'
        )
    if stats.removed_lines > 0:
        items.append(
            f'<li class="change-removed">{stats.removed_lines} line(s) removed ({stats.removed_words} words)</li>'
        )
    items.append(f"<li>{stats.changed_percent}% of content changed</li>")
    body = "\n    ".join(items)
    return f"""
<div class="comparison-changes">
  <h3>Key Changes</h3>
  <ul>
    {body}
  </ul>
</div>
"""


def _diff_lines_html(segment: DiffSegment) -> List[str]:
    css_class = "diff-added" if segment.added else "diff-removed"
    symbol = "+" if segment.added else "-"
    rendered = []
    for line in segment.value.split("\n"):
        if not line.strip():
            continue
        text = escape(line[:MAX_LINE_CHARS])
        rendered.append(f'<div class="{css_class}"><span class="diff-symbol">{symbol}</span>{text}</div>')
    return rendered


def _changes_block(changes: Sequence[DiffSegment]) -> str:
    rows: List[str] = []
    for segment in changes[:MAX_CHANGES]:
        rows.extend(_diff_lines_html(segment))
    if len(changes) > MAX_CHANGES:
        rows.append(f'<div class="diff-more">... and {len(changes) - MAX_CHANGES} more changes</div>')
    body = "\n".join(rows)
    return f"""
<div class="comparison-diff">
  <h3>Detailed Changes</h3>
  <div class="diff-container">
{body}
  </div>
</div>
"""


_IDENTICAL_BLOCK = """
<div class="comparison-identical">
  <h3>Documents are Identical</h3>
  <p>No differences found between the two documents.</p>
</div>
"""


def render_report(report: ComparisonReport) -> str:
    stats = report.stats
    parts = [_summary_block(stats), _details_block(stats, report.label_a, report.label_b)]
    if stats.changed_lines > 0:
        parts.append(_key_changes_block(stats))

    changes = report.changes
    parts.append(_changes_block(changes) if changes else _IDENTICAL_BLOCK)
    return "".join(parts)


def compare_texts(text_a: str, text_b: str, label_a: str, label_b: str) -> ComparisonReport:
    """Diff two texts and build the rendered comparison report."""
    line_diff, stats = diff_texts(text_a, text_b)
    report = ComparisonReport(label_a=label_a, label_b=label_b, stats=stats, line_diff=line_diff)
    report.html = render_report(report)
    return report
