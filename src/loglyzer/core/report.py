"""Static HTML report rendered from a stats snapshot."""

from __future__ import annotations

import logging
from datetime import datetime
from html import escape
from pathlib import Path

from .stats import StatsSnapshot

LOGGER = logging.getLogger(__name__)

DEFAULT_TITLE = "Loglyzer report"

_CSS = """
body { font-family: system-ui, sans-serif; margin: 2rem; color: #222; }
h1 { margin-bottom: 0.2rem; }
table { border-collapse: collapse; margin: 0.5rem 0 1.5rem; }
th, td { border: 1px solid #ccc; padding: 0.25rem 0.75rem; text-align: left; }
td.num { text-align: right; font-variant-numeric: tabular-nums; }
.muted { color: #777; }
svg rect { fill: #4a79c7; }
"""

_CHART_HEIGHT = 160
_CHART_BAR = 6


def _table(headers: tuple[str, str], rows: list[tuple[object, int]]) -> str:
    if not rows:
        return '<p class="muted">No data.</p>'
    head = f"<tr><th>{escape(headers[0])}</th><th>{escape(headers[1])}</th></tr>"
    body = "".join(f'<tr><td>{escape(str(k))}</td><td class="num">{v}</td></tr>' for k, v in rows)
    return f"<table>{head}{body}</table>"


def _chart(series: tuple[tuple[datetime, int], ...]) -> str:
    if not series:
        return '<p class="muted">No data.</p>'
    peak = max(count for _, count in series) or 1
    width = len(series) * _CHART_BAR
    bars = []
    for i, (start, count) in enumerate(series):
        h = round(count / peak * _CHART_HEIGHT)
        bars.append(
            f'<rect x="{i * _CHART_BAR}" y="{_CHART_HEIGHT - h}" width="{_CHART_BAR - 1}" height="{h}">'
            f"<title>{escape(start.isoformat())}: {count}</title></rect>"
        )
    first = escape(series[0][0].isoformat())
    last = escape(series[-1][0].isoformat())
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{_CHART_HEIGHT}" '
        f'viewBox="0 0 {width} {_CHART_HEIGHT}" role="img">{"".join(bars)}</svg>'
        f'<p class="muted">{first} &rarr; {last} (peak {peak})</p>'
    )


def render_html(snapshot: StatsSnapshot, *, title: str = DEFAULT_TITLE) -> str:
    """Render a self-contained HTML document. Pure: reads only the snapshot."""
    t = escape(title)
    series_rows = [(start.isoformat(), count) for start, count in snapshot.time_series]
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="en"><head><meta charset="utf-8"><title>{t}</title>'
        f"<style>{_CSS}</style></head><body>"
        f"<h1>{t}</h1>"
        "<h2>Totals</h2>"
        + _table(
            ("Metric", "Count"),
            [
                ("Admitted records", snapshot.total),
                ("Unparsable lines", snapshot.unparsable),
                ("Outside time window", snapshot.filtered),
                ("Lines read", snapshot.lines),
            ],
        )
        + "<h2>Status codes</h2>"
        + _table(("Status", "Count"), list(snapshot.status_codes))
        + "<h2>Top client IPs</h2>"
        + _table(("IP", "Count"), list(snapshot.top_ips))
        + "<h2>Top paths</h2>"
        + _table(("Path", "Count"), list(snapshot.top_paths))
        + f"<h2>Requests per {snapshot.bucket_seconds}s</h2>"
        + _chart(snapshot.time_series)
        + _table(("Bucket start (UTC)", "Count"), series_rows)
        + "</body></html>\n"
    )


def export_html(snapshot: StatsSnapshot, path: str | Path, *, title: str = DEFAULT_TITLE) -> Path:
    """Write the rendered report to ``path`` and return it."""
    out = Path(path)
    out.write_text(render_html(snapshot, title=title), encoding="utf-8")
    LOGGER.info("HTML report written to %s", out)
    return out
