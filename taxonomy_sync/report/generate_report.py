#!/usr/bin/env python3
"""
HTML Change Report

################################################################################
# REPORTING IS OFFLINE. NO LIVE API CALLS.
# render_report() is a pure function of the report rows and environment ids:
# same rows in, same HTML out. No timestamps are embedded.
################################################################################

Output:
    <results_dir>/asset-taxonomy-update-report.html   (overwritten every run)
"""

import html
import json
import re
import webbrowser
from pathlib import Path

from taxonomy_sync.config import DEFAULT_APP_URL

# =============================================================================
# CONFIGURATION
# =============================================================================

SCRIPT_DIR = Path(__file__).parent
TEMPLATE_PATH = SCRIPT_DIR / "TEMPLATE.html"
REPORT_FILENAME = "asset-taxonomy-update-report.html"

CELL_CLASS = "border border-gray-300 p-2 align-middle"
LINK_CLASS = "text-blue-600 underline hover:text-blue-800"

PILL_COLORS = [
    "bg-red-100 text-red-800",
    "bg-green-100 text-green-800",
    "bg-blue-100 text-blue-800",
    "bg-yellow-100 text-yellow-800",
    "bg-purple-100 text-purple-800",
    "bg-pink-100 text-pink-800",
    "bg-indigo-100 text-indigo-800",
    "bg-teal-100 text-teal-800",
    "bg-orange-100 text-orange-800",
    "bg-lime-100 text-lime-800",
    "bg-amber-100 text-amber-800",
    "bg-emerald-100 text-emerald-800",
    "bg-cyan-100 text-cyan-800",
    "bg-violet-100 text-violet-800",
    "bg-rose-100 text-rose-800",
    "bg-sky-100 text-sky-800",
    "bg-fuchsia-100 text-fuchsia-800",
    "bg-stone-100 text-stone-800",
    "bg-gray-100 text-gray-800",
    "bg-zinc-100 text-zinc-800",
]


# =============================================================================
# TEMPLATE RENDERING
# =============================================================================


class TemplateRenderer:
    """Renders template with {{PLACEHOLDER}} values."""

    def __init__(self, template_path: Path = TEMPLATE_PATH):
        if not template_path.exists():
            raise FileNotFoundError(f"Template not found: {template_path}")
        with open(template_path, "r", encoding="utf-8") as f:
            self.template = f.read()
        self.missing = []

    def render(self, placeholders: dict) -> str:
        # Single pass, so placeholder-like text inside values is never expanded
        self.missing = []

        def substitute(match):
            value = placeholders.get(match.group(1))
            if value is None:
                self.missing.append(match.group(1))
                return ""
            return str(value)

        return re.sub(r"\{\{([A-Z0-9_]+)\}\}", substitute, self.template)


# =============================================================================
# FRAGMENTS
# =============================================================================


def pill_class(codename: str) -> str:
    """Stable pill colour for a term, keyed by its codename."""
    return PILL_COLORS[sum(ord(c) for c in codename or "") % len(PILL_COLORS)]


def render_pills(terms: list) -> str:
    return "".join(
        f'<span class="inline-block px-3 py-1 rounded-full text-xs font-semibold mr-2 mb-1 '
        f'{pill_class(term.get("codename"))}">{html.escape(term.get("name") or term.get("codename") or "")}</span>'
        for term in terms
    )


def render_asset_cell(asset: dict) -> str:
    url = html.escape(asset.get("url") or "#")
    codename = html.escape(asset.get("codename") or "unknown")
    return (
        f'<a href="{url}" target="_blank" rel="noopener noreferrer" class="flex items-center">'
        f'<img src="{url}" alt="{codename}" class="h-[50px] w-auto rounded mr-2" />'
        f'<span class="{LINK_CLASS}">{codename}</span></a>'
    )


def environment_url(app_url: str, env_id: str) -> str:
    return f"{app_url.rstrip('/')}/{env_id}/mission-control/your-work"


def render_environment_link(app_url: str, env_id: str) -> str:
    url = html.escape(environment_url(app_url, env_id))
    return f'<a href="{url}" target="_blank" class="{LINK_CLASS}">{html.escape(env_id)}</a>'


def payload_json(payload: dict) -> str:
    """The payload exactly as the report displays it."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _element_block(element_id: str, terms: list) -> str:
    label = html.escape(element_id)
    return f'<div class="mb-1"><div class="text-[10px] text-gray-400">{label}</div>{render_pills(terms)}</div>'


def render_row(row) -> str:
    # Source column is labelled with the source element id, the others with the target's
    source_cells = "".join(_element_block(d.source_element_id, d.source_terms) for d in row.element_diffs)
    existing_cells = "".join(_element_block(d.target_element_id, d.existing_terms) for d in row.element_diffs)
    pending_cells = "".join(_element_block(d.target_element_id, d.pending_terms) for d in row.element_diffs)
    payload_cell = (
        '<details><summary class="cursor-pointer text-xs text-gray-600">PUT body</summary>'
        f'<pre class="text-[10px] whitespace-pre-wrap">{html.escape(payload_json(row.payload))}</pre></details>'
    )
    cells = [
        render_asset_cell(row.source_asset),
        source_cells,
        render_asset_cell(row.target_asset),
        existing_cells,
        pending_cells,
        payload_cell,
    ]
    return (
        '      <tr class="hover:bg-gray-100">'
        + "".join(f'<td class="{CELL_CLASS}">{cell}</td>' for cell in cells)
        + "</tr>"
    )


# =============================================================================
# REPORT
# =============================================================================


def render_report(
    rows: list,
    source_env_id: str,
    target_env_id: str,
    app_url: str = DEFAULT_APP_URL,
    template_path: Path = TEMPLATE_PATH,
) -> str:
    """Render the full HTML report for the pending change-set."""
    if rows:
        rows_html = "\n".join(render_row(row) for row in rows)
    else:
        rows_html = (
            '      <tr><td colspan="6" class="border border-gray-300 p-4 text-center text-gray-500">'
            "No assets require a taxonomy update.</td></tr>"
        )

    renderer = TemplateRenderer(template_path)
    return renderer.render({
        "SOURCE_ENV_LINK": render_environment_link(app_url, source_env_id),
        "TARGET_ENV_LINK": render_environment_link(app_url, target_env_id),
        "ROW_COUNT": len(rows),
        "ROWS": rows_html,
    })


def write_report(report_html: str, results_dir: Path) -> Path:
    """Write the report, replacing any previous run's file."""
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)
    report_path = results_dir / REPORT_FILENAME
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(report_html)
    return report_path


def open_report(report_path: Path) -> bool:
    """Open the report in the default browser."""
    return webbrowser.open(Path(report_path).resolve().as_uri())
