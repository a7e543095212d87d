#!/usr/bin/env python3
"""
Apply Changes

################################################################################
# LIVE WRITES TO THE TARGET ENVIRONMENT
################################################################################
#
# NEVER:
#   - Recompute payloads (the reported payload is the one sent)
#   - Run without an affirmative answer at the confirmation gate
#   - Stop the batch because one asset failed
#
# ALWAYS:
#   - PUT each row's precomputed payload exactly as previewed
#   - Record every asset's outcome independently
#   - Leave a results file
#
################################################################################

Output:
    <results_dir>/asset-taxonomy-update-results.json
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import requests

from taxonomy_sync.dump.fetch_state import KontentApiError, KontentClient

# =============================================================================
# CONFIGURATION
# =============================================================================

RESULTS_FILENAME = "asset-taxonomy-update-results.json"
AFFIRMATIVE_ANSWERS = {"y", "yes"}
CONFIRM_PROMPT = (
    "Please review the HTML report in your browser. "
    "Do you want to proceed with updating the assets? (y/n): "
)


# =============================================================================
# CONFIRMATION GATE
# =============================================================================


def confirm_apply(prompt_fn=None) -> bool:
    """Single yes/no gate. Anything but y/yes (any case) declines."""
    if prompt_fn is None:
        prompt_fn = input
    try:
        answer = prompt_fn(CONFIRM_PROMPT)
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    return (answer or "").strip().lower() in AFFIRMATIVE_ANSWERS


# =============================================================================
# ASSET UPDATER
# =============================================================================


class AssetUpdater:
    """PUTs precomputed payloads to the target environment, one asset at a time."""

    def __init__(self, client: KontentClient):
        self.client = client

    def update_row(self, row) -> dict:
        result = {
            "codename": row.codename,
            "asset_id": row.target_asset_id,
            "status": "PENDING",
            "error": None,
            "executed_at": None,
        }
        try:
            self.client.update_asset(row.target_asset_id, row.payload)
            result["status"] = "SUCCESS"
        except (KontentApiError, requests.RequestException) as e:
            result["status"] = "FAILED"
            result["error"] = str(e)

        result["executed_at"] = datetime.now(timezone.utc).isoformat()
        return result

    def apply_rows(self, rows: list) -> dict:
        """Update every row; one failure never blocks the rest."""
        start = datetime.now(timezone.utc)
        operation_results = []

        for row in rows:
            result = self.update_row(row)
            operation_results.append(result)
            if result["status"] == "SUCCESS":
                print(f'  [OK] Successfully updated asset "{row.codename}"')
            else:
                print(f'  [FAILED] Failed to update asset "{row.codename}": {result["error"]}')

        end = datetime.now(timezone.utc)
        by_status = {}
        for r in operation_results:
            by_status[r["status"]] = by_status.get(r["status"], 0) + 1

        return {
            "target_env_id": self.client.env_id,
            "start_utc": start.isoformat(),
            "end_utc": end.isoformat(),
            "duration_seconds": (end - start).total_seconds(),
            "operation_results": operation_results,
            "summary": {
                "total_operations": len(operation_results),
                "by_status": by_status,
            },
        }


# =============================================================================
# RESULTS WRITER
# =============================================================================


class ResultsWriter:
    """Writes commit results next to the report."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def write_results(self, results: dict) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        json_path = self.output_dir / RESULTS_FILENAME
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(results, f, indent=2)
        return json_path
