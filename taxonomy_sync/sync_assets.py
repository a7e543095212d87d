#!/usr/bin/env python3
"""
Asset Taxonomy Sync

Restores taxonomy term links on assets in a TARGET environment from the
matching assets in a SOURCE environment, pairing assets and terms by
codename.

Usage:
    taxonomy-sync                          # fetch, report, confirm, apply
    taxonomy-sync --dry-run                # fetch and report only
    taxonomy-sync --no-browser             # don't open the report
    taxonomy-sync --element-map map.json   # explicit source -> target element ids
    taxonomy-sync --results-dir out/       # report/results location (default: Results)

Environment (.env supported):
    SOURCE_ENV_ID, SOURCE_API_KEY, TARGET_ENV_ID, TARGET_API_KEY

Exit codes:
    0  completed, dry run, nothing to do, or declined at the prompt
    1  missing configuration or any fatal error
"""

import argparse
import os
import sys
from pathlib import Path

import requests

from taxonomy_sync.apply.apply_changes import AssetUpdater, ResultsWriter, confirm_apply
from taxonomy_sync.config import ConfigError, SyncConfig, load_config, load_env
from taxonomy_sync.dump.fetch_state import KontentApiError, KontentClient, fetch_environment_state
from taxonomy_sync.plan.remap_assets import ElementMapping, ElementMappingError, RemapPlanner
from taxonomy_sync.plan.term_index import TermIndex, build_term_id_map, flatten_terms
from taxonomy_sync.report.generate_report import open_report, render_report, write_report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Sync asset taxonomy terms from a source to a target Kontent.ai environment"
    )
    parser.add_argument("--results-dir", help="Directory for the HTML report and results file")
    parser.add_argument("--element-map", help="JSON file mapping source element ids to target element ids")
    parser.add_argument("--no-browser", action="store_true", help="Do not open the report in a browser")
    parser.add_argument("--dry-run", action="store_true", help="Generate the report only, never update assets")
    parser.add_argument("--yes", action="store_true", help="Answer yes at the confirmation prompt")
    return parser.parse_args(argv)


def run(config: SyncConfig, args, prompt_fn=None, open_fn=open_report) -> int:
    """Full pipeline. Fatal errors propagate to main()."""
    print("=" * 70)
    print("ASSET TAXONOMY SYNC")
    print("=" * 70)
    print(f"Source environment: {config.source.env_id}")
    print(f"Target environment: {config.target.env_id}")
    if args.dry_run:
        print("Running in DRY_RUN mode (no asset updates)")
    print()

    # Phase A: fetch
    source_client = KontentClient(config.source, config.management_api_url)
    target_client = KontentClient(config.target, config.management_api_url)
    source_state = fetch_environment_state(source_client, "source")
    target_state = fetch_environment_state(target_client, "target")
    print()

    # Phase B: plan
    print("Building term identity map...")
    source_index = TermIndex(flatten_terms(source_state["taxonomies"]))
    target_index = TermIndex(flatten_terms(target_state["taxonomies"]))
    term_id_map = build_term_id_map(source_index.terms, target_index.terms)
    print(f"  [OK] {len(source_index)} source terms, {len(target_index)} target terms")
    print(f"  [OK] {len(term_id_map)} source terms matched by codename")

    if args.element_map:
        element_mapping = ElementMapping.from_file(Path(args.element_map))
    else:
        element_mapping = ElementMapping.from_assets(source_state["assets"])
    element_mapping.validate(source_state["assets"], target_state["assets"])
    origin = "derived from source assets" if element_mapping.derived else f"loaded from {args.element_map}"
    print(f"  [OK] {len(element_mapping)} taxonomy elements mapped ({origin})")
    print()

    print("Remapping asset taxonomies...")
    planner = RemapPlanner(
        source_state["assets"],
        target_state["assets"],
        source_index,
        target_index,
        term_id_map,
        element_mapping,
    )
    rows = planner.build_rows()
    print(f"  [OK] {len(rows)} assets to update")
    print(f"  [OK] {len(planner.unchanged_assets)} paired assets already up to date")
    if planner.unpaired_assets:
        print(f"  [WARN] {len(planner.unpaired_assets)} source assets have no target counterpart")
    print()

    # Phase C: report
    report_html = render_report(rows, config.source.env_id, config.target.env_id, app_url=config.app_url)
    report_path = write_report(report_html, config.results_dir)
    print(f"HTML report generated: {report_path}")
    if not args.no_browser:
        open_fn(report_path)
    print()

    if not rows:
        print("No assets require a taxonomy update. Nothing to apply.")
        return 0

    if args.dry_run:
        print("[DRY RUN] No assets were updated. Run without --dry-run to apply.")
        return 0

    # Phase D: confirm + apply
    if args.yes:
        print("Confirmation pre-answered with --yes.")
    elif not confirm_apply(prompt_fn):
        print("Aborted by user. No assets were updated.")
        return 0

    print()
    print(f"Updating {len(rows)} assets in target environment...")
    results = AssetUpdater(target_client).apply_rows(rows)
    results_path = ResultsWriter(config.results_dir).write_results(results)

    print()
    print("=" * 70)
    print("EXECUTION SUMMARY")
    print("=" * 70)
    summary = results["summary"]
    print(f"Total operations: {summary['total_operations']}")
    for status, count in summary["by_status"].items():
        print(f"  {status}: {count}")
    print(f"Results: {results_path}")
    print()
    print("Done.")
    return 0


def main(argv=None, environ=None):
    args = parse_args(argv)

    if environ is None:
        load_env()
        environ = os.environ

    try:
        config = load_config(environ, results_dir=Path(args.results_dir) if args.results_dir else None)
    except ConfigError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    try:
        exit_code = run(config, args)
    except ElementMappingError as e:
        print(f"\nFATAL: {e}")
        sys.exit(1)
    except (KontentApiError, requests.RequestException) as e:
        print(f"\nFATAL: Remote API request failed: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\nFATAL: Unexpected error: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
