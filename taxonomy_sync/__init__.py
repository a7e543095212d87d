# =============================================================================
# Asset Taxonomy Sync
# Source -> target taxonomy term remapping for Kontent.ai assets
# =============================================================================
"""
Restores per-asset taxonomy term links after an environment restore.

Pipeline phases:
- dump:   live reads of assets and taxonomies (both environments)
- plan:   term identity map + per-asset remap (no API calls)
- report: HTML preview of every pending change (no API calls)
- apply:  confirmation gate + live writes to the target environment
"""

__version__ = "1.0.0"
