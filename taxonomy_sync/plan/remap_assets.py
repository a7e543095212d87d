"""
Asset Remap Planner

Pairs source and target assets by codename, rewrites taxonomy element values
through the term identity map, and produces one ReportRow per asset that has
something to change. Each row carries the exact payload that will be PUT on
commit, so what the report shows is what gets written.

################################################################################
# PLANNER IS OFFLINE. NO LIVE API CALLS.
# Data anomalies (unpaired asset, missing element, unmapped term) never raise;
# they are skipped and recorded as warnings. Only an invalid element mapping
# is fatal, and that is checked before any row is built.
################################################################################
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from taxonomy_sync.plan.term_index import TermIndex


class ElementMappingError(Exception):
    """Raised when a source/target element pairing cannot be validated."""
    pass


# =============================================================================
# ELEMENT MAPPING
# =============================================================================


def collect_element_ids(assets: list) -> list:
    """Element ids observed across assets, in first-seen order."""
    seen = {}
    for asset in assets:
        for element in asset.get("elements") or []:
            element_id = (element.get("element") or {}).get("id")
            if element_id:
                seen.setdefault(element_id, None)
    return list(seen)


class ElementMapping:
    """Source taxonomy element id -> target taxonomy element id."""

    def __init__(self, mapping: dict, derived: bool = False):
        self.mapping = dict(mapping)
        self.derived = derived

    def __len__(self):
        return len(self.mapping)

    def __contains__(self, source_element_id):
        return source_element_id in self.mapping

    def target_for(self, source_element_id: str) -> Optional[str]:
        return self.mapping.get(source_element_id)

    @classmethod
    def from_assets(cls, source_assets: list) -> "ElementMapping":
        """Identity mapping over every element id seen on source assets."""
        return cls({element_id: element_id for element_id in collect_element_ids(source_assets)}, derived=True)

    @classmethod
    def from_file(cls, path: Path) -> "ElementMapping":
        """Load an explicit {source_element_id: target_element_id} JSON object."""
        path = Path(path)
        if not path.exists():
            raise ElementMappingError(f"Element map file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ElementMappingError(f"Element map file is not valid JSON: {path}: {e}") from e

        if not isinstance(data, dict) or not data:
            raise ElementMappingError(f"Element map must be a non-empty JSON object: {path}")
        for source_id, target_id in data.items():
            if not isinstance(target_id, str) or not target_id:
                raise ElementMappingError(f"Element map entry for '{source_id}' must be a non-empty string")
        return cls(data)

    def validate(self, source_assets: list, target_assets: list):
        """
        Every mapped source element must occur on some source asset, and its
        target element on some target asset. A target element may be fed by
        one source element only.
        """
        source_ids = set(collect_element_ids(source_assets))
        target_ids = set(collect_element_ids(target_assets))
        errors = []
        mapped_from = {}
        for source_id, target_id in self.mapping.items():
            if target_id in mapped_from:
                errors.append(
                    f"target element '{target_id}' is mapped from both "
                    f"'{mapped_from[target_id]}' and '{source_id}'"
                )
            else:
                mapped_from[target_id] = source_id
            if source_id not in source_ids:
                errors.append(f"source element '{source_id}' is not present on any source asset")
            if target_id not in target_ids:
                errors.append(
                    f"target element '{target_id}' (mapped from '{source_id}') "
                    "is not present on any target asset"
                )
        if errors:
            raise ElementMappingError("Element mapping validation failed:\n  " + "\n  ".join(errors))


# =============================================================================
# REPORT ROWS
# =============================================================================


@dataclass
class ElementDiff:
    source_element_id: str
    target_element_id: str
    source_terms: list
    existing_terms: list
    pending_terms: list


@dataclass
class ReportRow:
    source_asset: dict
    target_asset: dict
    element_diffs: list
    payload: dict = field(repr=False)

    @property
    def codename(self) -> str:
        return self.source_asset.get("codename", "")

    @property
    def target_asset_id(self) -> str:
        return self.target_asset["id"]


# =============================================================================
# PAIRING & VALUE REMAP
# =============================================================================


def pair_assets(source_assets: list, target_assets: list) -> list:
    """
    Pair each source asset with the target asset of the same codename.

    Returns [(source_asset, target_asset_or_None), ...] in source order.
    Exact codename equality; the first target with a codename wins.
    """
    targets_by_codename = {}
    for asset in target_assets:
        codename = asset.get("codename")
        if codename is not None:
            targets_by_codename.setdefault(codename, asset)
    return [(asset, targets_by_codename.get(asset.get("codename"))) for asset in source_assets]


def remap_values(values: list, term_id_map: dict) -> tuple:
    """
    Rewrite [{id: source_term_id}] to [{id: target_term_id}].

    Returns (remapped_values, unmapped_ids). Entries with no mapping are
    dropped, never defaulted. Entries without an id are dropped silently.
    """
    remapped = []
    unmapped = []
    for value in values or []:
        term_id = value.get("id")
        if not term_id:
            continue
        target_id = term_id_map.get(term_id)
        if target_id is None:
            unmapped.append(term_id)
            continue
        remapped.append({"id": target_id})
    return remapped, unmapped


def _value_ids(values: list) -> list:
    return [v.get("id") for v in values or []]


def _find_element(asset: dict, element_id: str) -> Optional[dict]:
    for element in asset.get("elements") or []:
        if (element.get("element") or {}).get("id") == element_id:
            return element
    return None


# =============================================================================
# PLANNER
# =============================================================================


class RemapPlanner:
    """Builds the change-set for every paired asset."""

    def __init__(
        self,
        source_assets: list,
        target_assets: list,
        source_index: TermIndex,
        target_index: TermIndex,
        term_id_map: dict,
        element_mapping: ElementMapping,
    ):
        self.source_assets = source_assets
        self.target_assets = target_assets
        self.source_index = source_index
        self.target_index = target_index
        self.term_id_map = term_id_map
        self.element_mapping = element_mapping

        self.warnings = []
        self.unpaired_assets = []
        self.unchanged_assets = []

    def warn(self, message: str):
        self.warnings.append(message)
        print(f"  [WARN] {message}")

    def build_rows(self) -> list:
        rows = []
        for source_asset, target_asset in pair_assets(self.source_assets, self.target_assets):
            codename = source_asset.get("codename")
            if target_asset is None:
                self.unpaired_assets.append(codename)
                self.warn(f'No target asset matching source codename "{codename}", skipping.')
                continue

            row = self.build_row(source_asset, target_asset)
            if row is None:
                self.unchanged_assets.append(codename)
            else:
                rows.append(row)
        return rows

    def build_row(self, source_asset: dict, target_asset: dict) -> Optional[ReportRow]:
        """Remap one asset pair. Returns None when nothing would change."""
        codename = source_asset.get("codename")
        diffs = []
        replacements = {}

        for source_element in source_asset.get("elements") or []:
            source_element_id = (source_element.get("element") or {}).get("id")
            target_element_id = self.element_mapping.target_for(source_element_id)
            if target_element_id is None:
                continue

            target_element = _find_element(target_asset, target_element_id)
            if target_element is None:
                continue

            source_values = source_element.get("value") or []
            new_values, unmapped = remap_values(source_values, self.term_id_map)
            for term_id in unmapped:
                self.warn(
                    f'Could not remap term with ID "{term_id}" for asset "{codename}", skipping this term.'
                )

            existing_values = target_element.get("value") or []
            if not new_values or _value_ids(new_values) == _value_ids(existing_values):
                continue

            replacements[target_element_id] = new_values
            diffs.append(ElementDiff(
                source_element_id=source_element_id,
                target_element_id=target_element_id,
                source_terms=self.source_index.resolve(source_values),
                existing_terms=self.target_index.resolve(existing_values),
                pending_terms=self.target_index.resolve(new_values),
            ))

        if not diffs:
            return None

        return ReportRow(
            source_asset=source_asset,
            target_asset=target_asset,
            element_diffs=diffs,
            payload=build_payload(target_asset, replacements),
        )


def build_payload(target_asset: dict, replacements: dict) -> dict:
    """
    Full replacement body for a target asset.

    Elements keep the target asset's element order; replaced elements get their
    new value list and every other element is carried over unchanged.
    """
    payload = copy.deepcopy(target_asset)
    elements = []
    for element in payload.get("elements") or []:
        element_id = (element.get("element") or {}).get("id")
        if element_id in replacements:
            element = {**element, "value": copy.deepcopy(replacements[element_id])}
        elements.append(element)
    payload["elements"] = elements
    return payload
