"""
Term Index Builder

Flattens taxonomy trees and builds the cross-environment term identity map.

Term ids are environment-local; codenames are the portable key. The identity
map is source term id -> target term id, matched on exact (case-sensitive)
codename. When the target has duplicate codenames the first term in
flattened order wins.
"""

from typing import Optional

TERM_FIELDS = ("id", "codename", "name")


def flatten_terms(taxonomy_groups: list) -> list:
    """
    Depth-first, pre-order flattening of every group's term tree.

    Group roots themselves are not included, only their terms at all depths.
    Each result keeps only id, codename and name.
    """
    result = []

    def recurse(terms):
        for term in terms or []:
            result.append({field: term.get(field) for field in TERM_FIELDS})
            recurse(term.get("terms"))

    for group in taxonomy_groups or []:
        recurse(group.get("terms"))
    return result


def build_term_id_map(source_terms: list, target_terms: list) -> dict:
    """Map source term ids to target term ids by codename (first match wins)."""
    target_by_codename = {}
    for term in target_terms:
        codename = term.get("codename")
        if codename is not None:
            target_by_codename.setdefault(codename, term["id"])

    term_id_map = {}
    for term in source_terms:
        target_id = target_by_codename.get(term.get("codename"))
        if target_id is not None:
            term_id_map[term["id"]] = target_id
    return term_id_map


class TermIndex:
    """Id lookup over one environment's flattened terms."""

    def __init__(self, terms: list):
        self.terms = terms
        self._by_id = {}
        for term in terms:
            self._by_id.setdefault(term["id"], term)

    def __len__(self):
        return len(self.terms)

    def get(self, term_id: str) -> Optional[dict]:
        return self._by_id.get(term_id)

    def resolve(self, values: list) -> list:
        """Element values -> known terms, in value order. Unknown ids are skipped."""
        resolved = []
        for value in values or []:
            term = self._by_id.get(value.get("id"))
            if term:
                resolved.append(term)
        return resolved
