"""Shared builders for Management API shaped test data."""

import pytest


def make_term(term_id, codename, name=None, terms=None):
    return {
        "id": term_id,
        "codename": codename,
        "name": name or codename.replace("-", " ").title(),
        "terms": terms or [],
    }


def make_group(codename, terms):
    return {"id": f"group-{codename}", "codename": codename, "name": codename, "terms": terms}


def make_asset(codename, elements=None, asset_id=None, url=None, **extra):
    """elements: {element_id: [term_id, ...]} in insertion order."""
    asset = {
        "id": asset_id or f"id-{codename}",
        "codename": codename,
        "url": url or f"https://assets.example.com/{codename}.jpg",
        "title": codename,
        "elements": [
            {"element": {"id": element_id}, "value": [{"id": t} for t in term_ids]}
            for element_id, term_ids in (elements or {}).items()
        ],
    }
    asset.update(extra)
    return asset


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json = json_data if json_data is not None else {}
        self.text = text

    def json(self):
        return self._json


@pytest.fixture
def source_taxonomies():
    return [
        make_group("colors", [
            make_term("s1", "red", "Red"),
            make_term("s3", "blue", "Blue", terms=[make_term("s4", "navy", "Navy")]),
        ]),
        make_group("legacy", [make_term("s2", "legacy-only", "Legacy Only")]),
    ]


@pytest.fixture
def target_taxonomies():
    return [
        make_group("colors", [
            make_term("t1", "red", "Red"),
            make_term("t3", "blue", "Blue", terms=[make_term("t4", "navy", "Navy")]),
        ]),
    ]
