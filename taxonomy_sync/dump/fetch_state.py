#!/usr/bin/env python3
"""
Phase A: Environment State Fetch

Read-only capture of assets and taxonomy groups from one Kontent.ai
environment. The only write in the whole tool, update_asset(), lives on the
same client so that every request for an environment carries that
environment's key and no other.

Any non-2xx response raises KontentApiError. Fetch failures are fatal to the
run; the caller does not retry.
"""

from typing import Optional

import requests

from taxonomy_sync.config import EnvironmentConfig, DEFAULT_MANAGEMENT_API_URL

# =============================================================================
# CONFIGURATION
# =============================================================================

REQUEST_TIMEOUT = 60
CONTINUATION_HEADER = "x-continuation"


class KontentApiError(Exception):
    """Raised on any non-success response from the Management API."""

    def __init__(self, status_code: int, url: str, body: str, action: str = "request"):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"Failed to {action} {url}: {status_code}\n{body}")


# =============================================================================
# KONTENT MANAGEMENT API CLIENT
# =============================================================================


class KontentClient:
    """Minimal Management API client bound to a single environment."""

    def __init__(self, environment: EnvironmentConfig, base_url: str = DEFAULT_MANAGEMENT_API_URL):
        self.env_id = environment.env_id
        self._api_key = environment.api_key
        self.base_url = f"{base_url.rstrip('/')}/projects/{self.env_id}"

    def _headers(self, continuation: Optional[str] = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if continuation:
            headers[CONTINUATION_HEADER] = continuation
        return headers

    def _list_all(self, path: str, key: str, params: Optional[dict] = None) -> list:
        """GET a listing endpoint and return all records (handles pagination)."""
        url = f"{self.base_url}/{path}"
        all_records = []
        continuation = None

        while True:
            response = requests.get(
                url,
                headers=self._headers(continuation),
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
            if response.status_code != 200:
                raise KontentApiError(response.status_code, url, response.text, action="fetch")

            data = response.json()
            all_records.extend(data.get(key) or [])

            pagination = data.get("pagination") or {}
            continuation = pagination.get("continuation_token")
            if not continuation:
                break

        return all_records

    def list_assets(self) -> list:
        """All assets with their taxonomy elements expanded."""
        return self._list_all("assets", "assets", params={"depth": "all"})

    def list_taxonomies(self) -> list:
        """All taxonomy groups with their nested term trees."""
        return self._list_all("taxonomies", "taxonomies")

    def update_asset(self, asset_id: str, payload: dict) -> dict:
        """Replace an asset (PUT) with the given full representation."""
        url = f"{self.base_url}/assets/{asset_id}"
        response = requests.put(
            url,
            headers=self._headers(),
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code not in (200, 201):
            raise KontentApiError(
                response.status_code, url, response.text, action=f"update asset {asset_id} at"
            )
        return response.json()


# =============================================================================
# STATE FETCH
# =============================================================================


def fetch_environment_state(client: KontentClient, label: str) -> dict:
    """
    Fetch assets and taxonomies for one environment.

    Returns:
        {"env_id": ..., "assets": [...], "taxonomies": [...]}
    """
    print(f"Fetching assets and taxonomies from {label} environment ({client.env_id})...")
    assets = client.list_assets()
    print(f"  [OK] {len(assets)} assets")
    taxonomies = client.list_taxonomies()
    print(f"  [OK] {len(taxonomies)} taxonomy groups")
    return {
        "env_id": client.env_id,
        "assets": assets,
        "taxonomies": taxonomies,
    }
