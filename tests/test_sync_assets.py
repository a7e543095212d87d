"""End-to-end tests for the sync pipeline with the API client faked out."""

import json

import pytest
import requests

from taxonomy_sync import sync_assets
from taxonomy_sync.apply.apply_changes import RESULTS_FILENAME
from taxonomy_sync.config import load_config
from taxonomy_sync.dump.fetch_state import KontentApiError
from taxonomy_sync.report.generate_report import REPORT_FILENAME

from conftest import make_asset, make_group, make_term

ENVIRON = {
    "SOURCE_ENV_ID": "src-env",
    "SOURCE_API_KEY": "src-key",
    "TARGET_ENV_ID": "tgt-env",
    "TARGET_API_KEY": "tgt-key",
}


class FakeKontentClient:
    """Serves canned state per environment and records updates."""

    states = {}
    updates = []
    fail_fetch = None

    def __init__(self, environment, base_url=None):
        self.env_id = environment.env_id
        self.api_key = environment.api_key

    def list_assets(self):
        if FakeKontentClient.fail_fetch:
            raise FakeKontentClient.fail_fetch
        return self.states[self.env_id]["assets"]

    def list_taxonomies(self):
        return self.states[self.env_id]["taxonomies"]

    def update_asset(self, asset_id, payload):
        FakeKontentClient.updates.append((self.env_id, self.api_key, asset_id, payload))
        return payload


@pytest.fixture
def fake_api(monkeypatch):
    FakeKontentClient.states = {
        "src-env": {
            "assets": [
                make_asset("photo-1", {"e1": ["s1"]}),
                make_asset("photo-2", {"e1": ["s2"]}),
                make_asset("photo-orphan", {"e1": ["s1"]}),
            ],
            "taxonomies": [make_group("colors", [make_term("s1", "red"), make_term("s2", "legacy-only")])],
        },
        "tgt-env": {
            "assets": [
                make_asset("photo-1", {"e1": []}, asset_id="t-photo-1"),
                make_asset("photo-2", {"e1": []}, asset_id="t-photo-2"),
            ],
            "taxonomies": [make_group("colors", [make_term("t1", "red")])],
        },
    }
    FakeKontentClient.updates = []
    FakeKontentClient.fail_fetch = None
    monkeypatch.setattr(sync_assets, "KontentClient", FakeKontentClient)
    return FakeKontentClient


def run_pipeline(tmp_path, argv, answer="y"):
    args = sync_assets.parse_args(argv + ["--no-browser"])
    config = load_config(ENVIRON, results_dir=tmp_path / "Results")
    return sync_assets.run(config, args, prompt_fn=lambda prompt: answer)


def test_confirmed_run_updates_only_changed_assets(tmp_path, fake_api, capsys):
    exit_code = run_pipeline(tmp_path, [], answer="y")

    assert exit_code == 0
    assert len(fake_api.updates) == 1
    env_id, api_key, asset_id, payload = fake_api.updates[0]
    assert (env_id, api_key, asset_id) == ("tgt-env", "tgt-key", "t-photo-1")
    assert payload["elements"] == [{"element": {"id": "e1"}, "value": [{"id": "t1"}]}]

    report = (tmp_path / "Results" / REPORT_FILENAME).read_text(encoding="utf-8")
    assert "photo-1" in report
    assert "photo-2" not in report

    with open(tmp_path / "Results" / RESULTS_FILENAME, encoding="utf-8") as f:
        results = json.load(f)
    assert results["summary"]["by_status"] == {"SUCCESS": 1}

    out = capsys.readouterr().out
    assert 'No target asset matching source codename "photo-orphan"' in out
    assert 'Could not remap term with ID "s2" for asset "photo-2"' in out


def test_declined_run_makes_no_updates(tmp_path, fake_api, capsys):
    exit_code = run_pipeline(tmp_path, [], answer="n")

    assert exit_code == 0
    assert fake_api.updates == []
    assert (tmp_path / "Results" / REPORT_FILENAME).exists()
    assert not (tmp_path / "Results" / RESULTS_FILENAME).exists()
    assert "Aborted by user. No assets were updated." in capsys.readouterr().out


def test_dry_run_never_prompts(tmp_path, fake_api):
    args = sync_assets.parse_args(["--dry-run", "--no-browser"])
    config = load_config(ENVIRON, results_dir=tmp_path / "Results")

    def prompt(_):
        raise AssertionError("dry run must not prompt")

    assert sync_assets.run(config, args, prompt_fn=prompt) == 0
    assert fake_api.updates == []
    assert (tmp_path / "Results" / REPORT_FILENAME).exists()


def test_yes_flag_skips_prompt(tmp_path, fake_api):
    args = sync_assets.parse_args(["--yes", "--no-browser"])
    config = load_config(ENVIRON, results_dir=tmp_path / "Results")

    def prompt(_):
        raise AssertionError("--yes must not prompt")

    assert sync_assets.run(config, args, prompt_fn=prompt) == 0
    assert len(fake_api.updates) == 1


def test_nothing_to_do_skips_prompt(tmp_path, fake_api):
    fake_api.states["tgt-env"]["assets"][0]["elements"][0]["value"] = [{"id": "t1"}]

    def prompt(_):
        raise AssertionError("empty change-set must not prompt")

    args = sync_assets.parse_args(["--no-browser"])
    config = load_config(ENVIRON, results_dir=tmp_path / "Results")
    assert sync_assets.run(config, args, prompt_fn=prompt) == 0
    assert fake_api.updates == []


def test_report_is_opened_unless_disabled(tmp_path, fake_api):
    opened = []
    args = sync_assets.parse_args(["--dry-run"])
    config = load_config(ENVIRON, results_dir=tmp_path / "Results")

    sync_assets.run(config, args, open_fn=opened.append)

    assert opened == [tmp_path / "Results" / REPORT_FILENAME]


def test_main_missing_configuration_exits_before_network(monkeypatch, capsys):
    def no_network(*args, **kwargs):
        raise AssertionError("no request may be made without configuration")

    monkeypatch.setattr(requests, "get", no_network)

    with pytest.raises(SystemExit) as exc_info:
        sync_assets.main(["--no-browser"], environ={"SOURCE_ENV_ID": "src-env"})

    assert exc_info.value.code == 1
    assert "SOURCE_API_KEY" in capsys.readouterr().out


@pytest.mark.parametrize("error", [
    KontentApiError(500, "https://manage.kontent.ai/v2/projects/src-env/assets", "boom"),
    requests.ConnectionError("unreachable"),
])
def test_main_fetch_failure_is_fatal(tmp_path, fake_api, capsys, error):
    fake_api.fail_fetch = error
    environ = dict(ENVIRON, RESULTS_DIR=str(tmp_path / "Results"))

    with pytest.raises(SystemExit) as exc_info:
        sync_assets.main(["--no-browser"], environ=environ)

    assert exc_info.value.code == 1
    assert "FATAL: Remote API request failed" in capsys.readouterr().out
    assert fake_api.updates == []


def test_main_invalid_element_mapping_is_fatal(tmp_path, fake_api, capsys):
    fake_api.states["tgt-env"]["assets"] = [make_asset("photo-1", {"other": []})]
    environ = dict(ENVIRON, RESULTS_DIR=str(tmp_path / "Results"))

    with pytest.raises(SystemExit) as exc_info:
        sync_assets.main(["--no-browser"], environ=environ)

    assert exc_info.value.code == 1
    assert "Element mapping validation failed" in capsys.readouterr().out


def test_main_completes_with_exit_zero(tmp_path, fake_api, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "y")
    environ = dict(ENVIRON, RESULTS_DIR=str(tmp_path / "Results"))

    with pytest.raises(SystemExit) as exc_info:
        sync_assets.main(["--no-browser"], environ=environ)

    assert exc_info.value.code == 0
    assert len(fake_api.updates) == 1
