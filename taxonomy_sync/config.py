"""
Run configuration.

Built exactly once by the CLI from the process environment (after .env
loading) and passed explicitly to every phase. Nothing else in the package
reads os.environ.

Required:
    SOURCE_ENV_ID, SOURCE_API_KEY, TARGET_ENV_ID, TARGET_API_KEY

Optional:
    KONTENT_MANAGEMENT_API_URL   (default: https://manage.kontent.ai/v2)
    KONTENT_APP_URL              (default: https://app.kontent.ai)
    RESULTS_DIR                  (default: Results)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

# =============================================================================
# CONFIGURATION
# =============================================================================

PACKAGE_DIR = Path(__file__).parent
PROJECT_ROOT = PACKAGE_DIR.parent

DEFAULT_MANAGEMENT_API_URL = "https://manage.kontent.ai/v2"
DEFAULT_APP_URL = "https://app.kontent.ai"
DEFAULT_RESULTS_DIR = "Results"

REQUIRED_VARS = [
    "SOURCE_ENV_ID",
    "SOURCE_API_KEY",
    "TARGET_ENV_ID",
    "TARGET_API_KEY",
]

# Names used by the first version of the tool's .env files
LEGACY_ALIASES = {
    "SOURCE_API_KEY": "SOURCE_MAPI_KEY",
    "TARGET_API_KEY": "TARGET_MAPI_KEY",
}


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class EnvironmentConfig:
    """One Kontent.ai environment and the key that may act on it."""

    env_id: str
    api_key: str

    def __repr__(self) -> str:
        # Keep API keys out of tracebacks and console output
        return f"EnvironmentConfig(env_id={self.env_id!r}, api_key='***')"


@dataclass(frozen=True)
class SyncConfig:
    source: EnvironmentConfig
    target: EnvironmentConfig
    management_api_url: str = DEFAULT_MANAGEMENT_API_URL
    app_url: str = DEFAULT_APP_URL
    results_dir: Path = Path(DEFAULT_RESULTS_DIR)


# =============================================================================
# CREDENTIAL LOADING
# =============================================================================


def load_env(search_paths: Optional[list] = None) -> Optional[Path]:
    """Load environment variables from the first .env file found."""
    if search_paths is None:
        search_paths = [
            Path.cwd() / ".env",
            PROJECT_ROOT / ".env",
        ]
    for env_path in search_paths:
        env_path = Path(env_path)
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _lookup(environ: Mapping[str, str], name: str) -> str:
    value = (environ.get(name) or "").strip()
    if not value and name in LEGACY_ALIASES:
        value = (environ.get(LEGACY_ALIASES[name]) or "").strip()
    return value


def load_config(environ: Mapping[str, str], results_dir: Optional[Path] = None) -> SyncConfig:
    """
    Build the immutable run configuration.

    Args:
        environ: Mapping to read variables from (normally os.environ)
        results_dir: CLI override for the report/results directory

    Raises:
        ConfigError: if any required variable is missing or empty
    """
    values = {name: _lookup(environ, name) for name in REQUIRED_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(
            "Missing required configuration: " + ", ".join(missing) + ". "
            "Set SOURCE_ENV_ID, SOURCE_API_KEY, TARGET_ENV_ID and TARGET_API_KEY "
            "in your environment or .env file."
        )

    if results_dir is None:
        results_dir = Path(environ.get("RESULTS_DIR") or DEFAULT_RESULTS_DIR)

    return SyncConfig(
        source=EnvironmentConfig(values["SOURCE_ENV_ID"], values["SOURCE_API_KEY"]),
        target=EnvironmentConfig(values["TARGET_ENV_ID"], values["TARGET_API_KEY"]),
        management_api_url=(environ.get("KONTENT_MANAGEMENT_API_URL") or DEFAULT_MANAGEMENT_API_URL).rstrip("/"),
        app_url=(environ.get("KONTENT_APP_URL") or DEFAULT_APP_URL).rstrip("/"),
        results_dir=Path(results_dir),
    )
