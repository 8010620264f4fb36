import copy
import json
import os
from pathlib import Path
from typing import Dict, Any

from magicl10n.language_codes import get_target_language_codes
from magicl10n.logger import get_logger

logger = get_logger(__name__)

# The language every other language is translated FROM
BASE_LANGUAGE_CODE = "en"

# Batch file layout on object storage
SOURCE_BATCH_FILENAME = "sourcebatch.html"
BATCH_FILES_DIR = "batchFiles"
PACKAGES_DIR = "packages_orig"
DOWNLOADS_DIR = "downloads"
SUBMISSION_CONTEXT_FILENAME = "context.json"

# Records inside a batch document are split on this token. It is wrapped in a
# no-translate span so the translator passes it through untouched.
BATCH_NEWLINE_SEPARATOR = '<span translate="no">SEPARATOR</span>'

# Master job states reported to callers
JOB_PROCESSING = "PROCESSING"
JOB_COMPLETE = "COMPLETE"

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = Path(os.environ.get("MAGICL10N_CONFIG_DIR", BASE_DIR / "config"))
CONFIG_FILE = CONFIG_DIR / "config.json"

# Default configuration template
DEFAULT_CONFIG = {
    "aws": {
        "region": "us-east-1",
        "max_retries": 5,
        "s3_api_version": "2006-03-01",
    },
    "bucket": "",
    "role_arn": "",
    "ledger": {
        "backend": "dynamodb",  # dynamodb|sqlite
        "table_name": "FoundryMagicL10n",
    },
    "max_running_translations": 1,
    "max_package_bytes": 8388608,
    "http_timeout": 5,
    "download_url_expiry": 604800,
    # Translation service codes, see language_codes.TARGET_LANGUAGES
    "target_languages": [
        "ar", "ca", "zh", "zh-TW", "cs", "fr", "de", "it",
        "ja", "ko", "pl", "pt", "ru", "es", "sv",
    ],
    "log_mode": "info",
}

# Environment variable -> config path
ENV_OVERRIDES = {
    "BUCKET": ("bucket",),
    "ROLE_ARN": ("role_arn",),
    "AWS_REGION": ("aws", "region"),
    "MAGICL10N_LEDGER": ("ledger", "backend"),
    "MAGICL10N_TABLE": ("ledger", "table_name"),
    "MAGICL10N_LOG_MODE": ("log_mode",),
}


def ensure_config_directory():
    """Ensure the config directory exists."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Config directory ensured: {CONFIG_DIR}")


def create_default_config():
    """Create the default config.json file."""
    ensure_config_directory()
    with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {CONFIG_FILE}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, path in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        node = config
        for key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1]] = value
    return config


def load_config() -> Dict[str, Any]:
    """
    Load the configuration.

    Defaults are overlaid with config/config.json (when present) and then with
    environment variables, which win.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
            if isinstance(file_config, dict):
                _deep_merge(config, file_config)
            else:
                logger.warning(f"Ignoring non-object config file: {CONFIG_FILE}")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file {CONFIG_FILE}: {e}")
            logger.warning("Using default configuration")

    return _apply_env_overrides(config)


def initialize_app(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Initialize the application.

    Loads configuration and, when the sqlite ledger backend is selected,
    makes sure the local database schema exists.
    """
    logger.info("Initializing application...")
    config = config or load_config()

    if config.get("ledger", {}).get("backend") == "sqlite":
        from magicl10n.core.schema import initialize_database
        initialize_database()
        logger.info("Local job ledger database initialized")

    unknown = [code for code in config.get("target_languages", []) if code not in get_target_language_codes()]
    if unknown:
        logger.warning(f"Target languages without a lookup entry will fail submission: {unknown}")

    if not config.get("bucket"):
        logger.warning("No storage bucket configured; set BUCKET or 'bucket' in config.json")

    logger.info("Application initialization complete")
    return config
