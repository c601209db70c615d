"""Provide global constants for the project."""
from pathlib import Path
from dotenv import dotenv_values
import logging

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_ROOT = Path(__file__).resolve().parent

DOTENV_FILE = Path(".env")
DOTENV_FILE_PATH = (PROJECT_ROOT / DOTENV_FILE).resolve()

_ENV = dotenv_values(DOTENV_FILE_PATH)

DB_FILE = Path(_ENV.get("PROMPT_BUILDER_DB_FILE") or "promptgen.db")

DATA_DIR = Path("data")
DB_DIR = Path("db")
BACKUPS_DIR = Path(_ENV.get("PROMPT_BUILDER_BACKUP_DIR") or "backups")
LOGS_DIR = Path("logs")

DATA_PATH = (PROJECT_ROOT / DATA_DIR).resolve()
DB_PATH = (DATA_PATH / DB_DIR).resolve()
BACKUPS_PATH = (DATA_PATH / BACKUPS_DIR).resolve()
LOGS_PATH = (DATA_PATH / LOGS_DIR).resolve()

# Schema scripts ship with the package, not with the data directory
MIGRATIONS_PATH = (PACKAGE_ROOT / "db" / "migrations").resolve()

# Ensure folders are created if not existing
DATA_PATH.mkdir(exist_ok=True)
DB_PATH.mkdir(exist_ok=True)
BACKUPS_PATH.mkdir(parents=True, exist_ok=True)
LOGS_PATH.mkdir(exist_ok=True)

DB_FILE_PATH = (DB_PATH / DB_FILE).resolve()

LOG_LEVEL = (_ENV.get("LOG_LEVEL") or "INFO").upper()

LOG_FILE = Path("application.log")
LOG_FILE_PATH = (LOGS_PATH / LOG_FILE).resolve()

MAX_BACKUPS = int(_ENV.get("MAX_BACKUPS") or 3)

API_HOST = _ENV.get("API_HOST") or "127.0.0.1"
API_PORT = int(_ENV.get("API_PORT") or 3000)

# -------------------------
# Domain constants
# -------------------------

DEFAULT_PROJECT_ID = 1
DEFAULT_PROJECT_NAME = "Default Project"
DEFAULT_PROJECT_DESCRIPTION = "Default project containing starter components"

COMPONENT_TYPE_KEYS = (
    "role",
    "task",
    "job",
    "audiencePro",
    "audienceSilly",
    "format",
    "tone",
    "length",
    "pov",
    "context",
    "constraints",
)

CONTENT_BLOCK_TYPES = (
    "userOutline",
    "finalPrompt",
    "articleWorkspace",
    "textTransformerInput",
    "textTransformerOutput",
)

# (set_key, display_name, is_active)
DEFAULT_PROMPT_SETS = (
    ("custom_build", "Custom Build", True),
    ("blog_post", "Blog Post", False),
)

DEFAULT_SETTINGS = {
    "text_transformer_active_action": "analyze",
    "text_transformer_options": {
        "rewrite": {"activeOption": "casual"},
        "analyze": {"activeOption": "proofread"},
    },
    "ui_settings": {},
}


def configure_logging():
    root = logging.getLogger()
    if root.handlers:
        return

    from logging.handlers import RotatingFileHandler

    # console/basic config
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # file handler
    file_handler = RotatingFileHandler(
        LOG_FILE_PATH,
        maxBytes=5 * 1024 * 1024,  # 5 MB per file
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def main():
    """Print global constants."""
    files_and_paths = {"PROJECT_ROOT": PROJECT_ROOT,
                       "DATA_DIR": DATA_DIR,
                       "DB_DIR": DB_DIR,
                       "DATA_PATH": DATA_PATH,
                       "DB_FILE": DB_FILE,
                       "DB_PATH": DB_PATH,
                       "DB_FILE_PATH": DB_FILE_PATH,
                       "BACKUPS_PATH": BACKUPS_PATH,
                       "MIGRATIONS_PATH": MIGRATIONS_PATH,
                       "LOGS_PATH": LOGS_PATH,
                       "LOG_FILE_PATH": LOG_FILE_PATH,
                       }

    print("Current file and path resolutions:")
    print("----------------------------------")
    for label, file_path in files_and_paths.items():
        print(f"{label}: {file_path}")

    print("\nRuntime settings:")
    print("-----------------")
    print(f"LOG_LEVEL: {LOG_LEVEL}")
    print(f"MAX_BACKUPS: {MAX_BACKUPS}")
    print(f"API: {API_HOST}:{API_PORT}")


if __name__ == "__main__":
    main()
