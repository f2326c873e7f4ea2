"""
Runtime settings for the highlights player.

Every value can be overridden from the environment so the same tree runs
locally, in a container, and under tests.
"""
import os
from pathlib import Path

cwd = Path(__file__).parent

# Paths

DATA_ROOT_PATH = Path(os.environ.get("HIGHLIGHTS_DATA_ROOT", cwd / "public"))
DB_PATH = Path(os.environ.get("HIGHLIGHTS_DB_PATH", cwd / ".database" / "database.db"))

# Site config (title, logo, colours, admin credentials). YAML or JSON.
CONFIG_PATH = Path(os.environ.get("HIGHLIGHTS_CONFIG_PATH", DATA_ROOT_PATH / "config.json"))

# Imported once into an empty database
SEED_PLAYLIST_PATH = Path(os.environ.get("HIGHLIGHTS_SEED_PLAYLIST", DATA_ROOT_PATH / "playlist.json"))

LOGGER_CONFIG_PATH = Path(os.environ.get("HIGHLIGHTS_LOGGER_CONFIG", cwd / "logger_config.yaml"))

# Playback timing

# Advance this long after the player reports it started, even without "ended"
WATCHDOG_SECONDS = float(os.environ.get("HIGHLIGHTS_WATCHDOG_SECONDS", 10.0))

# Black cover over the player at the start of every clip
COVER_SECONDS = float(os.environ.get("HIGHLIGHTS_COVER_SECONDS", 1.2))
