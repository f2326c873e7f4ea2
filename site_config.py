"""Site configuration: title, logo, theme palette and admin credentials."""

import colorsys
import copy
import logging
import re
from pathlib import Path

import yaml

import settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "title": "25/26 SUB-19",
    "logoUrl": "https://i.ytimg.com/vi/iW63bf13MMs/hqdefault.jpg",
    "colors": {
        "background": "0 0% 0%",
        "foreground": "0 0% 100%",
        "primary": "49 97% 51%",
        "primaryForeground": "0 0% 0%",
        "secondary": "0 0% 12%",
        "secondaryForeground": "0 0% 100%",
        "border": "0 0% 20%",
        "input": "0 0% 20%",
        "ring": "49 97% 51%",
    },
}

# palette slot -> CSS custom property
COLOR_SLOTS = {
    "background": "background",
    "foreground": "foreground",
    "primary": "primary",
    "primaryForeground": "primary-foreground",
    "secondary": "secondary",
    "secondaryForeground": "secondary-foreground",
    "accent": "accent",
    "accentForeground": "accent-foreground",
    "border": "border",
    "input": "input",
    "ring": "ring",
}

_HSL_TOKENS_RE = re.compile(r"\d+\s+\d+%\s+\d+%")


def read_config_file(path: Path | None = None) -> dict | None:
    """Raw config document, or None when missing/unreadable. YAML also reads JSON."""
    path = Path(path or settings.CONFIG_PATH)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug(f"No site config at {path}")
        return None
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Site config unreadable ({path}): {e}")
        return None
    return data if isinstance(data, dict) else None


def load_site_config(path: Path | None = None) -> dict:
    """Public site config merged over the built-in defaults."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    raw = read_config_file(path)
    if not raw:
        return cfg

    for key in ("title", "logoUrl"):
        if isinstance(raw.get(key), str):
            cfg[key] = raw[key]

    colors = raw.get("colors")
    if isinstance(colors, dict):
        for slot in COLOR_SLOTS:
            value = colors.get(slot)
            if isinstance(value, str) and value.strip():
                cfg["colors"][slot] = value.strip()
    return cfg


def is_hsl_tokens(value: str) -> bool:
    return bool(_HSL_TOKENS_RE.search(value))


def hex_to_hsl_tokens(value: str) -> str | None:
    """'#ffcc00' / '#fc0' -> 'H S% L%'. None if it isn't a hex colour."""
    norm = value.strip().lstrip("#")
    if len(norm) == 3:
        norm = "".join(c * 2 for c in norm)
    if len(norm) != 6:
        return None
    try:
        r, g, b = (int(norm[i:i + 2], 16) / 255 for i in (0, 2, 4))
    except ValueError:
        return None
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return f"{round(h * 360)} {round(s * 100)}% {round(l * 100)}%"


def theme_variables(colors: dict | None) -> dict[str, str]:
    """CSS custom properties for the palette, e.g. {"--primary": "49 97% 51%"}."""
    out: dict[str, str] = {}
    for slot, css_name in COLOR_SLOTS.items():
        value = (colors or {}).get(slot)
        if not value:
            continue
        if not is_hsl_tokens(value):
            value = hex_to_hsl_tokens(value) or value
        out[f"--{css_name}"] = value
    return out


def get_admin_config(path: Path | None = None) -> dict | None:
    """Admin credential block, or None if it isn't fully configured."""
    raw = read_config_file(path)
    admin = (raw or {}).get("admin")
    if not isinstance(admin, dict):
        return None
    if not admin.get("username") or not admin.get("passwordHash") or not admin.get("passwordSalt"):
        return None
    params = admin.get("scryptParams")
    return {
        "username": str(admin["username"]),
        "password_hash": str(admin["passwordHash"]),
        "password_salt": str(admin["passwordSalt"]),
        "scrypt_params": params if isinstance(params, dict) else None,
        "verify_videos": bool(admin.get("verifyVideos", False)),
    }
