"""
grouping.py

Group playlist items by player, game or competition for menu navigation.
"""
from __future__ import annotations

import re
import unicodedata
from enum import Enum
from typing import Iterable

from helpers import PlaylistItem

NO_COMPETITION = "Sem campeonato"

# Defensive reels ("Golos sofridos") always close the player list
CONCEDED_RE = re.compile(r"\bgolo(s)?\s+sofrid", re.IGNORECASE)

_GOAL_RE = re.compile(r"\bgolo\b", re.IGNORECASE)
_SAVE_RE = re.compile(r"\bdefesa\b|guarda|save", re.IGNORECASE)


class GroupKind(str, Enum):
    PLAYER = "player"
    GAME = "game"
    COMPETITION = "competition"

    @classmethod
    def _missing_(cls, value):
        aliases = {"nome": cls.PLAYER, "jogo": cls.GAME, "campeonato": cls.COMPETITION}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None

    def key_of(self, item: PlaylistItem) -> str:
        if self is GroupKind.PLAYER:
            return item.player_name
        if self is GroupKind.GAME:
            return item.game
        return item.competition


def group_by(items: Iterable[PlaylistItem], kind: GroupKind) -> dict[str, list[PlaylistItem]]:
    """Keys and items both keep first-seen order."""
    groups: dict[str, list[PlaylistItem]] = {}
    for item in items:
        groups.setdefault(kind.key_of(item), []).append(item)
    return groups


def is_conceded(key: str) -> bool:
    return bool(CONCEDED_RE.search(key))


def collation_key(value: str) -> str:
    # Accent and case insensitive, close to a "pt" base-sensitivity collator
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def ordered_groups(groups: dict[str, list[PlaylistItem]], kind: GroupKind) -> list[tuple[str, list[PlaylistItem]]]:
    entries = list(groups.items())
    if kind is not GroupKind.PLAYER:
        return entries
    return sorted(entries, key=lambda e: (is_conceded(e[0]), collation_key(e[0])))


def clip_badge(title: str) -> str | None:
    if _SAVE_RE.search(title or ""):
        return "save"
    if _GOAL_RE.search(title or ""):
        return "goal"
    return None


def competition_tree(items: Iterable[PlaylistItem]) -> dict[str, dict[str, list[PlaylistItem]]]:
    """competition -> game -> items, for the "by game" menu section."""
    tree: dict[str, dict[str, list[PlaylistItem]]] = {}
    for item in items:
        games = tree.setdefault(item.competition or NO_COMPETITION, {})
        games.setdefault(item.game, []).append(item)
    return tree
