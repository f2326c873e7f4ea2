# Helper functions for turning raw playlist records into playable items
import math
import re
from dataclasses import dataclass, asdict
from typing import Any
from urllib.parse import urlparse, parse_qs

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError


WATCH_URL = "https://www.youtube.com/watch?v={}"
DEFAULT_COMPETITION = "Jogo de Treino"

_BARE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{6,}$")
_COLON_TIME_RE = re.compile(r"^([0-9]{1,2}):([0-9]{2})(?::([0-9]{2}))?$")
_COMPOUND_TIME_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$", re.IGNORECASE)

# Source records come from spreadsheets exported in Portuguese as well as
# from the admin form, so every field has several possible names.
PLAYER_NAME_KEYS = ("Nome do jogador", "playerName", "nome")
PLAYER_NUMBER_KEYS = ("Numero do jogador", "playerNumber", "numero")
PHOTO_KEYS = ("link foto jogador", "playerPhoto", "foto", "fotoUrl")
VIDEO_KEYS = ("link video", "video", "videoUrl", "id")
GAME_KEYS = ("jogo", "evento")
COMPETITION_KEYS = ("campeonato",)
TITLE_KEYS = ("title", "titulo", "nomeLance")
START_KEYS = ("tempo", "início", "inicio", "start", "startAt", "start_at", "startSeconds", "startTime")


@dataclass(frozen=True)
class PlaylistItem:
	id: str
	player_name: str
	player_number: int | float
	photo: str
	video_url: str
	game: str
	competition: str
	title: str
	start_at: int

	def to_dict(self) -> dict:
		return asdict(self)


def _first(record: dict, keys: tuple[str, ...], default: Any = None) -> Any:
	for key in keys:
		value = record.get(key)
		if value is not None:
			return value
	return default


def _to_number(value: Any) -> float | None:
	if isinstance(value, bool):
		return None
	try:
		if isinstance(value, (int, float)):
			return float(value)
		return float(str(value).strip())
	except (TypeError, ValueError, OverflowError):
		# ints past float range count as unparseable
		return None


def parse_start_time(value: Any) -> int:
	"""
	Parse a start offset into whole seconds.
	Accepts numbers, "mm:ss", "hh:mm:ss", "1h2m3s" style strings and bare
	numeric strings. Anything else is 0; results are never negative.
	"""
	if value is None or isinstance(value, bool):
		return 0
	if isinstance(value, int):
		return max(0, value)
	if isinstance(value, float):
		if not math.isfinite(value):
			return 0
		return max(0, math.floor(value))

	text = str(value).strip()
	if not text:
		return 0

	m = _COLON_TIME_RE.match(text)
	if m:
		if m.group(3) is not None:
			h, mins, s = int(m.group(1)), int(m.group(2)), int(m.group(3))
		else:
			h, mins, s = 0, int(m.group(1)), int(m.group(2))
		return max(0, h * 3600 + mins * 60 + s)

	m = _COMPOUND_TIME_RE.match(text)
	if m:
		h, mins, s = (int(g or 0) for g in m.groups())
		return max(0, h * 3600 + mins * 60 + s)

	n = _to_number(text)
	if n is None or not math.isfinite(n):
		return 0
	return max(0, math.floor(n))


def is_bare_video_id(value: str) -> bool:
	return bool(_BARE_ID_RE.match(value))


def resolve_video_url(value: Any) -> str:
	"""Bare YouTube ids become watch URLs; everything else is kept as-is."""
	text = "" if value is None else str(value)
	if is_bare_video_id(text):
		return WATCH_URL.format(text)
	return text


def start_from_url(url: str) -> int:
	try:
		parsed = urlparse(url)
		if not parsed.scheme or not parsed.netloc:
			return 0
		qs = parse_qs(parsed.query)
		t = (qs.get("t") or qs.get("start") or [None])[0]
		return parse_start_time(t) if t else 0
	except ValueError:
		return 0


def extract_youtube_id(url: str) -> str | None:
	if not url:
		return None
	try:
		parsed = urlparse(url)
	except ValueError:
		parsed = None

	if parsed is None or not parsed.scheme or not parsed.netloc:
		# Not a URL at all; may already be an id
		return url if is_bare_video_id(url) else None

	host = parsed.hostname or ""
	if host == "youtu.be":
		return parsed.path.lstrip("/") or None
	if "youtube.com" in host:
		v = parse_qs(parsed.query).get("v", [None])[0]
		if v:
			return v
		paths = [p for p in parsed.path.split("/") if p]
		if "embed" in paths:
			idx = paths.index("embed")
			if idx + 1 < len(paths):
				return paths[idx + 1]
	return None


def normalize_item(record: Any, idx: int) -> PlaylistItem:
	"""Build a PlaylistItem from one raw record. Never raises."""
	if not isinstance(record, dict):
		record = {}

	name = str(_first(record, PLAYER_NAME_KEYS, "")).strip()
	number = _to_number(_first(record, PLAYER_NUMBER_KEYS, 0))
	if number is None or not math.isfinite(number):
		number = 0
	number = int(number) if float(number).is_integer() else number

	photo = str(_first(record, PHOTO_KEYS, ""))
	video_url = resolve_video_url(_first(record, VIDEO_KEYS, ""))
	game = str(_first(record, GAME_KEYS, ""))
	competition = str(_first(record, COMPETITION_KEYS, DEFAULT_COMPETITION))
	title = str(_first(record, TITLE_KEYS, ""))

	# Prefer explicit start fields; fall back to t/start on the URL
	start_at = parse_start_time(_first(record, START_KEYS, 0))
	if not start_at:
		start_at = start_from_url(video_url)

	return PlaylistItem(
		id=f"{idx}-{name}-{number}",
		player_name=name,
		player_number=number,
		photo=photo,
		video_url=video_url,
		game=game,
		competition=competition,
		title=title,
		start_at=start_at,
	)


def extract_records(payload: Any) -> list:
	"""A playlist document is either a bare array or {"items": [...]}."""
	if isinstance(payload, list):
		return payload
	if isinstance(payload, dict) and isinstance(payload.get("items"), list):
		return payload["items"]
	return []


def normalize_playlist(payload: Any) -> list[PlaylistItem]:
	return [normalize_item(r, idx) for idx, r in enumerate(extract_records(payload))]


def check_video_accessible(url: str) -> dict:
	"""
	Confirms yt-dlp can resolve a single video (not private/deleted).
	Returns normalized video metadata.
	"""
	video_url = resolve_video_url(url)
	opts = {
		"quiet": True,
		"skip_download": True,
		"noplaylist": True,
	}

	try:
		with YoutubeDL(opts) as ydl:
			info = ydl.extract_info(video_url, download=False)

		if not info:
			raise RuntimeError("No information returned")

		if info.get("availability") == "private":
			raise RuntimeError("Video is private")

		return {
			"video_id": info.get("id") or extract_youtube_id(video_url),
			"title": info.get("title"),
			"duration": info.get("duration"),
		}
	except DownloadError as e:
		raise RuntimeError(str(e))
