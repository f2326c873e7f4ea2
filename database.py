# Clip storage: one row per raw playlist record, in playlist order
import json
import logging
from pathlib import Path

import aiosqlite

import settings
from helpers import extract_records


logger = logging.getLogger(__name__)


async def get_db():
	async with aiosqlite.connect(settings.DB_PATH) as db:
		db.row_factory = aiosqlite.Row
		yield db


async def init_db(db_path: Path | None = None, seed_path: Path | None = None) -> int:
	"""Create the clip table and import the seed playlist into an empty database."""
	db_path = Path(db_path or settings.DB_PATH)
	seed_path = Path(seed_path or settings.SEED_PLAYLIST_PATH)
	db_path.parent.mkdir(parents=True, exist_ok=True)

	async with aiosqlite.connect(db_path) as db:
		await db.execute("""
		CREATE TABLE IF NOT EXISTS clip (
			id INTEGER PRIMARY KEY AUTOINCREMENT,
			data TEXT NOT NULL
		)
		""")
		await db.commit()

		cur = await db.execute("SELECT COUNT(*) FROM clip")
		(count,) = await cur.fetchone()
		if count == 0 and seed_path.is_file():
			try:
				with open(seed_path, "r", encoding="utf-8") as f:
					records = extract_records(json.load(f))
			except (OSError, json.JSONDecodeError) as e:
				logger.error(f"Seed playlist unreadable ({seed_path}): {e}")
				records = []
			await db.executemany(
				"INSERT INTO clip (data) VALUES (?)",
				[(json.dumps(r, ensure_ascii=False),) for r in records if isinstance(r, dict)],
			)
			await db.commit()
			cur = await db.execute("SELECT COUNT(*) FROM clip")
			(count,) = await cur.fetchone()
			logger.info(f"Imported {count} clips from {seed_path}")
		return count


def _decode(row) -> dict:
	try:
		data = json.loads(row["data"])
	except (TypeError, ValueError):
		return {}
	return data if isinstance(data, dict) else {}


async def read_records(db: aiosqlite.Connection) -> list[dict]:
	cur = await db.execute("SELECT id, data FROM clip ORDER BY id")
	return [_decode(r) for r in await cur.fetchall()]


async def row_id_at(db: aiosqlite.Connection, idx: int) -> int | None:
	"""Row id of the record at list position idx, None past the end."""
	cur = await db.execute("SELECT id FROM clip ORDER BY id LIMIT 1 OFFSET ?", (idx,))
	row = await cur.fetchone()
	return row["id"] if row else None


async def load_records(db_path: Path | None = None) -> list[dict]:
	"""One-shot read for startup and reloads; any failure is an empty list."""
	try:
		async with aiosqlite.connect(Path(db_path or settings.DB_PATH)) as db:
			db.row_factory = aiosqlite.Row
			return await read_records(db)
	except Exception:
		logger.exception("Failed to read playlist from database")
		return []
