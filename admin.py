from typing import Annotated, Any
import json

import aiosqlite
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field, StrictInt, ValidationError

from auth import check_credentials, hash_password, require_admin
from database import get_db, load_records, read_records, row_id_at
from helpers import check_video_accessible, normalize_playlist
from site_config import get_admin_config


router = APIRouter(prefix="/api/admin", tags=["admin"])


class Clip(BaseModel):
	id: str = Field(min_length=1)  # YouTube id or URL
	startTime: Annotated[StrictInt, Field(ge=0)] | Annotated[str, Field(min_length=1)]
	playerName: str = Field(min_length=1)
	playerNumber: StrictInt = Field(ge=0)
	playerPhoto: str = Field(min_length=1)
	title: str = Field(min_length=1)
	jogo: str = Field(min_length=1)
	campeonato: str = Field(min_length=1)


class Login(BaseModel):
	username: str = Field(min_length=1)
	password: str = Field(min_length=1)


class PasswordIn(BaseModel):
	password: str = Field(min_length=1)


async def reload_playlist(app) -> int:
	"""Re-read the stored list and restart playback from it."""
	items = normalize_playlist(await load_records())
	app.state.items = items
	app.state.sequencer.set_source(items)
	return len(items)


def _parse_clip(payload: Any) -> Clip:
	try:
		return Clip.model_validate(payload)
	except ValidationError:
		raise HTTPException(status_code=400, detail="Invalid data")


async def _verify_video(clip: Clip, logger) -> None:
	admin = get_admin_config()
	if not admin or not admin["verify_videos"]:
		return
	try:
		meta = await run_in_threadpool(check_video_accessible, clip.id)
		logger.debug(f"meta for {clip.id}: {str(meta)}")
	except RuntimeError as e:
		raise HTTPException(status_code=400, detail=f"Video not accessible: {e}")


def _check_index(idx: int) -> None:
	if idx < 0:
		raise HTTPException(status_code=400, detail="Invalid index")


@router.post("/hash")
async def make_hash(body: PasswordIn):
	return await run_in_threadpool(hash_password, body.password)


@router.post("/login")
async def login(body: Login):
	admin = get_admin_config()
	if not admin:
		raise HTTPException(status_code=500, detail="Admin is not configured in the site config")
	ok = await run_in_threadpool(check_credentials, admin, body.username, body.password)
	if not ok:
		raise HTTPException(status_code=401, detail="Invalid credentials")
	return {"ok": True}


@router.get("/playlist")
async def list_clips(
	request: Request,
	_user: str = Depends(require_admin),
	db: aiosqlite.Connection = Depends(get_db),
):
	logger = request.app.state.logger
	try:
		records = await read_records(db)
		# _idx is positional and only valid until the next edit
		return {"items": [{"_idx": idx, **r} for idx, r in enumerate(records)]}
	except Exception:
		logger.exception("Error listing clips")
		raise HTTPException(status_code=500, detail="Failed to list clips")


@router.post("/playlist", status_code=201)
async def add_clip(
	request: Request,
	payload: Any = Body(...),
	_user: str = Depends(require_admin),
	db: aiosqlite.Connection = Depends(get_db),
):
	logger = request.app.state.logger
	clip = _parse_clip(payload)
	try:
		await _verify_video(clip, logger)
		await db.execute(
			"INSERT INTO clip (data) VALUES (?)",
			(json.dumps(clip.model_dump(), ensure_ascii=False),),
		)
		await db.commit()
		total = await reload_playlist(request.app)
		logger.info(f"Clip added for {clip.playerName}; {total} clips")
		return {"ok": True}
	except HTTPException:
		raise
	except Exception:
		logger.exception("Error adding clip")
		raise HTTPException(status_code=500, detail="Failed to add clip")


@router.put("/playlist/{idx}")
async def update_clip(
	idx: int,
	request: Request,
	payload: Any = Body(...),
	_user: str = Depends(require_admin),
	db: aiosqlite.Connection = Depends(get_db),
):
	logger = request.app.state.logger
	_check_index(idx)
	clip = _parse_clip(payload)
	try:
		row_id = await row_id_at(db, idx)
		if row_id is None:
			raise HTTPException(status_code=404, detail="Clip not found")
		await _verify_video(clip, logger)
		await db.execute(
			"UPDATE clip SET data = ? WHERE id = ?",
			(json.dumps(clip.model_dump(), ensure_ascii=False), row_id),
		)
		await db.commit()
		await reload_playlist(request.app)
		return {"ok": True}
	except HTTPException:
		raise
	except Exception:
		logger.exception("Error updating clip")
		raise HTTPException(status_code=500, detail="Failed to update clip")


@router.delete("/playlist/{idx}")
async def delete_clip(
	idx: int,
	request: Request,
	_user: str = Depends(require_admin),
	db: aiosqlite.Connection = Depends(get_db),
):
	logger = request.app.state.logger
	_check_index(idx)
	try:
		row_id = await row_id_at(db, idx)
		if row_id is None:
			raise HTTPException(status_code=404, detail="Clip not found")
		await db.execute("DELETE FROM clip WHERE id = ?", (row_id,))
		await db.commit()
		await reload_playlist(request.app)
		return {"ok": True}
	except HTTPException:
		raise
	except Exception:
		logger.exception("Error deleting clip")
		raise HTTPException(status_code=500, detail="Failed to delete clip")
