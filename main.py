from fastapi import FastAPI, HTTPException
from fastapi.responses import RedirectResponse
from contextlib import asynccontextmanager
from pydantic import BaseModel
from typing import Any
import yaml
import logging
import logging.config

import settings
from admin import router as admin_router, reload_playlist
from database import init_db, load_records
from grouping import GroupKind, clip_badge, competition_tree, group_by, ordered_groups
from player import AsyncioScheduler, RemotePlayerAdapter
from sequencer import Sequencer
from site_config import load_site_config, theme_variables


def init_logger() -> logging.Logger:
	try:
		with open(settings.LOGGER_CONFIG_PATH, "r") as f:
			config = yaml.safe_load(f)
		logging.config.dictConfig(config)
		logger = logging.getLogger("dev")
		logger.debug("Logger configured")
		return logger
	except Exception as e:
		logging.basicConfig(level=logging.INFO)
		logger = logging.getLogger(__name__)
		logger.error(f"Logger initialization failed: {e}")
		return logger


@asynccontextmanager
async def lifespan(app: FastAPI):
	app.state.logger = init_logger()
	logger = app.state.logger

	# Site config falls back to defaults on any problem
	app.state.site_config = load_site_config()
	logger.info(f"Site config loaded: {app.state.site_config['title']}")

	# Initialize DB
	try:
		count = await init_db()
		logger.info(f"Database ready, {count} clips")
	except Exception as e:
		logger.error(f"Database init failed: {e}")

	app.state.adapter = RemotePlayerAdapter()
	app.state.sequencer = Sequencer(app.state.adapter, AsyncioScheduler())
	app.state.items = []

	# A failed read leaves an empty list and an idle player
	await reload_playlist(app)

	yield
	logger.info("Application shutdown")


app = FastAPI(
	title="Highlights Player",
	version="0.1",
	description="Team highlight clip player and playlist admin",
	lifespan=lifespan,
)
app.include_router(admin_router)


class GroupSelection(BaseModel):
	kind: GroupKind
	value: str


class VideoSelection(BaseModel):
	id: str
	context: GroupSelection | None = None


class PlayerEvent(BaseModel):
	state: Any
	# sequence of the load command the page is playing
	sequence: int | None = None


def _item_view(item) -> dict:
	return {**item.to_dict(), "badge": clip_badge(item.title)}


@app.get("/")
async def docs():
	return RedirectResponse(url="/docs", status_code=307)


@app.get("/playlist.json")
async def raw_playlist():
	return await load_records()


@app.get("/api/playlist")
async def get_playlist():
	items = app.state.items
	return {"items": [it.to_dict() for it in items], "total": len(items)}


@app.get("/config.json")
async def site_config():
	return app.state.site_config


@app.get("/api/theme")
async def theme():
	return theme_variables(app.state.site_config.get("colors"))


@app.get("/api/groups/{kind}")
async def get_groups(kind: str):
	try:
		group_kind = GroupKind(kind)
	except ValueError:
		raise HTTPException(status_code=404, detail="Unknown group kind")
	groups = ordered_groups(group_by(app.state.items, group_kind), group_kind)
	return {
		"kind": group_kind.value,
		"groups": [
			{"key": key, "count": len(items), "items": [_item_view(it) for it in items]}
			for key, items in groups
		],
	}


@app.get("/api/menu")
async def menu():
	items = app.state.items
	players = ordered_groups(group_by(items, GroupKind.PLAYER), GroupKind.PLAYER)
	tree = competition_tree(items)
	return {
		"players": [
			{"key": key, "count": len(group), "items": [_item_view(it) for it in group]}
			for key, group in players
		],
		"competitions": [
			{
				"key": competition,
				"count": sum(len(g) for g in games.values()),
				"games": [
					{"key": game, "count": len(group), "items": [_item_view(it) for it in group]}
					for game, group in games.items()
				],
			}
			for competition, games in tree.items()
		],
	}


@app.get("/api/player/state")
async def player_state():
	return app.state.sequencer.snapshot()


@app.post("/api/player/reset")
async def player_reset():
	app.state.sequencer.load()
	return app.state.sequencer.snapshot()


@app.post("/api/player/select/all")
async def select_all():
	app.state.sequencer.select_all()
	return app.state.sequencer.snapshot()


@app.post("/api/player/select/shuffle")
async def select_shuffle():
	app.state.sequencer.select_shuffle()
	return app.state.sequencer.snapshot()


@app.post("/api/player/select/recent")
async def select_recent():
	app.state.sequencer.select_recent()
	return app.state.sequencer.snapshot()


@app.post("/api/player/select/group")
async def select_group(body: GroupSelection):
	app.state.sequencer.select_group(body.kind, body.value)
	return app.state.sequencer.snapshot()


@app.post("/api/player/select/video")
async def select_video(body: VideoSelection):
	context = (body.context.kind, body.context.value) if body.context else None
	app.state.sequencer.select_video(body.id, context)
	return app.state.sequencer.snapshot()


@app.post("/api/player/event")
async def player_event(body: PlayerEvent):
	state = app.state.adapter.notify(body.state, body.sequence)
	return {"accepted": state is not None, **app.state.sequencer.snapshot()}
