"""Request-scoped helpers for the TV display surface."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import Request

from models.screen_record import Slide
from services.display.display_engine import DisplayEngine


def _engine(request: Request) -> DisplayEngine:
	return request.app.state.display_engine


def _slide_payload(engine: DisplayEngine, slide: Optional[Slide]) -> Dict[str, Any]:
	# `empty` is the explicit signal for "nothing to show"; never a bare null.
	return {
		"slide": asdict(slide) if slide is not None else None,
		"cursor": engine.player.cursor,
		"empty": slide is None,
		"is_offline": engine.is_offline,
	}


async def get_current_slide(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	return _slide_payload(engine, engine.current_slide())


async def advance_slide(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	return _slide_payload(engine, engine.advance())


async def retreat_slide(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	return _slide_payload(engine, engine.retreat())


async def get_playlist(request: Request) -> Dict[str, Any]:
	"""Return the current rotation together with the tier that produced it."""
	info = _engine(request).serving_info()
	info["rotation"] = [asdict(slide) for slide in info["rotation"]]
	return info


async def get_current_poll(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	display = await engine.current_poll_for_display()
	return {
		"poll": asdict(display.poll) if display is not None else None,
		"options": [asdict(option) for option in display.options] if display is not None else [],
		"phase": engine.current_poll_phase(),
		"is_offline": engine.is_offline,
	}


async def get_reminders(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	reminders = [
		{
			"session": asdict(view.session),
			"urgency": view.urgency.value,
			"is_expired_visible": view.is_expired_visible,
			"remaining_seconds": int(view.remaining_seconds),
		}
		for view in engine.visible_reminders()
	]
	return {
		"reminders": reminders,
		"scheduled": [asdict(reminder) for reminder in engine.scheduled_reminders()],
		"is_offline": engine.is_offline,
	}


async def get_welcomes(request: Request) -> Dict[str, Any]:
	engine = _engine(request)
	return {
		"welcomes": [
			{"session": asdict(welcome.session), "appeared_at": welcome.appeared_at}
			for welcome in engine.visible_welcomes()
		],
		"is_offline": engine.is_offline,
	}
