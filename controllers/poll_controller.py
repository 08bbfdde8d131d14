"""Poll results, voting and vote resets."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any, Dict

from fastapi import HTTPException, Request

from dal.store_errors import StoreUnavailableError
from services.display.display_engine import DisplayEngine


def _engine(request: Request) -> DisplayEngine:
	return request.app.state.display_engine


async def _require_poll(request: Request, poll_id: int) -> None:
	poll = await request.app.state.store.get_poll(poll_id)
	if poll is None:
		raise HTTPException(status_code=404, detail=f"Poll {poll_id} not found")


async def get_poll_results(request: Request, poll_id: int) -> Dict[str, Any]:
	"""Return vote counts and percentages for `poll_id`."""
	try:
		results = await _engine(request).poll_results(poll_id)
	except (StoreUnavailableError, asyncio.TimeoutError) as exc:
		raise HTTPException(status_code=503, detail=str(exc) or "Store unavailable") from exc
	if results is None:
		raise HTTPException(status_code=404, detail=f"Poll {poll_id} not found")
	return asdict(results)


async def submit_vote(request: Request, poll_id: int, option_id: str, voter_fingerprint: str) -> Dict[str, Any]:
	try:
		await _require_poll(request, poll_id)
		outcome = await _engine(request).submit_vote(poll_id, option_id, voter_fingerprint)
	except (StoreUnavailableError, asyncio.TimeoutError) as exc:
		raise HTTPException(status_code=503, detail=str(exc) or "Store unavailable") from exc
	return {"poll_id": poll_id, **asdict(outcome)}


async def reset_poll_votes(request: Request, poll_id: int) -> Dict[str, Any]:
	"""Delete every vote for `poll_id` and deprioritise it in the rotation."""
	try:
		await _require_poll(request, poll_id)
		await _engine(request).reset_poll_votes(poll_id)
	except (StoreUnavailableError, asyncio.TimeoutError) as exc:
		raise HTTPException(status_code=503, detail=str(exc) or "Store unavailable") from exc
	return {"poll_id": poll_id, "reset": True}
