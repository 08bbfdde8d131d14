"""FastAPI routes consumed by the TV renderer."""

from fastapi import APIRouter, HTTPException, Request

from controllers.display_controller import (
	advance_slide,
	get_current_poll,
	get_current_slide,
	get_playlist,
	get_reminders,
	get_welcomes,
	retreat_slide,
)

router = APIRouter(prefix="/display")


@router.get("/slide")
async def current_slide_route(request: Request):
	"""Return the slide under the playback cursor."""
	try:
		return await get_current_slide(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/advance")
async def advance_route(request: Request):
	try:
		return await advance_slide(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/retreat")
async def retreat_route(request: Request):
	try:
		return await retreat_slide(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/playlist")
async def playlist_route(request: Request):
	"""Return the rotation, cursor and serving tier."""
	try:
		return await get_playlist(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/poll")
async def poll_route(request: Request):
	try:
		return await get_current_poll(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/reminders")
async def reminders_route(request: Request):
	try:
		return await get_reminders(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/welcomes")
async def welcomes_route(request: Request):
	try:
		return await get_welcomes(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
