"""FastAPI routes for poll results, votes and resets."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.poll_controller import get_poll_results, reset_poll_votes, submit_vote

router = APIRouter(prefix="/polls")


class VotePayload(BaseModel):
	option_id: str = Field(min_length=1)
	voter_fingerprint: str = Field(min_length=1)


@router.get("/{poll_id}/results")
async def poll_results_route(request: Request, poll_id: int):
	try:
		return await get_poll_results(request, poll_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{poll_id}/votes")
async def vote_route(request: Request, poll_id: int, payload: VotePayload):
	"""Record one vote; a repeated fingerprint reports `already_voted`."""
	try:
		return await submit_vote(request, poll_id, payload.option_id, payload.voter_fingerprint)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{poll_id}/reset")
async def reset_route(request: Request, poll_id: int):
	try:
		return await reset_poll_votes(request, poll_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
