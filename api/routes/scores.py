"""Leaderboard API endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, Request

from api.limiter import limiter
from api.schemas import LeaderboardResponse, ScoreResponse, ScoreSubmission
from api.scores import get_score_store, submit_score
from config import config

router = APIRouter()


@router.post("")
@limiter.limit(config.rate_limit.limit)
async def post_score(request: Request, submission: ScoreSubmission) -> ScoreResponse:
    """Submit a finished-round record."""
    score = await submit_score(submission.name, submission.money_won, submission.win)
    return ScoreResponse(**score)


@router.get("")
async def get_scores(
    sort: Literal["money", "recent"] = "money",
    limit: int = Query(default=config.leaderboard.size, ge=1, le=100),
) -> LeaderboardResponse:
    """Return the ranked leaderboard."""
    store = await get_score_store()
    scores = await store.top(sort=sort, limit=limit)
    return LeaderboardResponse(scores=[ScoreResponse(**s) for s in scores])
