"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.limiter import limiter, rate_limit_exceeded_handler
from api.routes import game, scores
from api.schemas import RulesResponse
from api.websocket import router as ws_router
from config import config
from core.errors import BlackjackError

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the table rules the server deals with."""
    rules = config.game
    logger.info(
        "Dealing single-deck blackjack: bankroll %d, dealer stands on %d, %d rounds",
        rules.starting_bankroll, rules.dealer_stands_on, rules.round_cap,
    )
    yield
    logger.info("Shutting down")


async def game_error_handler(request: Request, exc: BlackjackError) -> JSONResponse:
    """Report a broken game invariant, such as drawing from an empty deck."""
    logger.error("Game error on %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal game error"})


app = FastAPI(
    title="Single-Deck Blackjack",
    description="Single-deck blackjack table with a leaderboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(BlackjackError, game_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(config.rate_limit.limit)
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/rules")
async def table_rules() -> RulesResponse:
    """Rules new tables are dealt with."""
    return RulesResponse(
        starting_bankroll=config.game.starting_bankroll,
        dealer_stands_on=config.game.dealer_stands_on,
        round_cap=config.game.round_cap,
        blackjack_payout=config.game.blackjack_payout,
    )


app.include_router(game.router, prefix="/api/game", tags=["game"])
app.include_router(scores.router, prefix="/api/scores", tags=["scores"])
app.include_router(ws_router, prefix="/ws", tags=["websocket"])


def run() -> None:
    """Serve the app with the configured host, port and log level."""
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
    )
