from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.util import get_remote_address

from slot_machine.config import RateLimitConfig, settings
from slot_machine.core.exceptions import InvalidConfigurationError
from slot_machine.core.logger import get_logger

limiter = Limiter(key_func=get_remote_address)

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class OddsRequest(BaseModel):
    multiplier: float = Field(gt=0)


# ==================== Helpers ====================

def get_machine(request: Request):
    return request.app.state.machine


# Rate limits of the app being served, set by configure_rate_limits()
rate_limit_config: RateLimitConfig = settings.rate_limit


def configure_rate_limits(config: RateLimitConfig):
    """Point the shared limiter at an app's rate limit settings."""
    global rate_limit_config
    rate_limit_config = config
    limiter.enabled = config.enabled
    logger.info(
        "Rate limits configured",
        extra={
            "enabled": config.enabled,
            "game_requests": config.game_requests,
            "api_requests": config.api_requests,
        },
    )


def get_game_rate_limit():
    """Get rate limit string for spins from config."""
    return rate_limit_config.game_requests


def get_api_rate_limit():
    """Get rate limit string for everything else from config."""
    return rate_limit_config.api_requests


def weight_table_payload(session) -> list:
    table = session.table
    probabilities = table.probabilities()
    return [
        {
            **entry.to_dict(),
            "effective_weight": table[entry.symbol],
            "odds_percent": round(probabilities[entry.symbol] * 100, 2),
        }
        for entry in session.catalog
    ]


# ==================== Catalog & Settings ====================

@router.get("/symbols")
@limiter.limit(get_api_rate_limit)
async def get_symbols(request: Request):
    """Symbol table with payouts and current odds."""
    session = get_machine(request).session
    return {
        "odds_multiplier": session.odds_multiplier,
        "symbols": weight_table_payload(session),
        "outcomes": session.odds.outcome_probabilities(),
    }


@router.get("/settings")
@limiter.limit(get_api_rate_limit)
async def get_settings(request: Request):
    return get_machine(request).session.snapshot()


@router.post("/odds")
@limiter.limit(get_api_rate_limit)
async def set_odds(request: Request, data: OddsRequest):
    session = get_machine(request).session
    try:
        session.set_odds_multiplier(data.multiplier)
    except InvalidConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "odds_multiplier": session.odds_multiplier,
        "symbols": weight_table_payload(session),
    }


@router.post("/guaranteed-win/toggle")
@limiter.limit(get_api_rate_limit)
async def toggle_guaranteed_win(request: Request):
    armed = get_machine(request).session.toggle_guaranteed_win()
    return {"guaranteed_win": armed}


@router.post("/sound/toggle")
@limiter.limit(get_api_rate_limit)
async def toggle_sound(request: Request):
    enabled = get_machine(request).session.toggle_sound()
    return {"sound_enabled": enabled}


# ==================== Spin ====================

@router.post("/spin")
@limiter.limit(get_game_rate_limit)
async def spin(request: Request):
    """
    Start a spin. The effects are streamed over /ws as they play; the
    timeline is returned here as well for clients that render it themselves.
    """
    machine = get_machine(request)
    plan = machine.spin()

    if plan is None:
        return {"accepted": False, "state": machine.session.state.value}

    return {
        "accepted": True,
        "result": plan.result.to_dict(),
        "duration_ms": plan.duration_ms,
        "timeline": plan.timeline(),
    }
