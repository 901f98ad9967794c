"""
FastAPI application for the coach pickup console (next workout + mark complete).
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response, Form
from fastapi.responses import JSONResponse

from . import config
from . import db as app_db
from . import services
from .services import ApiError
from .security import COOKIE_NAME, token_from_request


config.configure_logging()
logger = logging.getLogger(__name__)

COOKIE_MAX_AGE = 60 * 60 * 24 * 7


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_db.init_database()
    yield


app = FastAPI(
    title="Coach Pickup Console",
    description="Sequence-based program tracking for coach-led sessions",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _unexpected(route: str, exc: Exception) -> ApiError:
    logger.exception("[%s] Unexpected error", route)
    return ApiError(500, "Internal server error", str(exc) or "Internal server error")


# Auth endpoints (cookie or bearer token)
@app.post("/auth/login")
async def api_login(response: Response, email: str = Form(...), password: str = Form(...)):
    result = services.login(email, password)
    response.set_cookie(COOKIE_NAME, result["token"], max_age=COOKIE_MAX_AGE, httponly=True, samesite="lax")
    return result


@app.post("/auth/logout")
async def api_logout(response: Response):
    response.delete_cookie(COOKIE_NAME)
    return {"ok": True}


@app.get("/auth/me")
async def api_me(request: Request):
    token = token_from_request(request)
    try:
        profile = services.validate_api_auth(token)
    except ApiError:
        return {"authenticated": False}
    return {"authenticated": True, "user": services.profile_summary(profile)}


# Coach pickup
@app.get("/coach/pickup/next-workout")
async def api_next_workout(request: Request, clientId: Optional[str] = None):
    """Next workout for a client, resolved from their program progress (Week → Day)."""
    if not clientId:
        raise ApiError(400, "Missing required parameter: clientId", "The clientId query parameter is required")
    try:
        profile = services.validate_api_auth(token_from_request(request))
        services.require_coach_of(profile, clientId)
        return services.get_next_workout(clientId)
    except ApiError:
        raise
    except Exception as e:
        raise _unexpected("pickup/next-workout", e)


@app.post("/coach/pickup/mark-complete")
async def api_mark_complete(request: Request):
    """Mark the client's current training day complete and advance their program position."""
    try:
        profile = services.validate_api_auth(token_from_request(request))
        try:
            body = await request.json()
        except ValueError:
            raise ApiError(400, "Invalid JSON body", "Request body must be a JSON object")
        if not isinstance(body, dict) or not body.get("clientId"):
            raise ApiError(400, "Missing required field: clientId", "The clientId field is required")

        client_id = str(body["clientId"])
        services.require_coach_of(profile, client_id)
        return services.mark_day_complete(client_id, profile["id"], body.get("notes"))
    except ApiError:
        raise
    except Exception as e:
        raise _unexpected("pickup/mark-complete", e)


if __name__ == "__main__":
    uvicorn.run("coach_pickup.main:app", host="0.0.0.0", port=8000, reload=True)
