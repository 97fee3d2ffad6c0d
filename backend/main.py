"""
NetWorth Pro - FastAPI Backend
==============================
Minimal API for saving and retrieving net worth calculations.

Endpoints:
1. POST /api/net-worth                 validate and store a calculation
2. GET  /api/net-worth/{id}            fetch one stored calculation
3. GET  /api/users/{user_id}/net-worth list a user's calculations
4. GET  /api/health                    liveness

Storage is in memory; records are created once and never updated.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from config import Settings, get_settings
from models import InsertNetWorthCalculation, NetWorthCalculation
from storage import NetWorthStorage

# Configure logging
logging.basicConfig(level=getattr(logging, get_settings().log_level, logging.INFO))
logger = logging.getLogger(__name__)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_storage(request: Request) -> NetWorthStorage:
    """The storage instance attached to the running app."""
    return request.app.state.storage


def invalid_data(errors: list) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": "Invalid data", "errors": errors})


# =============================================================================
# APPLICATION SETUP
# =============================================================================

def create_app(
    storage: Optional[NetWorthStorage] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        storage: calculation store (a fresh in-memory one by default)
        settings: configuration (environment settings by default)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("NetWorth Pro API starting up...")
        yield
        logger.info(f"NetWorth Pro API shutting down ({len(app.state.storage)} calculations discarded)")

    app = FastAPI(
        title="NetWorth Pro",
        description="Save and retrieve net worth calculations",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.storage = storage if storage is not None else NetWorthStorage()
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # API ENDPOINTS
    # -------------------------------------------------------------------------

    @app.get("/")
    async def root():
        return {"service": "NetWorth Pro", "version": "1.0.0", "status": "healthy"}

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/api/net-worth", response_model=NetWorthCalculation)
    async def save_net_worth_calculation(
        request: Request,
        storage: NetWorthStorage = Depends(get_storage),
    ):
        """
        Validate and store a calculation.

        Assets and liabilities must be non-negative and the currency must be
        a supported code; otherwise 400 with the list of field errors.
        """
        try:
            body = await request.json()
        except ValueError:
            return invalid_data([{"type": "json_invalid", "loc": ["body"], "msg": "Request body is not valid JSON"}])

        try:
            calculation = InsertNetWorthCalculation.model_validate(body)
        except ValidationError as e:
            # Inputs are left out; they can hold values JSON cannot carry (NaN)
            return invalid_data(jsonable_encoder(e.errors(include_url=False, include_input=False)))

        record = storage.save_calculation(calculation)
        logger.info(f"Saved net worth calculation {record.id}")
        return record

    @app.get("/api/net-worth/{calculation_id}", response_model=NetWorthCalculation)
    async def get_net_worth_calculation(
        calculation_id: str,
        storage: NetWorthStorage = Depends(get_storage),
    ):
        calculation = storage.get_calculation(calculation_id)
        if calculation is None:
            return JSONResponse(status_code=404, content={"message": "Net worth calculation not found"})
        return calculation

    @app.get("/api/users/{user_id}/net-worth", response_model=List[NetWorthCalculation])
    async def get_user_net_worth_calculations(
        user_id: str,
        storage: NetWorthStorage = Depends(get_storage),
    ):
        return storage.get_user_calculations(user_id)

    # -------------------------------------------------------------------------
    # ERROR HANDLERS
    # -------------------------------------------------------------------------

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        content = {"message": "Internal server error"}
        if settings.debug:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
