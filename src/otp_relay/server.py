#!/usr/bin/env python3
"""HTTP facade of the OTP relay.

Exposes the OTP workflow and the block summary as stateless JSON routes,
plus the browser UI that drives them.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .auth import Authenticator
from .block_summary import BlockSummaryBuilder
from .errors import LedgerError
from .ledger import LedgerClient
from .otp_workflow import OTPWorkflow
from .views import BlockDetailsView, render_block_details, render_index

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"
BLOCK_DETAILS_ERROR = "<p>Failed to get latest block details</p>"


class ValidateOTPRequest(BaseModel):
    """Body of ``POST /validate-otp``; numeric OTPs are accepted as strings."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    otp: str | None = None


class LoginRequest(BaseModel):
    """Body of ``POST /login``."""
    model_config = ConfigDict(populate_by_name=True)

    login_id: str = Field(alias="loginId")
    password: str


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _guarded(
    route: str,
    failure_message: str,
    handler: Callable[[], Awaitable[Any]]
) -> Any:
    """Runs a route body, mapping ledger faults and unexpected errors to 500."""
    try:
        return await handler()
    except LedgerError as e:
        logger.error(f"Error handling {route} request: {e}")
        return _error(failure_message, 500)
    except Exception as e:
        logger.error(f"Error handling {route} request: {e}", exc_info=True)
        return _error(INTERNAL_ERROR, 500)


def create_app(
    ledger: LedgerClient,
    authenticator: Authenticator,
    cors_origins: tuple[str, ...] = ("*",)
) -> FastAPI:
    """
    Build the relay application around an already constructed ledger client.

    Args:
        ledger: Ledger adapter shared by all routes
        authenticator: Credential check used by ``POST /login``
        cors_origins: Allowed CORS origins

    Returns:
        Configured FastAPI application
    """
    workflow = OTPWorkflow(ledger)
    summary = BlockSummaryBuilder(ledger)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("OTP relay started")
        try:
            yield
        finally:
            await ledger.close()
            logger.info("OTP relay stopped")

    app = FastAPI(title="OTP Relay", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Unparseable OTP bodies count as an invalid OTP, not a framework error
        if request.url.path == "/validate-otp":
            logger.info(f"Rejecting malformed /validate-otp body: {exc.errors()}")
            return _error("Invalid OTP", 400)
        return _error("Invalid request body", 422)

    @app.get("/otp")
    async def issue_otp() -> Any:
        async def handler() -> Any:
            otp = await workflow.issue_otp()
            if not otp:
                return _error("Failed to generate OTP", 500)
            return {"otp": otp}

        return await _guarded("/otp", "Failed to generate OTP", handler)

    @app.post("/validate-otp")
    async def validate_otp(body: ValidateOTPRequest | None = None) -> Any:
        if body is None or body.otp is None:
            logger.info("Rejecting /validate-otp request without an OTP")
            return _error("Invalid OTP", 400)

        async def handler() -> Any:
            if await workflow.check_otp(body.otp):
                return {"message": "OTP validated successfully"}
            return _error("Invalid OTP", 400)

        return await _guarded("/validate-otp", "Failed to validate OTP", handler)

    @app.get("/latest-block")
    async def latest_block() -> Any:
        async def handler() -> Any:
            snapshot = await summary.latest_block()
            return snapshot.to_dict()

        return await _guarded("/latest-block", "Failed to get latest block", handler)

    @app.get("/total-blocks")
    async def total_blocks() -> Any:
        async def handler() -> Any:
            return {"totalBlocks": str(await summary.total_blocks())}

        return await _guarded("/total-blocks", "Failed to get total number of blocks", handler)

    @app.post("/login")
    async def login(body: LoginRequest) -> Any:
        if authenticator.verify(body.login_id, body.password):
            return {"message": "Login successful!"}
        return _error("Invalid login ID or password", 401)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(render_index())

    @app.get("/block-details", response_class=HTMLResponse)
    async def block_details() -> HTMLResponse:
        try:
            snapshot = await summary.latest_block()
            total = await summary.total_blocks()
            page = render_block_details(BlockDetailsView.build(snapshot, total))
        except LedgerError as e:
            logger.error(f"Error getting latest block details: {e}")
            return HTMLResponse(BLOCK_DETAILS_ERROR, status_code=500)
        except Exception as e:
            logger.error(f"Error rendering block details: {e}", exc_info=True)
            return HTMLResponse(BLOCK_DETAILS_ERROR, status_code=500)
        return HTMLResponse(page)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        connected = await ledger.is_connected()
        return {"status": "ok" if connected else "degraded", "connected": connected}

    return app
