"""HTTP surface for the batch jobs.

Every endpoint answers ``{"data": ...}`` on success and
``{"error": {"code", "message"}}`` with status 500 on failure, or 422
when the request body does not validate.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ideascout import __version__
from ideascout.config import get_db_path
from ideascout.db import init_db
from ideascout.errors import ConfigError
from ideascout.pipeline import run_collection, run_daily_report, run_intelligence_engine

logger = logging.getLogger(__name__)

CORS_METHODS = ["POST", "GET", "OPTIONS", "PUT", "DELETE", "PATCH"]
CORS_MAX_AGE = 86400


class EngineRequest(BaseModel):
    manual_trigger: bool = False


class ReportRequest(BaseModel):
    report_date: date | None = None


def error_response(code: str, message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def create_app(config: dict) -> FastAPI:
    """Build the application around an already-loaded config."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        init_db(get_db_path(config))
        logger.info("Database ready at %s", get_db_path(config))
        yield

    app = FastAPI(
        title="ideascout",
        description="Startup idea discovery pipeline",
        version=__version__,
        lifespan=lifespan,
    )

    api_cfg = config.get("api", {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_cfg.get("cors_origins", ["*"]),
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
        max_age=CORS_MAX_AGE,
    )

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
        logger.error("Configuration error on %s: %s", request.url.path, exc)
        return error_response("CONFIGURATION_ERROR", str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        logger.warning("Rejected request to %s: %s", request.url.path, problems)
        return error_response("INVALID_REQUEST", problems, status_code=422)

    @app.get("/health")
    async def health() -> dict:
        return {"data": {"status": "healthy", "version": __version__}}

    @app.post("/collect")
    async def collect():
        try:
            data = await run_collection(config)
        except ConfigError:
            raise
        except Exception as exc:
            logger.exception("Collection request failed")
            return error_response("DATA_COLLECTION_FAILED", str(exc))
        return {"data": data}

    @app.post("/intelligence-engine")
    async def intelligence_engine(body: EngineRequest | None = None):
        manual = body.manual_trigger if body else False
        try:
            data = await run_intelligence_engine(config, manual_trigger=manual)
        except ConfigError:
            raise
        except Exception as exc:
            logger.exception("Intelligence engine request failed")
            return error_response("INTELLIGENCE_ENGINE_FAILED", str(exc))
        return {"data": data}

    @app.post("/daily-report")
    async def daily_report(body: ReportRequest | None = None):
        report_date = body.report_date.isoformat() if body and body.report_date else None
        try:
            data = await run_daily_report(config, report_date)
        except ConfigError:
            raise
        except Exception as exc:
            logger.exception("Daily report request failed")
            return error_response("REPORT_GENERATION_FAILED", str(exc))
        return {"data": data}

    return app
