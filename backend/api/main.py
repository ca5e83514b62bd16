"""
Speed.Sales API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from core.config import get_settings
from core.errors import SpeedSalesError

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Speed.Sales API starting up", version=settings.app_version)
    if settings.auto_create_tables:
        from db.session import create_all_tables

        await create_all_tables()
        logger.info("database.tables_ensured")
    yield
    logger.info("Speed.Sales API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Command console and back office for independent makers",
    lifespan=lifespan,
)


@app.exception_handler(SpeedSalesError)
async def speed_sales_error_handler(request: Request, exc: SpeedSalesError):
    """Map the error taxonomy onto status codes with an ``{"error": ...}`` body."""
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "request.failed",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"error": "Request failed"})


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.routers import command, cs_inquiries, expenses, marketing, orders, products

app.include_router(command.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(expenses.router)
app.include_router(cs_inquiries.router)
app.include_router(marketing.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
