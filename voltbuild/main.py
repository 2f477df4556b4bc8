from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from voltbuild.api.middleware import AuditMiddleware
from voltbuild.api.v1.router import v1_router
from voltbuild.api.v1.websocket import router as ws_router
from voltbuild.common.logging import get_logger, setup_logging
from voltbuild.config import settings
from voltbuild.core.site_selection.jurisdictions import JURISDICTIONS
from voltbuild.core.site_selection.scoring import CRITERIA, score_example_sites
from voltbuild.db.session import create_all
from voltbuild.integrations.exchange_rate import rate_cache

BASE_DIR = Path(__file__).resolve().parent

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.DB_AUTO_CREATE:
        await create_all()
        logger.info("Database tables ensured")
    if settings.EXCHANGE_RATE_FETCH_ON_STARTUP:
        try:
            rate = await rate_cache.refresh()
            logger.info("Startup CAD->USD rate %.4f (%s)", rate.rate, rate.source)
        except httpx.HTTPError as e:
            logger.warning("Startup exchange rate fetch failed: %s", e)
    yield


app = FastAPI(
    title="VoltBuild API",
    description="Construction management for bitcoin mining data centers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuditMiddleware)

# Static files & templates
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")

# API routes
app.include_router(v1_router, prefix="/api/v1")
app.include_router(ws_router, prefix="/api/v1")


# --- Page routes ---


@app.get("/", response_class=HTMLResponse)
async def landing_page(request: Request):
    return templates.TemplateResponse(request, "index.html", {"app_env": settings.APP_ENV})


@app.get("/site-selection", response_class=HTMLResponse)
async def site_selection_page(request: Request):
    return templates.TemplateResponse(
        request,
        "site_selection.html",
        {
            "criteria": CRITERIA,
            "example_sites": score_example_sites(),
            "jurisdictions": JURISDICTIONS,
        },
    )


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "voltbuild",
        "version": "1.0.0",
        "env": settings.APP_ENV,
    }
