from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reportstudio.config import settings
from reportstudio.middleware.exceptions import register_exception_handlers
from reportstudio.routers import health, reports, wizard
from reportstudio.services.scheduler import lifespan

app = FastAPI(
    title="ReportStudio",
    description="Report drafting wizard for NGO reporting",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
app.include_router(wizard.router, prefix="/api/wizard", tags=["wizard"])
