# main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from portfolio.config import (
    ENABLE_SCHEDULER,
    LOG_LEVEL,
    PORT,
    SESSION_MAX_AGE,
    SESSION_SECRET,
    UPLOAD_DIR,
)
from portfolio.database import init_db
from portfolio.jobs import start_scheduler, stop_scheduler

# Router-Module
from portfolio import (
    activities,
    analytics,
    appointments,
    auth,
    backups,
    contracts,
    customers,
    dashboard,
    documents,
    email_routes,
    faqs,
    invoices,
    message_templates,
    messages,
    project_requests,
    projects,
    reviews,
    services,
    settings,
    skills,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("portfolio")


# ─────────────────────────────
# HINTERGRUNDJOBS
# ─────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    if ENABLE_SCHEDULER:
        start_scheduler()
    else:
        logger.info("⏸ Hintergrundjobs deaktiviert")
    yield
    await stop_scheduler()


app = FastAPI(
    title="Portfolio & Backoffice",
    description="Portfolio-Webseite, Admin-Bereich und Kundenportal",
    version="1.0.0",
    lifespan=lifespan,
)

# ─────────────────────────────
# DATABASE INITIALIZATION
# ─────────────────────────────
init_db()   # Erstellt Tabellen + Admin-Zugang (falls nicht vorhanden)

# ─────────────────────────────
# SESSION MIDDLEWARE
# ─────────────────────────────
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    max_age=SESSION_MAX_AGE,
    same_site="lax",
)

# ─────────────────────────────
# UPLOADS
# ─────────────────────────────
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")

# ─────────────────────────────
# ROUTER REGISTRIEREN
# ─────────────────────────────
# Auth
app.include_router(auth.router)

# Öffentliche Inhalte
app.include_router(projects.router)
app.include_router(services.router)
app.include_router(settings.router)
app.include_router(faqs.router)
app.include_router(skills.router)
app.include_router(reviews.router)

# Kunden + Anfragen
app.include_router(customers.router)
app.include_router(documents.router)
app.include_router(project_requests.router)
app.include_router(messages.router)
app.include_router(appointments.router)

# Backoffice
app.include_router(invoices.router)
app.include_router(contracts.router)
app.include_router(message_templates.router)
app.include_router(dashboard.router)
app.include_router(analytics.router)
app.include_router(activities.router)
app.include_router(backups.router)
app.include_router(email_routes.router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=PORT)
