# backend/eventra/main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from eventra.db import engine
from eventra.errors import DomainError
from eventra.models import Base
from eventra.routes import admin, booking, carousel, events, guests

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("eventra")

app = FastAPI(title="Eventra - Backend")

for module in (booking, guests, events, carousel):
    app.include_router(module.router)
    app.include_router(module.admin_router)
app.include_router(admin.admin_router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info("%s %s -> %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
async def startup_create_tables():
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        # migrations may own the schema; the app can still serve
        logger.exception("could not create tables at startup")
