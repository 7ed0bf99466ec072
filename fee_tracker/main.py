# fee_tracker/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fee_tracker.api import api
from fee_tracker.storage.db import engine
from fee_tracker.utils.exceptions import (
    FeeTrackerError,
    PoolNotFoundError,
    TransientProviderError,
    ValidationError,
)
from sqlalchemy import text
import logging
from fee_tracker.utils.shortname import ShortNameFilter

app = FastAPI(title="Pool fee tracker")

logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(shortname)s: %(message)s",
)
for handler in logging.getLogger().handlers:
    handler.addFilter(ShortNameFilter())
log = logging.getLogger(__name__)

app.include_router(api.router, prefix="/api")


@app.exception_handler(FeeTrackerError)
def handle_fee_tracker_error(request: Request, exc: FeeTrackerError):
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, PoolNotFoundError):
        status = 404
    elif isinstance(exc, TransientProviderError):
        status = 503
    else:
        status = 500
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.on_event("startup")
def check_db_connection():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            log.info("✅ Database connected.")
    except Exception as e:
        log.error(f"❌ DB connection failed: {e}")
