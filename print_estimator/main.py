from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .config import settings
from .exceptions import RateCardError
from .routers import estimates, rate_card

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("print_estimator")

app = FastAPI(
    title=settings.APP_NAME,
    description="Print job cost estimation engine",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(estimates.router, prefix="/api")
app.include_router(rate_card.router, prefix="/api")


@app.exception_handler(RateCardError)
def rate_card_error(request: Request, exc: RateCardError):
    logger.error("Rate card unavailable: %s", exc)
    return JSONResponse(status_code=500, content={"detail": {"message": exc.message, **exc.details}})


@app.get("/health")
def health():
    return {"status": "ok", "app": "print-estimator", "base_currency": settings.BASE_CURRENCY}
