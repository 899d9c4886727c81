import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from icdc_parser.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

API_VERSION = "0.1.0"

app = FastAPI(
    title=settings.APP_NAME,
    description="Extracts and reconciles ICDC liquor invoices against the master brand catalog",
    version=API_VERSION,
    debug=settings.DEBUG
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": API_VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

from icdc_parser.routers import invoices

app.include_router(invoices.router)
