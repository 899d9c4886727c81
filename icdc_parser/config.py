from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "ICDC Invoice Parser"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS (stock-register frontend)
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Master brand catalog, used when a request carries none
    MASTER_BRANDS_PATH: str = "data/masterBrands.json"

    # OCR for scanned invoices
    TESSERACT_CMD: str = "/usr/bin/tesseract"

    # Upload limit per invoice PDF
    MAX_UPLOAD_MB: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
