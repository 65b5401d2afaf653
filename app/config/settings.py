# app/config/settings.py
# Application settings loaded from the environment

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime configuration for the API"""

    def __init__(self):
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskmanager.db")
        self.DB_SSLMODE = os.getenv("DB_SSLMODE", "")

        # Authentication
        self.SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

        # Cron endpoint shared secret
        self.CRON_SECRET = os.getenv("CRON_SECRET")

        # Email delivery
        self.RESEND_API_KEY = os.getenv("RESEND_API_KEY")
        self.RESEND_EMAIL_FROM = os.getenv("RESEND_EMAIL_FROM", "onboarding@resend.dev")
        self.RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
        self.APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")

        # File storage
        self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
        self.FILE_URL_TTL_SECONDS = int(os.getenv("FILE_URL_TTL_SECONDS", 3600))

        # Scheduler
        self.SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
        self.REMINDER_CRON_HOUR = int(os.getenv("REMINDER_CRON_HOUR", 8))

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]


settings = Settings()
