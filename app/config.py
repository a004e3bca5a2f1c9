"""
Configuration settings for the Kanban Taskboard API
"""
import os

from dotenv import load_dotenv


class Settings:
    """Application settings"""

    def __init__(self):
        # Load from environment variables with safe defaults
        self.app_name = os.getenv("APP_NAME", "Kanban Taskboard API")
        self.app_version = os.getenv("APP_VERSION", "1.0.0")
        self.debug = os.getenv("DEBUG", "False").lower() == "true"
        self.environment = os.getenv("ENVIRONMENT", "production")

        # Database - require DATABASE_URL in production
        self.database_url = os.getenv("DATABASE_URL")
        if not self.database_url:
            raise RuntimeError("DATABASE_URL must be set")

        # Authentication - require JWT_SECRET in production
        self.jwt_secret = os.getenv("JWT_SECRET")
        if not self.jwt_secret:
            raise RuntimeError("JWT_SECRET must be set")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expires_in = int(os.getenv("JWT_EXPIRES_IN", "1440"))  # minutes

        # Security
        self.password_min_length = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))

        # CORS
        origins_str = os.getenv("ALLOWED_ORIGINS", "")
        if not origins_str:
            if self.environment == "production":
                raise RuntimeError("ALLOWED_ORIGINS must be set in production (comma-separated HTTPS URLs)")
            origins_str = "http://localhost:3000,http://127.0.0.1:3000"

        self.allowed_origins = [origin.strip() for origin in origins_str.split(',') if origin.strip()]

        # Email
        self.smtp_host = os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER", "")
        self.smtp_pass = os.getenv("SMTP_PASS", "")
        self.from_email = os.getenv("FROM_EMAIL", "noreply@kanban-taskboard.local")
        self.from_name = os.getenv("FROM_NAME", "Kanban Board")

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_format = os.getenv("LOG_FORMAT", "json")


# Load environment variables from .env file if it exists
load_dotenv()

# Global settings instance
settings = Settings()
