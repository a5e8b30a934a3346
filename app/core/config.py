from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Service Booking Site"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 3000
    ENVIRONMENT: str = "development"

    # Security
    SECRET_KEY: str = "fallback-secret-key"
    MIN_PASSWORD_LENGTH: int = 8

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str = "logs/errors.log"

    # Content & data files
    SERVICES_DIR: str = "content/services"
    SITE_SETTINGS_FILE: str = "content/settings.json"
    BOOKINGS_FILE: str = "data/bookings.json"
    COMMENTS_FILE: str = "data/comments.json"
    UPLOADS_DIR: str = "public/uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Captcha
    CAPTCHA_TTL_SECONDS: int = 300
    CAPTCHA_SWEEP_INTERVAL_SECONDS: int = 300

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
