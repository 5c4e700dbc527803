from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = "sqlite:///duocards.db"
    AUTO_CREATE_TABLES: bool = True
    SECRET_KEY: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    JWT_ACCESS_COOKIE_NAME: str = "access_token"
    JWT_REFRESH_COOKIE_NAME: str = "refresh_token"
    JWT_COOKIE_DOMAIN: str | None = None
    JWT_COOKIE_SECURE: bool = False
    JWT_COOKIE_SAMESITE: str = "lax"
    JWT_COOKIE_CSRF_PROTECT: bool = True
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODEL: str = "google/gemini-pro"
    AI_MAX_TOKENS: int = 1000
    AI_TIMEOUT_SECONDS: float = 60.0

    OCR_LANGS: str = "en"
    MAX_IMAGE_BYTES: int = 10 * 1024 * 1024
    DEFAULT_TRANSLATION_LANGUAGE: str = "English"

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None

    @property
    def ocr_langs(self) -> list[str]:
        return [lang.strip() for lang in self.OCR_LANGS.split(",") if lang.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
