"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Security Secrets ──────────────────────────────────────────────────
    jwt_secret: str = "change-me-jwt-secret-key"       # HMAC key for auth tokens
    jwt_issuer: str = "todo-backend"                    # "iss" claim, never the key
    jwt_expiry_seconds: int = 3600                      # 1 hour
    token_revocation_enabled: bool = True               # logout denylists the token
    bcrypt_rounds: int = 12

    # ── Session cookie ───────────────────────────────────────────────────
    cookie_name: str = "access_token"
    cookie_secure: bool = False
    cookie_samesite: str = "strict"

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./todo.db"
    database_echo: bool = False

    # ── Server ───────────────────────────────────────────────────────────
    api_prefix: str = ""
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["http://localhost:3000"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }


config = Settings()
