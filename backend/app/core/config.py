from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Resolve backend root (…/backend/) regardless of current working directory
BASE_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Training Portal"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    # JSON list in .env, e.g. BACKEND_CORS_ORIGINS=["http://localhost:5173"]
    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # ===== Embedded store (courses / lessons / progress) =====
    DATABASE_URL: str = "sqlite:///./platform.db"
    SEED_DEMO_CATALOG: bool = True

    # ===== Quiz store =====
    # local  => quizzes/questions/options/results/users live in DATABASE_URL
    # remote => hosted relational API (PostgREST dialect, e.g. Supabase)
    QUIZ_STORE: str = "local"
    REMOTE_API_URL: str | None = None
    REMOTE_API_KEY: str | None = None
    REMOTE_API_SCHEMA: str = "plataforma_de_treinamento"
    # The only timeout on a quiz-store round trip.
    REMOTE_HTTP_TIMEOUT_SEC: float = 30.0

    # Built SPA (index.html + assets). Left unset in dev, the frontend runs its own server.
    FRONTEND_DIST_DIR: str | None = None

    @field_validator("QUIZ_STORE", mode="before")
    @classmethod
    def _normalize_quiz_store(cls, v):
        store = str(v or "local").strip().lower()
        if store not in {"local", "remote"}:
            raise ValueError("QUIZ_STORE must be 'local' or 'remote'")
        return store

    def require_remote(self) -> tuple[str, str]:
        """Return (url, key) for the remote quiz store or fail loudly."""
        url = (self.REMOTE_API_URL or "").strip().rstrip("/")
        key = (self.REMOTE_API_KEY or "").strip()
        if not url or not key:
            raise RuntimeError("QUIZ_STORE=remote requires REMOTE_API_URL and REMOTE_API_KEY")
        return url, key


settings = Settings()
