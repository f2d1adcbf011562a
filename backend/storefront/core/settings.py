from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

"""
Core Settings.

Rôle (fonctionnel) :
- Centralise la configuration de l’application via variables d’environnement (Pydantic Settings).
- Charge un fichier .env (par défaut backend/.env) pour faciliter le dev/local.
- Fournit un objet global `settings` importable dans tout le projet.

Organisation :
- App : nom, env, debug, niveau de log.
- CORS : origines autorisées (front).
- Auth (admin) : API_KEY.
- Rate limit : activation + RPM + préfixes protégés.
- DB : URL async (runtime) + URL sync (scripts).
- Mail : backend d’envoi, expéditeur, SMTP, envoi différé.
- Métier : pagination, seuils (stock bas, nouveau membre), devise.
"""

# Pointe toujours vers backend/.env (racine backend/)
ENV_PATH = Path(__file__).resolve().parents[2] / ".env"  # backend/.env


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "Storefront API"
    ENV: str = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 800

    # --- CORS ---
    # Vide : origines de dev par défaut de main.py (localhost:3000 / :8000)
    CORS_ORIGINS: str = ""

    # --- Auth (admin) ---
    # Clé API optionnelle. Si vide : bypass en dev (voir core/security.py).
    API_KEY: str = ""

    # --- Rate limit (optionnel) ---
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_RPM: int = 120
    RATE_LIMIT_PATHS: str = "/account"

    # --- DB ---
    # Async : utilisé par l’app (SQLAlchemy async)
    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"

    # Sync : utilisé par les scripts (seed)
    DATABASE_URL_SYNC: str = "sqlite:///./storefront.db"

    # Création des tables au démarrage (dev / démo)
    DB_AUTO_CREATE: bool = True

    # --- Mail ---
    # console : log uniquement / memory : outbox en mémoire (tests) / smtp : envoi réel
    MAIL_BACKEND: str = "console"
    MAIL_FROM: str = "no-reply@storefront.local"

    # Si True : les mails partent après la réponse HTTP (BackgroundTasks)
    MAIL_DEFERRED: bool = True

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_SECURITY: str = "starttls"  # starttls / ssl / none
    SMTP_TIMEOUT: int = 30

    # --- Métier ---
    PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    NEW_MEMBER_DAYS: int = 30
    LOW_STOCK_THRESHOLD: int = 5
    DEFAULT_CURRENCY: str = "EUR"

    # Config Pydantic Settings
    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instance globale importable
settings = Settings()
