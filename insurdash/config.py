# insurdash/config.py
"""
Settings for the insurance dashboard engine

Version: 1.0.0
- Local runs read a .env file (python-dotenv) plus the process environment
- Streamlit Cloud runs read st.secrets ([PG] and [APP] tables)
- One shared instance: `from insurdash.config import config`
- PostgreSQL settings are only checked when the SQL source is actually used
"""

import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DATA_SOURCE_JSON = "json"
DATA_SOURCE_POSTGRES = "postgres"


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# Application settings: key -> (default, caster)
APP_SETTINGS: Dict[str, tuple] = {
    "DATA_SOURCE": (DATA_SOURCE_JSON, lambda v: str(v).strip().lower()),
    "DATA_FILE_PATH": ("data/insurance_data.json", str),
    "CACHE_TTL_SECONDS": (300, int),
    "LOG_LEVEL": ("INFO", lambda v: str(v).strip().upper()),
    "ENABLE_DEBUG_MODE": (False, _as_bool),
    "DB_POOL_SIZE": (5, int),
    "DB_POOL_RECYCLE": (3600, int),
}


def streamlit_secrets() -> Optional[Dict[str, Any]]:
    """st.secrets as a plain dict, or None outside Streamlit Cloud."""
    try:
        import streamlit as st
        secrets = st.secrets.to_dict()
    except Exception:
        # No secrets.toml: streamlit raises its own FileNotFoundError subclass
        return None
    return secrets or None


@dataclass
class DatabaseConfig:
    """Connection settings for the insurance_period tables"""
    host: str = ""
    port: int = 5432
    user: str = ""
    password: str = ""
    database: str = "car_insurance_db"
    sslmode: Optional[str] = None

    @classmethod
    def from_getter(cls, get: Callable[[str, Any], Any]) -> "DatabaseConfig":
        return cls(
            host=get("PGHOST", "") or "",
            port=int(get("PGPORT", 5432) or 5432),
            user=get("PGUSER", "") or "",
            password=get("PGPASSWORD", "") or "",
            database=get("PGDATABASE", "car_insurance_db") or "car_insurance_db",
            sslmode=get("PGSSLMODE", None) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)


class Config:
    """
    Shared settings object.

    Usage:
        from insurdash.config import config

        if config.data_source == "postgres":
            pg = config.get_db_config()      # raises ValueError if incomplete
        ttl = config.get_app_setting("CACHE_TTL_SECONDS")
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        secrets = streamlit_secrets()
        self.is_cloud = secrets is not None
        if self.is_cloud:
            pg_get, app_get = self._secrets_getters(secrets)
            logger.info("☁️ Settings from Streamlit secrets")
        else:
            self._load_env_file()
            pg_get = app_get = os.getenv
            logger.info("💻 Settings from environment")

        self._db_config = DatabaseConfig.from_getter(pg_get)
        self._app_config = self._read_app_settings(app_get)
        self._initialized = True

        logger.info(
            f"✅ Data source: {self.data_source} "
            f"({self._app_config['DATA_FILE_PATH'] if self.data_source == DATA_SOURCE_JSON else self._db_config.host or '<no PGHOST>'})"
        )

    @staticmethod
    def _secrets_getters(secrets: Dict[str, Any]):
        pg = secrets.get("PG", {})
        app = secrets.get("APP", {})
        return pg.get, app.get

    @staticmethod
    def _load_env_file():
        for candidate in (Path.cwd() / ".env", Path(__file__).resolve().parent.parent / ".env"):
            if candidate.exists():
                load_dotenv(candidate)
                logger.info(f"Loaded .env from: {candidate}")
                return

    @staticmethod
    def _read_app_settings(get: Callable[[str, Any], Any]) -> Dict[str, Any]:
        settings = {}
        for key, (default, cast) in APP_SETTINGS.items():
            raw = get(key, None)
            if raw is None or raw == "":
                settings[key] = default
                continue
            try:
                settings[key] = cast(raw)
            except (TypeError, ValueError):
                logger.warning(f"Invalid value for {key}: {raw!r}; using {default!r}")
                settings[key] = default
        return settings

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """
        PostgreSQL settings as a dict

        Raises:
            ValueError: PGHOST, PGUSER or PGPASSWORD is missing
        """
        if not self._db_config.is_configured():
            logger.error("PostgreSQL settings incomplete (PGHOST/PGUSER/PGPASSWORD)")
            raise ValueError("PostgreSQL settings incomplete: set PGHOST, PGUSER and PGPASSWORD.")
        return self._db_config.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        return bool(self._app_config.get(f"ENABLE_{feature.upper()}", False))

    @property
    def data_source(self) -> str:
        return self._app_config["DATA_SOURCE"]

    @property
    def app_config(self) -> Dict[str, Any]:
        return dict(self._app_config)


config = Config()

__all__ = [
    'APP_SETTINGS',
    'Config',
    'DatabaseConfig',
    'config',
    'DATA_SOURCE_JSON',
    'DATA_SOURCE_POSTGRES',
]
