import pytest

from insurdash.config import Config, DatabaseConfig, config
from insurdash.db import build_connection_url


def test_config_is_singleton():
    assert Config() is config


def test_default_settings():
    assert config.get_app_setting('CACHE_TTL_SECONDS') > 0
    assert config.data_source in ('json', 'postgres')
    assert config.get_app_setting('MISSING', 'fallback') == 'fallback'


def test_database_config_requires_credentials():
    assert not DatabaseConfig('', 5432, 'u', 'p', 'db').is_configured()
    assert DatabaseConfig('h', 5432, 'u', 'p', 'db').is_configured()


def test_get_db_config_raises_when_unset(monkeypatch):
    monkeypatch.setattr(config, '_db_config', DatabaseConfig('', 5432, '', '', 'car_insurance_db'))
    with pytest.raises(ValueError):
        config.get_db_config()


@pytest.mark.parametrize('sslmode, expected', [
    (None, 'postgresql+psycopg2://u:p%40ss@h:5432/db'),
    ('require', 'postgresql+psycopg2://u:p%40ss@h:5432/db?sslmode=require'),
])
def test_build_connection_url(sslmode, expected):
    db_config = {'host': 'h', 'port': 5432, 'user': 'u', 'password': 'p@ss', 'database': 'db', 'sslmode': sslmode}
    assert build_connection_url(db_config).render_as_string(hide_password=False) == expected


def test_reset_db_engine_disposes_shared_engine(monkeypatch):
    from insurdash import db

    class FakeEngine:
        disposed = False

        def dispose(self):
            self.disposed = True

    engine = FakeEngine()
    monkeypatch.setattr(db, '_engine', engine)
    db.reset_db_engine()

    assert engine.disposed
    assert db._engine is None
