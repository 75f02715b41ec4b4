from datetime import datetime, timezone

from barometre.core.config import Settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.DB_SCHEMA == "analytics"
    assert s.MAX_RESULTS_DEFAULT == 10
    assert s.MAX_RESULTS_CAP == 50
    assert s.DEFAULT_END_DATE == datetime(2022, 5, 1, 11, tzinfo=timezone.utc)
    assert s.APP_OFFLINE is False
    assert (s.API_HOST, s.API_PORT) == ("127.0.0.1", 8080)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("APP_OFFLINE", "true")
    monkeypatch.setenv("DEFAULT_END_DATE", "2023-01-01T00:00:00Z")
    monkeypatch.setenv("MAX_RESULTS_CAP", "100")
    s = Settings(_env_file=None)
    assert s.APP_OFFLINE is True
    assert s.DEFAULT_END_DATE == datetime(2023, 1, 1, tzinfo=timezone.utc)
    assert s.MAX_RESULTS_CAP == 100
