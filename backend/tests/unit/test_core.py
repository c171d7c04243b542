from __future__ import annotations

import json
import logging

import pytest
from fastapi import HTTPException

from conferencia.core.config import Settings
from conferencia.core.logging import JsonFormatter
from conferencia.core.security import SlidingWindowRateLimiter, enforce_rate_limit
from conferencia.main import _build_cors_origins


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.default_margin_percent == 50.0
    assert settings.fuzzy_min_score == 0.8
    assert settings.icms_st_exempt_codes == ["60"]
    assert settings.tax_enrichment is True
    assert settings.diagnostics_enabled is False
    assert settings.max_upload_size_bytes == 10 * 1024 * 1024


def test_settings_split_comma_separated_values() -> None:
    settings = Settings(
        _env_file=None,
        cors_origins="http://a.local, http://b.local,",
        icms_st_exempt_codes=" 60 ,500, ",
    )
    assert settings.cors_origins == ["http://a.local", "http://b.local"]
    assert settings.icms_st_exempt_codes == ["60", "500"]


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONFERENCIA_DEFAULT_MARGIN_PERCENT", "35")
    monkeypatch.setenv("CONFERENCIA_DIAGNOSTICS_ENABLED", "true")
    settings = Settings(_env_file=None)
    assert settings.default_margin_percent == 35.0
    assert settings.diagnostics_enabled is True


def test_cors_origins_never_allow_wildcard(monkeypatch: pytest.MonkeyPatch) -> None:
    from conferencia import main

    monkeypatch.setattr(main.settings, "cors_origins", ["*", "http://app.local"])
    assert _build_cors_origins() == ["http://app.local"]

    monkeypatch.setattr(main.settings, "cors_origins", ["*"])
    assert _build_cors_origins() == ["http://localhost:5173", "http://127.0.0.1:5173"]


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        name="conferencia.diagnostics",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="%s %s",
        args=("index.built", "rows=3"),
        exc_info=None,
    )
    record.event = "index.built"
    record.payload = {"rows": 3}

    data = json.loads(JsonFormatter().format(record))
    assert data["level"] == "INFO"
    assert data["logger"] == "conferencia.diagnostics"
    assert data["message"] == "index.built rows=3"
    assert data["extra"] == {"event": "index.built", "payload": {"rows": 3}}


def test_rate_limiter_blocks_after_limit() -> None:
    limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
    limiter.hit("10.0.0.1")
    limiter.hit("10.0.0.1")
    with pytest.raises(HTTPException) as excinfo:
        enforce_rate_limit(limiter, "10.0.0.1")
    assert excinfo.value.status_code == 429

    # altri client non sono influenzati
    limiter.hit("10.0.0.2")

    limiter.reset()
    limiter.hit("10.0.0.1")


def test_rate_limiter_window_expires(monkeypatch: pytest.MonkeyPatch) -> None:
    from conferencia.core import security

    now = [1000.0]
    monkeypatch.setattr(security.time, "time", lambda: now[0])
    limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
    limiter.hit("ip")
    now[0] += 61
    limiter.hit("ip")


def test_rate_limiter_forgets_idle_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    from conferencia.core import security

    now = [0.0]
    monkeypatch.setattr(security.time, "time", lambda: now[0])
    limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=60)
    for idx in range(1000):
        limiter.hit(f"10.0.{idx // 256}.{idx % 256}")
    assert len(limiter) == 1000

    now[0] = 10000.0
    limiter.hit("10.9.9.9")
    assert len(limiter) == 1
