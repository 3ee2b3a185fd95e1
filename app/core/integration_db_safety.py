"""Guard that keeps the integration suite away from databases it must not wipe.

The integration fixtures TRUNCATE every quest-engine table between tests, so
the target URL has to look unmistakably like a disposable local database.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

LOCAL_DB_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "quest_engine_postgres",
    }
)


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


@dataclass(frozen=True, slots=True)
class _Target:
    url: URL
    database_name: str
    host: str


def _requires_postgres(target: _Target) -> str | None:
    if target.url.get_backend_name() == "postgresql":
        return None
    return "Quest flow tests rely on PostgreSQL row locks and CHECK constraints."


def _requires_database_name(target: _Target) -> str | None:
    return None if target.database_name else "Database name is empty."


def _requires_test_name(target: _Target) -> str | None:
    if "test" in target.database_name.lower():
        return None
    return f"Database '{target.database_name}' is not named as a test database (missing 'test')."


def _requires_local_host(target: _Target) -> str | None:
    if target.host in LOCAL_DB_HOSTS:
        return None
    return f"Host '{target.host}' is not a local database host."


# Checked in order; the first failing rule is reported.
_RULES: tuple[Callable[[_Target], str | None], ...] = (
    _requires_postgres,
    _requires_database_name,
    _requires_test_name,
    _requires_local_host,
)


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    url = make_url(database_url)
    target = _Target(
        url=url,
        database_name=(url.database or "").strip(),
        host=(url.host or "").strip().lower(),
    )
    reason = next((problem for rule in _RULES if (problem := rule(target)) is not None), None)
    return IntegrationDbSafetyResult(
        is_safe=reason is None,
        reason=reason or "ok",
        database_name=target.database_name,
        host=target.host,
    )


def assert_safe_integration_db(database_url: str) -> None:
    verdict = assess_integration_db_safety(database_url)
    if verdict.is_safe:
        return
    raise RuntimeError(
        "Refusing to run integration tests with destructive TRUNCATE against "
        f"database '{verdict.database_name}' on host '{verdict.host}': {verdict.reason} "
        "Point DATABASE_URL at a local PostgreSQL database such as 'quest_engine_test'."
    )
