from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccountNotFoundError, ConcurrencyConflictError
from app.db.models.player_accounts import PlayerAccount
from app.db.repo.player_accounts_repo import PlayerAccountsRepo

logger = structlog.get_logger(__name__)


async def load_account(session: AsyncSession, *, user_id: int) -> PlayerAccount:
    account = await PlayerAccountsRepo.get_by_user_id(session, user_id)
    if account is None:
        raise AccountNotFoundError(f"player account {user_id} not found")
    return account


async def write_account(
    session: AsyncSession,
    *,
    account: PlayerAccount,
    values: dict[str, object],
    now_utc: datetime,
) -> None:
    """Writes all changed account fields in one version-guarded UPDATE."""
    swapped = await PlayerAccountsRepo.compare_and_swap(
        session,
        user_id=account.user_id,
        expected_version=account.version,
        values={**values, "updated_at": now_utc},
    )
    if not swapped:
        logger.info(
            "player_account_version_conflict",
            user_id=account.user_id,
            expected_version=account.version,
            fields=sorted(values),
        )
        raise ConcurrencyConflictError(
            f"player account {account.user_id} changed concurrently (version {account.version})"
        )
