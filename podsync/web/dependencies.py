"""Shared helpers for route handlers.

Authentication happens in front of this service; the username in the path
is trusted and only has to name an existing account.
"""

import asyncio

from fastapi import Request

from podsync.sync.accounts import AccountService


async def resolve_user(request: Request, username: str) -> int:
    """
    Resolve the path username to a user id.

    Raises:
        NotFound: If the user does not exist (rendered as 404).
    """
    accounts: AccountService = request.app.state.accounts
    return await asyncio.to_thread(accounts.resolve_user, username)
