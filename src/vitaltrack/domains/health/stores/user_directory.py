"""User directory: accounts, credentials and the active session pointer.

Accounts live in one serialized collection under ``users``; the active
session is a snapshot of one account under ``currentUser``. Lookups are
linear scans over the whole collection, which is fine for a single-device
dataset.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any

from vitaltrack.core.storage.collection_store import (
    CURRENT_USER_KEY,
    USERS_KEY,
    CollectionStore,
)
from vitaltrack.core.storage.key_value import StorageUnavailableError
from vitaltrack.core.storage.models import PROFILE_FIELDS, Account

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Base class for user directory failures."""


class DuplicateEmailError(DirectoryError):
    """Raised when an email is already used by another account."""


class InvalidCredentialsError(DirectoryError):
    """Raised when no account matches an (email, password) pair."""


class AccountNotFoundError(DirectoryError):
    """Raised when an account identifier matches no stored account."""


class UserDirectory:
    """Owns account records and resolves the active session.

    Emails are compared exactly as given. Callers normalize case before
    calling in (see ``validation.normalize_email``).

    Usage::

        directory = UserDirectory(CollectionStore(medium))
        account = await directory.register("Ada", "ada@example.com", "secret1")
        session = await directory.get_current_session()
    """

    def __init__(self, collections: CollectionStore) -> None:
        self._collections = collections

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    async def _load_accounts(self) -> list[Account]:
        return [Account.from_dict(item) for item in await self._collections.read_list(USERS_KEY)]

    async def _save_accounts(self, accounts: list[Account]) -> None:
        await self._collections.write_list(USERS_KEY, [a.to_dict() for a in accounts])

    async def _set_session(self, account: Account) -> None:
        async with self._collections.locked(CURRENT_USER_KEY):
            await self._collections.write_document(CURRENT_USER_KEY, account.to_dict())

    async def _refresh_session(self, account: Account) -> None:
        """Rewrite the session snapshot only if it still points at ``account``.

        The check and the write share the session lock so a concurrent
        logout cannot be undone.
        """
        async with self._collections.locked(CURRENT_USER_KEY):
            try:
                snapshot = await self._collections.read_document(CURRENT_USER_KEY)
            except StorageUnavailableError:
                logger.exception("Session unreadable; snapshot not refreshed")
                return
            if snapshot is None or str(snapshot.get("id", "")) != account.id:
                return
            await self._collections.write_document(CURRENT_USER_KEY, account.to_dict())

    # ------------------------------------------------------------------
    # Registration / authentication
    # ------------------------------------------------------------------

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        *,
        age: int | None = None,
        gender: str | None = None,
        height: float | None = None,
        weight: float | None = None,
        profile_photo: str | None = None,
    ) -> Account:
        """Create an account and make it the active session.

        Raises:
            DuplicateEmailError: If an account already uses ``email``.
            StorageUnavailableError: If the medium cannot be read or written.
        """
        async with self._collections.locked(USERS_KEY):
            accounts = await self._load_accounts()
            if any(a.email == email for a in accounts):
                logger.info("Registration rejected: email already registered")
                raise DuplicateEmailError("User with this email already exists")

            account = Account(
                id=self._new_id(),
                name=name,
                email=email,
                password=password,
                age=age,
                gender=gender,
                height=height,
                weight=weight,
                profile_photo=profile_photo,
            )
            accounts.append(account)
            await self._save_accounts(accounts)

        await self._set_session(account)
        logger.info("Registered account %s", account.id)
        return account

    async def login(self, email: str, password: str) -> Account:
        """Activate the account matching ``email`` and ``password`` exactly.

        Raises:
            InvalidCredentialsError: If no account matches.
        """
        accounts = await self._load_accounts()
        account = next(
            (a for a in accounts if a.email == email and a.password == password),
            None,
        )
        if account is None:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentialsError("Invalid email or password")

        await self._set_session(account)
        logger.info("Account %s logged in", account.id)
        return account

    async def logout(self) -> None:
        """Clear the active session. Safe to call with no session."""
        async with self._collections.locked(CURRENT_USER_KEY):
            await self._collections.remove(CURRENT_USER_KEY)
        logger.info("Session cleared")

    async def get_current_session(self) -> Account | None:
        """Return the active account, re-resolved against the collection.

        A missing, stale or unreadable session pointer all read as no session.
        """
        try:
            snapshot = await self._collections.read_document(CURRENT_USER_KEY)
            if snapshot is None:
                return None
            account_id = str(snapshot.get("id", ""))
            accounts = await self._load_accounts()
        except StorageUnavailableError:
            logger.exception("Session lookup failed; treating as no session")
            return None

        account = next((a for a in accounts if a.id == account_id), None)
        if account is None:
            logger.warning("Session points at unknown account %s", account_id)
        return account

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def update_profile(self, account_id: str, **changes: Any) -> Account:
        """Shallow-merge ``changes`` onto an account.

        Only supplied fields are replaced; passing ``None`` clears an
        optional field. If the account is the active session, the session
        snapshot is refreshed too.

        Raises:
            ValueError: If a change names a field that is not a profile field.
            AccountNotFoundError: If ``account_id`` matches no account.
            DuplicateEmailError: If the new email belongs to another account.
        """
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        async with self._collections.locked(USERS_KEY):
            accounts = await self._load_accounts()
            index = next((i for i, a in enumerate(accounts) if a.id == account_id), None)
            if index is None:
                raise AccountNotFoundError(f"User not found: {account_id}")

            new_email = changes.get("email")
            if new_email is not None and any(
                a.email == new_email and a.id != account_id for a in accounts
            ):
                raise DuplicateEmailError("User with this email already exists")

            updated = replace(accounts[index], **changes)
            accounts[index] = updated
            await self._save_accounts(accounts)

        await self._refresh_session(updated)

        logger.info("Updated profile %s (fields=%s)", account_id, sorted(changes))
        return updated

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_account(self, account_id: str) -> Account | None:
        accounts = await self._load_accounts()
        return next((a for a in accounts if a.id == account_id), None)

    async def count_accounts(self) -> int:
        return len(await self._load_accounts())
