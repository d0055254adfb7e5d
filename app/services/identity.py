"""
Identity Provider
Login accounts created when an add-employee request is applied
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from passlib.context import CryptContext

from app.services.exceptions import DuplicateKeyError, IdentityConflictError
from app.services.store import DocumentStore


logger = logging.getLogger(__name__)

ACCOUNTS_COLLECTION = "accounts"

# Password hashing
# Note: Using pbkdf2_sha256 as primary for better compatibility across Python versions
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash password"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(plain_password, hashed_password)


class IdentityProvider(ABC):
    """Creates and removes login identities"""

    @abstractmethod
    async def create_account(self, login_id: str, credential: str, **claims: Any) -> str:
        """Register `login_id`. Raises IdentityConflictError if it is already in use."""

    @abstractmethod
    async def delete_account(self, account_id: str) -> None:
        """Remove an account created by `create_account`"""


class StoreIdentityProvider(IdentityProvider):
    """Keeps accounts in the document store, keyed by login id"""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def create_account(self, login_id: str, credential: str, **claims: Any) -> str:
        login_id = login_id.strip().lower()
        account = {
            "login_id": login_id,
            "password_hash": get_password_hash(credential),
            "created_at": datetime.utcnow().isoformat(),
            **claims,
        }
        try:
            account_id = await self._store.create(ACCOUNTS_COLLECTION, account, key=login_id)
        except DuplicateKeyError:
            raise IdentityConflictError(f"Login {login_id} is already registered")

        logger.info("Created account %s", account_id)
        return account_id

    async def delete_account(self, account_id: str) -> None:
        await self._store.delete(ACCOUNTS_COLLECTION, account_id)
        logger.info("Deleted account %s", account_id)
