"""
Document Store
Collection-oriented persistence interface used by the workflow engine,
plus its MongoDB implementation on Motor
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from app.services.exceptions import DuplicateKeyError, RecordNotFoundError


logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class DocumentStore(ABC):
    """
    Async document store keyed by opaque string ids.

    Records handed out always carry their key under ``id``. ``expected``
    mappings used by conditional updates treat ``None`` as "field unset".
    """

    @abstractmethod
    async def create(self, collection: str, record: Record, key: Optional[str] = None) -> str:
        """Insert a record and return its key. Raises DuplicateKeyError if `key` is taken."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Record]:
        """Fetch a record by key, None if it does not exist"""

    @abstractmethod
    async def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: str = "submitted_at",
    ) -> List[Record]:
        """Records matching every filter by equality, newest `order_by` first"""

    @abstractmethod
    async def update(
        self,
        collection: str,
        key: str,
        fields: Record,
        unset: Iterable[str] = (),
    ) -> None:
        """Merge `fields` into the record and drop `unset`. Raises RecordNotFoundError."""

    @abstractmethod
    async def update_if(
        self,
        collection: str,
        key: str,
        expected: Record,
        fields: Record,
        unset: Iterable[str] = (),
    ) -> bool:
        """Atomically apply the update only while the record matches `expected`"""

    @abstractmethod
    async def increment(
        self,
        collection: str,
        key: str,
        field: str,
        amount: float,
        marker: Optional[str] = None,
    ) -> bool:
        """
        Atomically add `amount` to a numeric field.

        With a `marker` the increment happens at most once per marker; the
        marker is remembered in the record's ``applied_requests`` list.
        Returns False when the marker was already applied.
        """

    @abstractmethod
    async def delete(self, collection: str, key: str) -> None:
        """Remove a record if present"""


class MongoStore(DocumentStore):
    """DocumentStore backed by a Motor database; keys are stored as string `_id`s"""

    def __init__(self, database: AsyncIOMotorDatabase):
        self._db = database

    @staticmethod
    def _from_mongo(doc: Optional[Record]) -> Optional[Record]:
        if doc is None:
            return None
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return doc

    @staticmethod
    def _update_document(fields: Record, unset: Iterable[str]) -> Record:
        update: Record = {}
        if fields:
            update["$set"] = {k: v for k, v in fields.items() if k != "id"}
        unset = list(unset)
        if unset:
            update["$unset"] = {field: "" for field in unset}
        return update

    async def create(self, collection: str, record: Record, key: Optional[str] = None) -> str:
        doc = {k: v for k, v in record.items() if k != "id"}
        doc["_id"] = key or str(ObjectId())
        try:
            await self._db[collection].insert_one(doc)
        except MongoDuplicateKeyError:
            raise DuplicateKeyError(f"{collection}/{doc['_id']} already exists")
        return doc["_id"]

    async def get(self, collection: str, key: str) -> Optional[Record]:
        doc = await self._db[collection].find_one({"_id": key})
        return self._from_mongo(doc)

    async def list(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: str = "submitted_at",
    ) -> List[Record]:
        cursor = self._db[collection].find(filters or {}).sort(order_by, DESCENDING)
        return [self._from_mongo(doc) async for doc in cursor]

    async def update(
        self,
        collection: str,
        key: str,
        fields: Record,
        unset: Iterable[str] = (),
    ) -> None:
        update = self._update_document(fields, unset)
        if not update:
            return
        result = await self._db[collection].update_one({"_id": key}, update)
        if result.matched_count == 0:
            raise RecordNotFoundError(collection, key)

    async def update_if(
        self,
        collection: str,
        key: str,
        expected: Record,
        fields: Record,
        unset: Iterable[str] = (),
    ) -> bool:
        # {field: None} matches both null and missing fields
        query = {"_id": key, **expected}
        update = self._update_document(fields, unset)
        result = await self._db[collection].update_one(query, update)
        return result.matched_count == 1

    async def increment(
        self,
        collection: str,
        key: str,
        field: str,
        amount: float,
        marker: Optional[str] = None,
    ) -> bool:
        query: Record = {"_id": key}
        update: Record = {"$inc": {field: amount}}
        if marker is not None:
            query["applied_requests"] = {"$ne": marker}
            update["$addToSet"] = {"applied_requests": marker}

        result = await self._db[collection].update_one(query, update)
        if result.matched_count == 1:
            return True

        if await self._db[collection].count_documents({"_id": key}, limit=1) == 0:
            raise RecordNotFoundError(collection, key)
        logger.info("Skipping %s on %s/%s, marker %s already applied", field, collection, key, marker)
        return False

    async def delete(self, collection: str, key: str) -> None:
        await self._db[collection].delete_one({"_id": key})
