from __future__ import annotations

import copy
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

import pytest

from app.models.hr_request import HRRequestCreate, RequestType
from app.services.accrual import OvertimeAccrualApplicator
from app.services.change_applicator import EMPLOYEES_COLLECTION, ChangeApplicator
from app.services.exceptions import DuplicateKeyError, RecordNotFoundError
from app.services.hr_requests import HRRequestService
from app.services.identity import StoreIdentityProvider
from app.services.overtime_requests import OvertimeRequestService
from app.services.store import DocumentStore


class InMemoryStore(DocumentStore):
    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._next_id = 1

    async def create(self, collection, record, key=None):
        if key is None:
            key = f"{collection}-{self._next_id}"
            self._next_id += 1
        docs = self.collections[collection]
        if key in docs:
            raise DuplicateKeyError(f"{collection}/{key} already exists")
        docs[key] = copy.deepcopy({k: v for k, v in record.items() if k != "id"})
        return key

    async def get(self, collection, key):
        doc = self.collections[collection].get(key)
        if doc is None:
            return None
        return {**copy.deepcopy(doc), "id": key}

    async def list(self, collection, filters=None, order_by="submitted_at"):
        rows: List[Dict[str, Any]] = []
        for key, doc in self.collections[collection].items():
            if all(doc.get(f) == v for f, v in (filters or {}).items()):
                rows.append({**copy.deepcopy(doc), "id": key})
        rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=True)
        return rows

    def _apply(self, doc, fields, unset):
        doc.update(copy.deepcopy({k: v for k, v in fields.items() if k != "id"}))
        for field in unset:
            doc.pop(field, None)

    async def update(self, collection, key, fields, unset: Iterable[str] = ()):
        doc = self.collections[collection].get(key)
        if doc is None:
            raise RecordNotFoundError(collection, key)
        self._apply(doc, fields, unset)

    async def update_if(self, collection, key, expected, fields, unset: Iterable[str] = ()):
        doc = self.collections[collection].get(key)
        if doc is None:
            return False
        if any(doc.get(f) != v for f, v in expected.items()):
            return False
        self._apply(doc, fields, unset)
        return True

    async def increment(self, collection, key, field, amount, marker: Optional[str] = None):
        doc = self.collections[collection].get(key)
        if doc is None:
            raise RecordNotFoundError(collection, key)
        applied = doc.setdefault("applied_requests", [])
        if marker is not None and marker in applied:
            return False
        doc[field] = doc.get(field, 0) + amount
        if marker is not None:
            applied.append(marker)
        return True

    async def delete(self, collection, key):
        self.collections[collection].pop(key, None)


class FakeClock:
    """Advances one minute per call so submissions have distinct timestamps"""

    def __init__(self, start: datetime = datetime(2026, 2, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity(store):
    return StoreIdentityProvider(store)


@pytest.fixture
def applicator(store, identity):
    return ChangeApplicator(store, identity, login_domain="example.com")


@pytest.fixture
def hr_service(store, applicator, clock):
    return HRRequestService(store, applicator, clock=clock)


@pytest.fixture
def accruals(store):
    return OvertimeAccrualApplicator(store)


@pytest.fixture
def overtime_service(store, accruals, clock):
    return OvertimeRequestService(store, accruals, clock=clock, max_hours_per_day=12)


async def seed_employee(store: InMemoryStore, cedula: str, **fields) -> None:
    record = {"cedula": cedula, "nombre": "Juan Pérez", "salario": 500000, "status": "Activo"}
    record.update(fields)
    await store.create(EMPLOYEES_COLLECTION, record, key=cedula)


def add_employee_request(**proposed) -> HRRequestCreate:
    data = {"cedula": "1", "nombre": "A", "password": "x"}
    data.update(proposed)
    return HRRequestCreate(
        type=RequestType.ADD_EMPLOYEE,
        title="Add employee",
        requested_by="user-123",
        requested_by_name="Juan Manager",
        requested_by_role="manager",
        proposed_data=data,
    )


def edit_request(target: str, request_type: RequestType = RequestType.SALARY_CHANGE, **proposed) -> HRRequestCreate:
    return HRRequestCreate(
        type=request_type,
        title="Change employee",
        requested_by="user-123",
        requested_by_name="Juan Manager",
        requested_by_role="manager",
        current_data={"salario": 500000},
        proposed_data=proposed or {"salario": 550000},
        target_employee_id=target,
        target_employee_name="Juan Pérez",
    )
