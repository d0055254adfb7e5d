"""
Change Applicator
Performs the employee mutation carried by a fully approved HR request
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as SchemaError

from app.config import settings
from app.models.employee import EMPLOYEE_KEY_FIELD, NewEmployee
from app.models.hr_request import CREDENTIAL_FIELD, EDIT_REQUEST_TYPES, HRRequest, RequestType
from app.services.exceptions import DuplicateKeyError, NotFoundError, RecordNotFoundError, ValidationError
from app.services.identity import IdentityProvider
from app.services.store import DocumentStore


logger = logging.getLogger(__name__)

EMPLOYEES_COLLECTION = "employees"


class ChangeApplicator:
    """
    Applies approved requests to the `employees` collection.

    Either the employee record is fully created/updated or nothing is
    persisted; an account created for a new employee is removed again if the
    record itself cannot be written.
    """

    def __init__(self, store: DocumentStore, identity: IdentityProvider, login_domain: Optional[str] = None):
        self._store = store
        self._identity = identity
        self._login_domain = login_domain or settings.LOGIN_EMAIL_DOMAIN

    async def apply(self, request: HRRequest, credential: Optional[str] = None) -> None:
        handler = self._HANDLERS[request.type]
        logger.info("Applying %s request %s", request.type.value, request.id)
        await handler(self, request, credential)

    async def _add_employee(self, request: HRRequest, credential: Optional[str]) -> None:
        if not credential:
            raise ValidationError(f"Request {request.id} has no credential for the new employee")

        data = {k: v for k, v in request.proposed_data.items() if k != CREDENTIAL_FIELD}
        try:
            employee = NewEmployee.model_validate(data)
        except SchemaError as e:
            raise ValidationError(f"Invalid employee data in request {request.id}: {e}")
        key = employee.cedula

        if await self._store.get(EMPLOYEES_COLLECTION, key) is not None:
            raise DuplicateKeyError(f"An employee with {EMPLOYEE_KEY_FIELD} {key} already exists")

        account_id = await self._identity.create_account(
            employee.login_id(self._login_domain),
            credential,
            employee_id=key,
            role=employee.posicion or "employee",
        )

        record = employee.model_dump(mode="json", exclude_none=True)
        record["account_id"] = account_id
        try:
            await self._store.create(EMPLOYEES_COLLECTION, record, key=key)
        except Exception:
            logger.error("Employee %s could not be stored, removing account %s", key, account_id)
            await self._identity.delete_account(account_id)
            raise

        logger.info("Employee %s created", key)

    async def _update_employee(self, request: HRRequest, credential: Optional[str]) -> None:
        target = request.target_employee_id
        if not target:
            raise ValidationError(f"Request {request.id} has no target employee")

        # The natural key is never rewritten by an edit
        fields: Dict[str, Any] = {
            k: v for k, v in request.proposed_data.items()
            if k not in (EMPLOYEE_KEY_FIELD, CREDENTIAL_FIELD)
        }
        if not fields:
            if await self._store.get(EMPLOYEES_COLLECTION, target) is None:
                raise NotFoundError(f"Employee {target} no longer exists")
            raise ValidationError(f"Request {request.id} carries no changes for employee {target}")

        try:
            await self._store.update(EMPLOYEES_COLLECTION, target, fields)
        except RecordNotFoundError:
            raise NotFoundError(f"Employee {target} no longer exists")

        logger.info("Employee %s updated: %s", target, ", ".join(sorted(fields)))

    _HANDLERS = {
        RequestType.ADD_EMPLOYEE: _add_employee,
        **dict.fromkeys(EDIT_REQUEST_TYPES, _update_employee),
    }


_unhandled = set(RequestType) - set(ChangeApplicator._HANDLERS)
if _unhandled:
    raise RuntimeError(f"ChangeApplicator has no handler for: {sorted(t.value for t in _unhandled)}")
