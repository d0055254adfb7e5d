"""
Workflow Exceptions
Error taxonomy shared by the store, the applicators and the workflow services
"""
from typing import Optional


class WorkflowError(Exception):
    """Base class for every error raised by the approval workflow"""


class ValidationError(WorkflowError):
    """Malformed input or an action that is out of sequence for the request"""


class NotFoundError(WorkflowError):
    """A request or a target record does not exist"""


class RecordNotFoundError(NotFoundError):
    """Raised by a document store when a keyed record is missing"""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"{collection}/{key} not found")


class DuplicateKeyError(WorkflowError):
    """A record with the same natural key already exists"""


class IdentityConflictError(WorkflowError):
    """The login identity is already registered with the identity provider"""


class AccrualError(WorkflowError):
    """Internal accrual failure, e.g. a date that maps to no weekday bucket"""


class ApplyFailure(WorkflowError):
    """Applying an approved request failed; the request state was rolled back"""

    def __init__(self, request_id: str, message: str, cause: Optional[BaseException] = None):
        self.request_id = request_id
        self.cause = cause
        super().__init__(message)
