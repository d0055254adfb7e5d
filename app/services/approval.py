"""
Approval State Machine
Pure transition logic for dual-approval HR requests

Track A is the general manager sign-off, track B the HR sign-off. A request is
``approved`` once both tracks are set, in either order, and ``rejected`` as
soon as anyone rejects it. Both are terminal. The function below performs no
I/O: it returns the fields to persist and leaves writing, side effects and
rollback to the caller.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from app.models.hr_request import Approval, ApprovalAction, HRRequest, RequestStatus
from app.services.exceptions import ValidationError


DEFAULT_REJECTION_REASON = "no comments"

# action -> (approval field set by it, field of the other track,
#            status while the other track is missing)
_TRACKS = {
    ApprovalAction.APPROVE_GM: ("general_manager_approval", "hr_approval", RequestStatus.APPROVED_BY_GM),
    ApprovalAction.APPROVE_HR: ("hr_approval", "general_manager_approval", RequestStatus.APPROVED_BY_HR),
}


@dataclass(frozen=True)
class Transition:
    """Outcome of applying an action to a request"""
    previous_status: RequestStatus
    status: RequestStatus
    fields: Dict[str, Any] = field(default_factory=dict)
    track_field: Optional[str] = None

    @property
    def fully_approved(self) -> bool:
        return self.status == RequestStatus.APPROVED


def derive_status(request: HRRequest) -> RequestStatus:
    """Status implied by which approvals are present and whether it was rejected"""
    if request.rejected_at is not None:
        return RequestStatus.REJECTED
    has_gm = request.general_manager_approval is not None
    has_hr = request.hr_approval is not None
    if has_gm and has_hr:
        return RequestStatus.APPROVED
    if has_gm:
        return RequestStatus.APPROVED_BY_GM
    if has_hr:
        return RequestStatus.APPROVED_BY_HR
    return RequestStatus.PENDING


def transition(
    request: HRRequest,
    action: ApprovalAction,
    approver: str,
    comments: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Transition:
    """
    Compute the next state of `request` under `action`.

    Raises ValidationError for actions on finalized requests and for a second
    approval on a track that is already signed.
    """
    now = now or datetime.utcnow()
    approver = (approver or "").strip()
    if not approver:
        raise ValidationError("Approver is required")

    current = request.status
    if current.is_terminal:
        raise ValidationError("request already finalized")

    if action == ApprovalAction.REJECT:
        return Transition(
            previous_status=current,
            status=RequestStatus.REJECTED,
            fields={
                "status": RequestStatus.REJECTED,
                "rejected_by": approver,
                "rejected_at": now,
                "rejection_reason": comments or DEFAULT_REJECTION_REASON,
                "processed_at": now,
            },
        )

    if action not in _TRACKS:
        raise ValidationError(f"Unknown action: {action}")

    track_field, other_field, partial_status = _TRACKS[action]
    if getattr(request, track_field) is not None or current == partial_status:
        raise ValidationError(f"{track_field} is already set on request {request.id}")

    new_status = RequestStatus.APPROVED if getattr(request, other_field) is not None else partial_status
    fields: Dict[str, Any] = {
        "status": new_status,
        track_field: Approval(approved_by=approver, approved_at=now, comments=comments or ""),
    }
    if new_status == RequestStatus.APPROVED:
        fields["processed_at"] = now

    return Transition(
        previous_status=current,
        status=new_status,
        fields=fields,
        track_field=track_field,
    )
