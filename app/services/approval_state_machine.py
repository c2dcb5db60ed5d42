"""
Order Approval State Machine

This module is the SINGLE SOURCE OF TRUTH for purchase/work order approval
transitions. All status actions must go through this module.

Lifecycle:
    DRAFT -> APPROVED_LEVEL_1 -> APPROVED_LEVEL_2 -> COMPLETED
    any status except COMPLETED -> SUSPENDED -> (restored from flags)

Level 1 approval skips straight to APPROVED_LEVEL_2 for small orders, or
when the approver also holds level 2 authority.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException

from app.config import settings
from app.core.decimal_utils import to_decimal
from app.schemas.order import (
    ApprovalState,
    ApprovalStatus,
    ApprovalTransitionRequest,
    ApprovalTransitionResponse,
    StatusAction,
)

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION RULES
# =============================================================================

# Statuses each action may start from
ACTION_SOURCES: Dict[StatusAction, List[ApprovalStatus]] = {
    StatusAction.APPROVE1: [ApprovalStatus.DRAFT],
    StatusAction.APPROVE2: [ApprovalStatus.APPROVED_LEVEL_1],
    StatusAction.COMPLETE: [ApprovalStatus.APPROVED_LEVEL_2],
    StatusAction.SUSPEND: [
        ApprovalStatus.DRAFT,
        ApprovalStatus.APPROVED_LEVEL_1,
        ApprovalStatus.APPROVED_LEVEL_2,
        ApprovalStatus.SUSPENDED,
    ],
    StatusAction.UNSUSPEND: list(ApprovalStatus),
}

ACTION_ERRORS: Dict[StatusAction, str] = {
    StatusAction.APPROVE1: "Only DRAFT can be approved (level 1)",
    StatusAction.APPROVE2: "Only level 1 approved can be approved (level 2)",
    StatusAction.COMPLETE: "Only level 2 approved can be completed",
    StatusAction.SUSPEND: "Completed order cannot be suspended",
}

# Human-readable action names
ACTION_LABELS: Dict[StatusAction, str] = {
    StatusAction.APPROVE1: "Approve (Level 1)",
    StatusAction.APPROVE2: "Approve (Level 2)",
    StatusAction.COMPLETE: "Complete",
    StatusAction.SUSPEND: "Suspend",
    StatusAction.UNSUSPEND: "Unsuspend",
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def can_apply(status: ApprovalStatus, action: StatusAction) -> bool:
    """Check if an action is allowed from the current status."""
    return status in ACTION_SOURCES.get(action, [])


def get_allowed_actions(status: ApprovalStatus) -> List[StatusAction]:
    """Actions that can be applied from the current status."""
    return [action for action in StatusAction if can_apply(status, action)]


def validate_action(state: ApprovalState, action: StatusAction, actor_id: int) -> None:
    """
    Validate a status action. Raises HTTPException if invalid.

    Checks the source status, then the segregation-of-duties rules:
    the creator never approves, the level 1 approver never approves level 2.
    """
    if not can_apply(state.approval_status, action):
        raise HTTPException(status_code=400, detail=ACTION_ERRORS[action])

    if action == StatusAction.APPROVE1 and state.created_by_id == actor_id:
        raise HTTPException(status_code=400, detail="Creator cannot approve level 1")

    if action == StatusAction.APPROVE2:
        if state.created_by_id == actor_id:
            raise HTTPException(status_code=400, detail="Creator cannot approve level 2")
        if state.approved1_by_id == actor_id:
            raise HTTPException(
                status_code=400, detail="Level 1 approver cannot approve level 2"
            )


def should_auto_approve_level_2(
    amount: Decimal,
    actor_can_approve_level_2: bool,
    limit: Optional[Decimal] = None,
) -> bool:
    """Small orders, or an approver holding level 2 authority, skip level 2."""
    if limit is None:
        limit = Decimal(settings.AUTO_APPROVE_LEVEL_2_LIMIT)
    return to_decimal(amount) <= limit or actor_can_approve_level_2


def restored_status(state: ApprovalState) -> ApprovalStatus:
    """Status an unsuspended order returns to, read from its flags."""
    if state.is_complete:
        return ApprovalStatus.COMPLETED
    if state.is_approved2:
        return ApprovalStatus.APPROVED_LEVEL_2
    if state.is_approved1:
        return ApprovalStatus.APPROVED_LEVEL_1
    return ApprovalStatus.DRAFT


# =============================================================================
# TRANSITION EXECUTOR
# =============================================================================

def apply_status_action(
    state: ApprovalState,
    action: StatusAction,
    actor_id: int,
    actor_can_approve_level_2: bool = False,
    amount: Optional[Decimal] = None,
) -> Tuple[ApprovalState, bool]:
    """
    Apply a status action to an order's approval state.

    This function:
    1. Validates the action is allowed
    2. Updates status and flags
    3. Sets audit fields (who and when)

    Args:
        state: Current approval state (not modified)
        action: Action to apply
        actor_id: ID of user performing the action
        actor_can_approve_level_2: Actor holds level 2 approval authority
        amount: Order amount sent with the action, if any

    Returns:
        (new state, whether level 2 was auto-approved)

    Raises:
        HTTPException: If the action is not allowed
    """
    validate_action(state, action, actor_id)

    now = datetime.now(timezone.utc)
    update = {}
    auto_approved = False

    if action == StatusAction.APPROVE1:
        update.update(
            approval_status=ApprovalStatus.APPROVED_LEVEL_1,
            is_approved1=True,
            approved1_by_id=actor_id,
            approved1_at=now,
        )
        decision_amount = state.amount if amount is None else amount
        if should_auto_approve_level_2(decision_amount, actor_can_approve_level_2):
            update.update(
                approval_status=ApprovalStatus.APPROVED_LEVEL_2,
                is_approved2=True,
                approved2_by_id=actor_id,
                approved2_at=now,
            )
            auto_approved = True

    elif action == StatusAction.APPROVE2:
        update.update(
            approval_status=ApprovalStatus.APPROVED_LEVEL_2,
            is_approved2=True,
            approved2_by_id=actor_id,
            approved2_at=now,
        )

    elif action == StatusAction.COMPLETE:
        update.update(
            approval_status=ApprovalStatus.COMPLETED,
            is_complete=True,
            completed_by_id=actor_id,
            completed_at=now,
        )

    elif action == StatusAction.SUSPEND:
        update.update(
            approval_status=ApprovalStatus.SUSPENDED,
            is_suspended=True,
            suspended_by_id=actor_id,
            suspended_at=now,
        )

    elif action == StatusAction.UNSUSPEND:
        update.update(
            approval_status=restored_status(state),
            is_suspended=False,
        )

    if amount is not None:
        update["amount"] = to_decimal(amount)

    new_state = state.model_copy(update=update)
    logger.info(
        "Approval action %s by user %s: %s -> %s",
        action.value, actor_id, state.approval_status.value, new_state.approval_status.value,
    )
    return new_state, auto_approved


def transition(request: ApprovalTransitionRequest) -> ApprovalTransitionResponse:
    """Endpoint-facing wrapper around apply_status_action."""
    new_state, auto_approved = apply_status_action(
        request.state,
        request.action,
        request.actor_id,
        actor_can_approve_level_2=request.actor_can_approve_level_2,
        amount=request.submitted_amount,
    )
    label = ACTION_LABELS[request.action]
    if auto_approved:
        label = f"{label} + Auto Approve (Level 2)"
    return ApprovalTransitionResponse(
        state=new_state,
        action_label=label,
        auto_approved_level_2=auto_approved,
    )
