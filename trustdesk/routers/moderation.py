"""Moderation command endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..schemas import ModerationActionRequest, ModerationActionResponse, ModerationDecisionResponse
from ..services import Actor, get_current_actor, get_decision_by_code, perform_action

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.post("/actions", response_model=ModerationActionResponse)
def moderation_action_endpoint(
    payload: ModerationActionRequest,
    db: Session = Depends(get_session),
    actor: Actor | None = Depends(get_current_actor),
) -> ModerationActionResponse:
    result = perform_action(
        db,
        actor,
        action=payload.action,
        target_type=payload.target_type,
        target_id=payload.target_id,
        reason=payload.reason,
        extra=payload.extra,
    )
    return ModerationActionResponse(success=result.success, action=result.action, message=result.message)


@router.get("/decisions/{decision_code}", response_model=ModerationDecisionResponse)
def moderation_decision_endpoint(
    decision_code: str,
    db: Session = Depends(get_session),
    actor: Actor | None = Depends(get_current_actor),
) -> ModerationDecisionResponse:
    decision = get_decision_by_code(db, actor, decision_code)
    return ModerationDecisionResponse.model_validate(decision)
