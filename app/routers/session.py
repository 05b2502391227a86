from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_session_service
from app.models.packing import CreateSessionRequest, SessionResponse
from app.services.session_service import SessionService

router = APIRouter(tags=["session"])


@router.post("/session", response_model=SessionResponse)
def create_session(
    body: Optional[CreateSessionRequest] = None,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Start a session, or resume one by id. A resumed id whose controller has
    expired gets a fresh form with its saved packing list restored.
    """
    session_id, expires_at = sessions.create_session(body.sessionId if body else None)
    return SessionResponse(
        sessionId=session_id,
        expiresAt=expires_at.isoformat(),
        state=sessions.get_controller(session_id).view_state(),
    )


@router.get("/session/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, sessions: SessionService = Depends(get_session_service)):
    is_valid, reason = sessions.is_session_valid(session_id)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"status": "error", "message": reason},
        )
    return SessionResponse(
        sessionId=session_id,
        expiresAt=sessions.get_expiry(session_id).isoformat(),
        state=sessions.get_controller(session_id).view_state(),
    )
