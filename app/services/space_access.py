import logging
from typing import Any

from fastapi import Depends, HTTPException, status

from app.core.config import get_settings
from app.schemas.auth import CurrentUser
from app.services.auth_service import require_current_user
from app.services.meeting_store import MeetingStore, create_meeting_store

logger = logging.getLogger(__name__)


def require_space_member(
    space_id: str,
    current_user: CurrentUser = Depends(require_current_user),
) -> CurrentUser:
    store = create_meeting_store(get_settings())
    if not store.is_user_member_of_space(space_id, current_user.id):
        logger.warning(
            "Space access denied user_id=%s space_id=%s",
            current_user.id,
            space_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this space.",
        )
    return current_user


def get_meeting_in_space(store: MeetingStore, space_id: str, meeting_id: str) -> dict[str, Any]:
    meeting = store.get_meeting(meeting_id)
    if not meeting or str(meeting.get("space_id")) != str(space_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Meeting not found.",
        )
    return meeting
