# app/utils/activity_helpers.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from app.models.activity_models import UserActivity

async def log_user_activity(
    db: AsyncSession,
    actor_role: str,
    actor_id: Optional[int] = None,
    message: str = "",
    commit: bool = False,
):
    """
    Adds an audit row to the session. The caller is responsible for the commit,
    so the row lands in the same transaction as the change it describes.
    """
    activity = UserActivity(
        actor_role=actor_role,
        actor_id=actor_id,
        message=message
    )
    db.add(activity)
    if commit:
        await db.commit()
