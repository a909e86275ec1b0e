from typing import Optional

from pydantic import BaseModel


class NotificationResult(BaseModel):
    success: bool
    queue_id: Optional[str] = None
