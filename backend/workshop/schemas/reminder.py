# workshop/schemas/reminder.py
from pydantic import BaseModel, Field


class MarkSentIn(BaseModel):
    ReminderID: int = Field(ge=1)
    # range is checked by the service so the error matches the taxonomy
    Stage: int
