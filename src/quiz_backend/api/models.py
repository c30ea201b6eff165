"""Pydantic models for quiz request payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


class CheckNameRequest(BaseModel):
    """Payload for registering a name in a batch."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    batch_id: str | None = Field(default=None, alias="batchId")


class SaveResultRequest(BaseModel):
    """Payload for submitting a finished attempt."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    score: StrictInt | StrictFloat | None = None
    completion_time: StrictInt | StrictFloat | None = Field(
        default=None, alias="completionTime"
    )
    entry_time: datetime | None = Field(default=None, alias="entryTime")
    batch_id: str | None = Field(default=None, alias="batchId")
