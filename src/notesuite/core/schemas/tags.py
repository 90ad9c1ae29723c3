"""Tag schemas."""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    usage_count: int
    color: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
