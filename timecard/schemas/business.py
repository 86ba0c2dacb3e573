from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BusinessCreate(BaseModel):
    name: str
    timezone: Optional[str] = None


class BusinessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_id: str
    name: str
    employer_id: str
    timezone: Optional[str]
    created_at: datetime
