from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EmployeeCreate(BaseModel):
    user_id: str
    full_name: Optional[str] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    full_name: str
    created_at: datetime
