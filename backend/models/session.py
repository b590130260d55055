from pydantic import BaseModel, Field
from typing import Optional

from .fields import Name, Text


class SessionCreate(BaseModel):
    subject: Name
    minutes: int = Field(gt=0, description="学习分钟数")
    date: str = Field(description="所属日期 YYYY-MM-DD")
    notes: Optional[Text] = None


class SessionUpdate(BaseModel):
    subject: Optional[Name] = None
    minutes: Optional[int] = Field(default=None, gt=0)
    date: Optional[str] = None
    notes: Optional[Text] = None
