from pydantic import BaseModel
from typing import Optional

from config import DEFAULT_SUBJECT_COLOR
from .fields import Name, Text


class SubjectCreate(BaseModel):
    name: Name
    color: Text = DEFAULT_SUBJECT_COLOR


class SubjectUpdate(BaseModel):
    name: Optional[Name] = None
    color: Optional[Text] = None
