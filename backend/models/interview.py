"""
Interview metadata as returned by the Interview Metadata Provider.
Only `role` is consumed; the rest is carried for logging and debugging.
"""

from typing import List, Optional
from pydantic import BaseModel


class InterviewMetadata(BaseModel):
    id: Optional[str] = None
    role: Optional[str] = ""
    type: Optional[str] = None
    level: Optional[str] = None
    techstack: Optional[List[str]] = None

    class Config:
        extra = "ignore"
