"""
Authenticated session model
"""

from typing import Optional
from pydantic import BaseModel


class Session(BaseModel):
    """Current authenticated user, passed explicitly to whatever writes records"""

    user_id: str
    access_token: str
    email: Optional[str] = None
