"""
Response models returned to the UI layer
"""

from typing import Optional, List
from pydantic import BaseModel


class MutationResponse(BaseModel):
    """Result notification for a successful mutation"""
    message: str
    success: bool = True
    data: Optional[dict] = None


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    error_code: Optional[str] = None
    details: Optional[dict] = None


class ReorderReport(BaseModel):
    """Outcome of a reorder write-back, possibly partial"""
    order: List[str] = []
    succeeded: List[str] = []
    failed: List[str] = []
    errors: dict = {}

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)

    @property
    def write_count(self) -> int:
        return len(self.succeeded) + len(self.failed)
