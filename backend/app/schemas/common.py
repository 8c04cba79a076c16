"""
Response envelope shared by all data endpoints.
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """`{"success": ..., "data": ..., "error": ...}` envelope."""

    success: bool = True
    data: Optional[DataT] = None
    error: Optional[str] = None
