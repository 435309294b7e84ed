"""Response envelopes shared by all endpoints"""

from typing import Generic, List, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """{success, data} envelope"""
    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    """{success, count, data} envelope"""
    success: bool = True
    count: int
    data: List[T]


class ErrorResponse(BaseModel):
    """{success: false, message} envelope"""
    success: bool = False
    message: str
