from pydantic import BaseModel
from typing import List
import uuid

from app.domains.ordering.entities import SiblingType


class ReorderRequest(BaseModel):
    """Полный упорядоченный список соседей одного родителя"""
    type: SiblingType
    items: List[uuid.UUID]


class SuccessResponse(BaseModel):
    success: bool = True
