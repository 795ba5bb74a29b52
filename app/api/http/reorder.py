from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_principal
from app.core.db import get_db
from app.domains.identity.entities import Principal
from app.domains.ordering.schemas import ReorderRequest, SuccessResponse
from app.domains.ordering.services import ReorderEngine

router = APIRouter(tags=["reorder"])


@router.post("/reorder", response_model=SuccessResponse)
async def reorder(
    reorder_data: ReorderRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Новый порядок глав или страниц: sort_order = позиция в списке"""
    await ReorderEngine(db).reorder(reorder_data.type, reorder_data.items, principal)
    return SuccessResponse()
