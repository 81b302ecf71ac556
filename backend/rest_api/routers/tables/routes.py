"""
Tables router - GET /api/tables
Physical tables of the vendor with their current availability.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rest_api.repositories import get_table_repository
from rest_api.routers._common import staff_context, vendor_id_of
from rest_api.services.outputs import build_table_output
from shared.infrastructure.db import get_db
from shared.utils.schemas import TableOutput

router = APIRouter(prefix="/api", tags=["tables"])


@router.get("/tables", response_model=list[TableOutput])
def list_tables(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(staff_context),
) -> list[TableOutput]:
    """Sentinel tables backing delivery/pickup tickets are not listed."""
    tables = get_table_repository(db).find_physical(vendor_id_of(ctx))
    return [build_table_output(t) for t in tables]
