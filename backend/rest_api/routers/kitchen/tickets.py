"""
Kitchen ticket router - GET /api/kitchen/tickets
Thin router delegating to KitchenTicketService.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rest_api.repositories import TicketFilters
from rest_api.routers._common import Pagination, get_pagination, staff_context, vendor_id_of
from rest_api.services.domain import KitchenTicketService
from rest_api.services.outputs import build_ticket_output
from shared.infrastructure.db import get_db
from shared.utils.schemas import KitchenTicketOutput

router = APIRouter(prefix="/api/kitchen", tags=["kitchen-tickets"])


@router.get("/tickets", response_model=list[KitchenTicketOutput])
def list_tickets(
    status: str | None = Query(default=None),
    table_id: int | None = Query(default=None, alias="tableId"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(staff_context),
) -> list[KitchenTicketOutput]:
    """Vendor's kitchen tickets, newest first (delivery and pickup included)."""
    filters = TicketFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        status=status,
        table_id=table_id,
    )
    tickets = KitchenTicketService(db).list_for_vendor(vendor_id_of(ctx), filters)
    return [build_ticket_output(t) for t in tickets]
