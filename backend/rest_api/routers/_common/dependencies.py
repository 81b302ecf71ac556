"""
Router dependencies: the app's event broadcaster and role-checked staff
contexts built from the bearer token.
"""

from typing import Any

from fastapi import Depends, Request

from shared.config.constants import ORDER_MANAGER_ROLES, VENDOR_STAFF_ROLES, Roles, StreamRole
from shared.infrastructure.events import EventBroadcaster
from shared.security.auth import current_user_context, require_roles


def get_broadcaster(request: Request) -> EventBroadcaster:
    """The broadcaster created at app construction (app.state.broadcaster)."""
    return request.app.state.broadcaster


def staff_context(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    require_roles(ctx, VENDOR_STAFF_ROLES)
    return ctx


def order_manager_context(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
    require_roles(ctx, ORDER_MANAGER_ROLES)
    return ctx


def vendor_id_of(ctx: dict[str, Any]) -> int:
    return int(ctx["vendor_id"])


def is_captain_only(ctx: dict[str, Any]) -> bool:
    """Captain without owner/admin rights (orders start accepted, stream role captain)."""
    roles = set(ctx.get("roles", []))
    return Roles.CAPTAIN in roles and not roles & {Roles.VENDOR, Roles.ADMIN}


def stream_role_of(ctx: dict[str, Any]) -> str:
    return StreamRole.CAPTAIN if is_captain_only(ctx) else StreamRole.VENDOR
