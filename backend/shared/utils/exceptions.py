"""
Centralized HTTP exceptions for consistent error handling.

Domain services raise these directly; the app-level handler in
rest_api.core.errors renders every AppException as a `{"message": ...}` body.

Usage:
    from shared.utils.exceptions import OrderNotFoundError, ValidationError

    raise OrderNotFoundError(order_id, vendor_id=vendor_id)
    raise ValidationError("Invalid table for this vendor")
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    The message never includes the looked-up id: a miss caused by an
    ownership mismatch must look exactly like a miss on a missing row.

    Usage:
        raise NotFoundError("Order", order_id, vendor_id=vendor_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found",
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    """Order not found, or not owned by the requesting vendor."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class TableNotFoundError(NotFoundError):
    """Table not found, or not owned by the requesting vendor."""

    def __init__(self, table_id: int | None = None, **log_context: Any):
        super().__init__("Table", table_id, **log_context)


class VendorNotFoundError(NotFoundError):
    """Vendor (restaurant) not found."""

    def __init__(self, vendor_id: int | None = None, **log_context: Any):
        super().__init__("Restaurant", vendor_id, **log_context)


# =============================================================================
# 401 / 403 Errors
# =============================================================================


class UnauthorizedError(AppException):
    """Missing or invalid credentials (401)."""

    def __init__(self, detail: str = "Invalid or missing token", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("update orders")
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not allowed to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(required_roles)
        super().__init__(
            f"perform this action (requires role: {roles_str})",
            required_roles=required_roles,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400). The message is returned verbatim.

    Usage:
        raise ValidationError("Invalid status 'done'", field="status")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class EmptyOrderError(ValidationError):
    """No line items survived normalization."""

    def __init__(self, **log_context: Any):
        super().__init__("Order must contain at least one item", **log_context)


class ItemNotFoundError(ValidationError):
    """A line item does not resolve to an available menu item of the vendor."""

    def __init__(self, item_id: Any, **log_context: Any):
        super().__init__(f"Menu item {item_id} not found", item_id=item_id, **log_context)


class InvalidPriceError(ValidationError):
    """Unit price is not a finite, non-negative number."""

    def __init__(self, item_id: Any, price: Any, **log_context: Any):
        super().__init__(
            f"Invalid price for menu item {item_id}",
            item_id=item_id,
            price=str(price),
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Order can no longer be edited")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class OrderNotEditableError(ConflictError):
    """Item edits are rejected once the order reached delivered/completed."""

    def __init__(self, order_id: int, current_status: str, **log_context: Any):
        super().__init__(
            f"Order can no longer be edited (status '{current_status}')",
            order_id=order_id,
            current_status=current_status,
            **log_context,
        )


class InvalidTransitionError(ConflictError):
    """Backward move, or a move out of a terminal status."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to render receipt", order_id=123)
    """

    def __init__(
        self,
        detail: str = "Internal server error",
        log_level: str = "error",
        **log_context: Any,
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level=log_level,
            **log_context,
        )


class FatalInvariantError(InternalError):
    """
    A correctness guarantee was observed broken (e.g. a table lock write did
    not persist). Logged at CRITICAL and never retried.
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(detail, log_level="critical", fatal=True, **log_context)
