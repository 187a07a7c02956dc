"""
Pydantic Schemas for the Store API

Wire models exchanged with the ordering service:
- Menu listing
- Order creation, listing and status transitions
- Structured error bodies

Field names follow the service's JSON (``createdAt``); Python code uses
snake_case attributes and aliases map between the two.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class OrderStatus(str, Enum):
    """Well-known order statuses. The server owns the lifecycle."""
    PENDING = "pending"
    WAITING_PICKUP = "waiting-pickup"
    COMPLETED = "completed"


# =============================================================================
# MENU
# =============================================================================

class MenuItem(BaseModel):
    """A single menu entry. Read-only from the client's point of view."""
    id: str = Field(..., examples=["burger-01"])
    name: str = Field(..., examples=["Cheeseburger"])
    description: str = Field(..., examples=["Beef patty with cheddar"])

    class Config:
        frozen = True


class MenuResponse(BaseModel):
    """Envelope of ``GET /menu``."""
    menu: List[MenuItem]


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(BaseModel):
    """Snapshot of a menu item inside an order."""
    id: str = Field(..., description="Menu item id")
    name: Optional[str] = None
    quantity: int = Field(..., ge=1, strict=True)


class Order(BaseModel):
    """
    An order as reported by the server.

    ``status`` is kept as a plain string so that statuses unknown to
    :class:`OrderStatus` still decode.
    """
    id: str
    status: str
    items: Optional[List[OrderItem]] = None
    created_at: Optional[str] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True


class OrdersResponse(BaseModel):
    """Envelope of ``GET /orders``."""
    orders: List[Order]


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CreateOrderItem(BaseModel):
    """Single line of an order creation request."""
    id: str
    quantity: int = Field(default=1, ge=1, strict=True)


class CreateOrderRequest(BaseModel):
    """Body of ``POST /orders``."""
    items: List[CreateOrderItem]


# =============================================================================
# ERRORS
# =============================================================================

class ErrorResponse(BaseModel):
    """Structured error body returned with non-2xx responses."""
    error: str
    message: str

    @property
    def description(self) -> str:
        return f"{self.error}: {self.message}"

    def __str__(self) -> str:
        return self.description
