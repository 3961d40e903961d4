from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from storefront.utils.security import require_admin
from storefront.utils.validators import INT4_MAX
from storefront.admin import service as admin_service
from storefront.orders import service as orders_service

# module storefront.admin.views
router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])

class StatusRequest(BaseModel):
    status: str

class WinnerRequest(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None

class ManualEntryRequest(BaseModel):
    email: EmailStr
    ticketCount: int = Field(ge=1, le=INT4_MAX)
    variant: Optional[str] = None

class ProductCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    price_cents: int = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    is_active: bool = True
    variant_options: List[str] = []

class RaffleCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    slug: Optional[str] = None
    ticket_price_cents: int = Field(gt=0)
    max_entries_per_user: int = Field(default=1, ge=1)
    max_tickets: Optional[int] = Field(default=None, ge=1)
    closes_at: Optional[str] = None
    status: str = "draft"
    variant_options: List[str] = []

class ReorderRequest(BaseModel):
    productIds: List[str]

@router.post("/orders/{order_id}/status")
def update_order_status(order_id: str, req: StatusRequest):
    """Transition de commande (pending_payment -> paid -> processing -> shipped -> delivered, ou cancelled)."""
    return {"order": orders_service.transition_order(order_id, req.status)}

@router.post("/raffles/{raffle_id}/status")
def update_raffle_status(raffle_id: str, req: StatusRequest):
    return {"raffle": admin_service.set_raffle_status(raffle_id, req.status)}

@router.post("/raffles/{raffle_id}/winner")
def assign_raffle_winner(raffle_id: str, req: WinnerRequest):
    return {"raffle": admin_service.set_raffle_winner(raffle_id, req.email, req.name)}

@router.post("/raffles/{raffle_id}/entries", status_code=201)
def add_manual_entry(raffle_id: str, req: ManualEntryRequest):
    return {"entry": admin_service.add_manual_entry(raffle_id, req.email, req.ticketCount, req.variant)}

@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: str):
    admin_service.delete_entry(entry_id)
    return {"deleted": True}

@router.post("/products", status_code=201)
def create_product(req: ProductCreateRequest):
    return {"product": admin_service.create_product(req.model_dump())}

@router.post("/raffles", status_code=201)
def create_raffle(req: RaffleCreateRequest):
    return {"raffle": admin_service.create_raffle(req.model_dump())}

@router.post("/reorder-products")
def reorder_products(req: ReorderRequest):
    return {"success": True, "updated": admin_service.reorder_products(req.productIds)}
