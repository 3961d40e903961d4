"""
Registre central des routers.
- API publique: checkout tirage, commandes, webhook Stripe, codes promo, liste d'attente
- Admin: /api/admin (HTTP Basic)
- Health: /health
"""
from fastapi import FastAPI
from storefront.payments import views as payments_views
from storefront.orders import views as orders_views
from storefront.discounts import views as discounts_views
from storefront.waitlist import views as waitlist_views
from storefront.admin.views import router as admin_router
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API publique
    app.include_router(payments_views.router)
    app.include_router(orders_views.router)
    app.include_router(discounts_views.router)
    app.include_router(waitlist_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
