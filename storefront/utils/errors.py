# module storefront.utils.errors
"""
Taxonomie d'erreurs métier de la boutique.

Chaque erreur porte un message destiné à l'acheteur (renvoyé tel quel dans {"error": ...})
et un code HTTP. Le handler FastAPI (app_setup.exception_handlers) fait la traduction.
"""
from typing import Optional

from storefront.orders.pricing import format_gbp


class AppError(Exception):
    status_code = 400
    default_message = "Bad request."

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(AppError):
    """Entrée absente ou mal formée: jamais rejouée par le serveur."""
    status_code = 400


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found."


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict."


class AuthenticityError(AppError):
    status_code = 400
    default_message = "Invalid signature."


class TransientError(AppError):
    """Panne datastore/réseau: l'appelant peut rejouer l'opération entière."""
    status_code = 500
    default_message = "Internal server error."


class InvalidData(ValidationError):
    """Valeur refusée par Postgres (classe 22: uuid mal formé, entier hors plage). Jamais rejouable."""
    default_message = "Invalid request."


class DuplicateKeyError(Exception):
    """Violation de contrainte d'unicité (Postgres 23505). Ne remonte jamais en HTTP."""

    def __init__(self, table: str = "", detail: str = ""):
        self.table = table
        self.detail = detail
        super().__init__(f"duplicate key on {table}: {detail}".strip())


# Identifiants
class ExhaustedAttempts(ConflictError):
    default_message = "Failed to create order. Please try again."


# Inventaire
class ProductNotFound(NotFoundError):
    default_message = "Product not found."


class ProductInactive(ValidationError):
    default_message = "This product is no longer available."


class InsufficientStock(ConflictError):
    status_code = 400

    def __init__(self, available: int):
        self.available = max(int(available or 0), 0)
        if self.available <= 0:
            message = "This product is out of stock."
        else:
            message = f"Only {self.available} items available."
        super().__init__(message)


class InvalidVariant(ValidationError):
    default_message = "Please select a valid size."


# Codes promo
class DiscountError(ConflictError):
    status_code = 400
    default_message = "Invalid discount code."


class DiscountNotFound(DiscountError):
    status_code = 404
    default_message = "Invalid discount code."


class DiscountInactive(DiscountError):
    default_message = "This discount code is no longer active."


class DiscountExpired(DiscountError):
    default_message = "This discount code has expired."


class DiscountExhausted(DiscountError):
    default_message = "This discount code has reached its usage limit."


class DiscountMinimumNotMet(DiscountError):
    def __init__(self, min_order_cents: int):
        self.min_order_cents = int(min_order_cents or 0)
        super().__init__(f"Minimum order of {format_gbp(self.min_order_cents)} required for this code.")


# Webhook
class InvalidSignature(AuthenticityError):
    pass


# Tirages
class RaffleNotFound(NotFoundError):
    default_message = "Raffle not found or inactive"


class RaffleClosed(ValidationError):
    default_message = "This draw is closed."


class TicketCapReached(ConflictError):
    status_code = 400
