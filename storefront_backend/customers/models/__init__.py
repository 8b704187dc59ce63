# customers/models/__init__.py

from .customer import Customer, normalize_phone
from .loyalty_transaction import LoyaltyTransaction

__all__ = [
    "Customer",
    "LoyaltyTransaction",
    "normalize_phone",
]
