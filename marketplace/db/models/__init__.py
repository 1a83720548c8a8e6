"""
SQLAlchemy database models.

Models are organized by domain:
- base: Base declarative class
- enums: enumerated column types
- user: accounts, seller profiles and seller applications
- catalog: categories and agent listings
- commerce: purchases and reviews
- billing: subscriptions
- system: support requests and admin audit log

Import any model from this module:
    from marketplace.db.models import User, Agent, Category
"""

# Base class (must be imported first)
from .base import Base

from .enums import (
    UserRole,
    VerificationStatus,
    AgentStatus,
    PurchaseStatus,
    SubscriptionStatus,
    SellerApplicationStatus,
)
from .user import User, SellerProfile, SellerApplication
from .catalog import Category, Agent
from .commerce import Purchase, Review
from .billing import Subscription
from .system import SupportRequest, AdminLog

# Tables that carry row-level security policies in the hosted database
RLS_TABLES = (
    "users",
    "seller_profiles",
    "categories",
    "agents",
    "purchases",
    "support_requests",
    "reviews",
    "admin_logs",
)

__all__ = [
    "Base",
    # Enums
    "UserRole",
    "VerificationStatus",
    "AgentStatus",
    "PurchaseStatus",
    "SubscriptionStatus",
    "SellerApplicationStatus",
    # Accounts
    "User",
    "SellerProfile",
    "SellerApplication",
    # Catalog
    "Category",
    "Agent",
    # Commerce
    "Purchase",
    "Review",
    # Billing
    "Subscription",
    # System
    "SupportRequest",
    "AdminLog",
    "RLS_TABLES",
]
