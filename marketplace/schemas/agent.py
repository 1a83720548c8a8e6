from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CategoryRef(BaseModel):
    id: str
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class SellerRef(BaseModel):
    id: str
    name: str | None = None
    avatar_url: str | None = Field(default=None, serialization_alias="avatarUrl")
    portfolio_url_slug: str | None = Field(default=None, serialization_alias="portfolioUrlSlug")


class AgentListItem(BaseModel):
    """Public listing entry; locked content (setup guide) is never included."""

    id: str
    title: str
    slug: str
    short_description: str | None = Field(default=None, serialization_alias="shortDescription")
    price: Decimal
    thumbnail_url: str | None = Field(default=None, serialization_alias="thumbnailUrl")
    featured: bool
    view_count: int = Field(serialization_alias="viewCount")
    purchase_count: int = Field(serialization_alias="purchaseCount")
    created_at: datetime = Field(serialization_alias="createdAt")
    category: CategoryRef
    seller: SellerRef

    @classmethod
    def from_agent(cls, agent) -> "AgentListItem":
        profile = agent.seller.seller_profile
        return cls(
            id=agent.id,
            title=agent.title,
            slug=agent.slug,
            short_description=agent.short_description,
            price=agent.price,
            thumbnail_url=agent.thumbnail_url,
            featured=agent.featured,
            view_count=agent.view_count,
            purchase_count=agent.purchase_count,
            created_at=agent.created_at,
            category=CategoryRef.model_validate(agent.category),
            seller=SellerRef(
                id=agent.seller.id,
                name=agent.seller.name,
                avatar_url=agent.seller.avatar_url,
                portfolio_url_slug=profile.portfolio_url_slug if profile else None,
            ),
        )
