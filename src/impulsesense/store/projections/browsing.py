"""BrowsingProjection - product and brand interest derived from events."""

from dataclasses import dataclass, field
from typing import Any

from impulsesense.contracts.events import EngineEvent, EventKind
from impulsesense.store.projections.base import Projection


@dataclass
class BrowsingProjection(Projection):
    """Tracks what the user looked at and put in the cart.

    Cart adds are credited to the brand carried in the event, falling back
    to the product viewed most recently for events recorded without one.
    """

    RECENT_LIMIT = 20
    KINDS = frozenset({
        EventKind.PRODUCT_VIEWED,
        EventKind.INTERACTION_APPLIED,
        EventKind.INTERACTION_IGNORED,
    })

    views_by_product: dict[str, int] = field(default_factory=dict)
    views_by_brand: dict[str, int] = field(default_factory=dict)
    carts_by_brand: dict[str, int] = field(default_factory=dict)
    recently_viewed: list[dict[str, Any]] = field(default_factory=list)
    scrolls: int = 0
    clicks: int = 0
    ignored_interactions: int = 0

    def reset(self) -> None:
        """Reset to initial state."""
        self.views_by_product.clear()
        self.views_by_brand.clear()
        self.carts_by_brand.clear()
        self.recently_viewed.clear()
        self.scrolls = 0
        self.clicks = 0
        self.ignored_interactions = 0

    def apply(self, event: EngineEvent) -> None:
        """Apply event to update browsing stats."""
        match event.kind:
            case EventKind.PRODUCT_VIEWED:
                product_id = str(event.payload.get("product_id"))
                brand = event.payload.get("brand") or "Generic"

                self.views_by_product[product_id] = self.views_by_product.get(product_id, 0) + 1
                self.views_by_brand[brand] = self.views_by_brand.get(brand, 0) + 1

                # Most recent first, unique by product
                self.recently_viewed = [
                    p for p in self.recently_viewed if p["product_id"] != product_id
                ]
                self.recently_viewed.insert(0, {
                    "product_id": product_id,
                    "title": event.payload.get("title", ""),
                    "brand": brand,
                })
                del self.recently_viewed[self.RECENT_LIMIT:]

            case EventKind.INTERACTION_APPLIED:
                kind = event.payload.get("kind")
                if kind == "scroll":
                    self.scrolls += 1
                elif kind == "click":
                    self.clicks += 1
                elif kind == "add_to_cart":
                    brand = event.payload.get("brand")
                    if brand is None and "product_id" not in event.payload:
                        brand = self.recently_viewed[0]["brand"] if self.recently_viewed else None
                    brand = brand or "Generic"
                    self.carts_by_brand[brand] = self.carts_by_brand.get(brand, 0) + 1

            case EventKind.INTERACTION_IGNORED:
                self.ignored_interactions += 1

    def top_brands(self, limit: int = 3) -> list[tuple[str, int]]:
        """Brands by view count, most viewed first."""
        return sorted(self.views_by_brand.items(), key=lambda x: (-x[1], x[0]))[:limit]

    def get_summary(self) -> dict[str, Any]:
        """Get browsing summary."""
        return {
            "products_viewed": len(self.views_by_product),
            "total_views": sum(self.views_by_product.values()),
            "cart_adds": sum(self.carts_by_brand.values()),
            "scrolls": self.scrolls,
            "clicks": self.clicks,
            "ignored_interactions": self.ignored_interactions,
            "top_brands": self.top_brands(),
        }
