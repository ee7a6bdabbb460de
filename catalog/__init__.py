"""Static housing catalog."""

from .listings import (
    AMENITIES,
    DEFAULT_MAX_PRICE,
    LISTINGS,
    Listing,
    ListingType,
    filter_listings,
    get_listing,
)

__all__ = [
    "AMENITIES",
    "DEFAULT_MAX_PRICE",
    "LISTINGS",
    "Listing",
    "ListingType",
    "filter_listings",
    "get_listing",
]
