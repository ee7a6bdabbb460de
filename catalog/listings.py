"""Listings catalog and the explore-page filter rules.

Listings are fixed demo data; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class ListingType(str, Enum):
    VACANT_ROOM = "VACANT_ROOM"
    ROOMMATE_WANTED = "ROOMMATE_WANTED"
    COMING_SOON = "COMING_SOON"


DEFAULT_MAX_PRICE = 1500

AMENITIES = (
    "WiFi",
    "AC",
    "Private Bath",
    "Kitchenette",
    "Laundry",
    "Parking",
    "Gym",
    "Pool",
)


@dataclass(frozen=True)
class Listing:
    """A vacant room, a roommate request or an upcoming building."""

    id: str
    title: str
    description: str
    location: str
    price: int
    type: ListingType
    images: tuple[str, ...]
    amenities: tuple[str, ...]
    university_proximity: str
    available_from: str
    owner_name: str
    owner_bio: Optional[str] = None
    current_occupants: Optional[int] = None
    max_occupants: Optional[int] = None
    project_completion_date: Optional[str] = None
    _search_text: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        text = (self.title + self.description + self.location).lower()
        object.__setattr__(self, "_search_text", text)

    @property
    def match_profile(self) -> str:
        """Text the compatibility check compares a student's bio against."""
        return self.owner_bio or self.description

    def mentions_any(self, keywords: Iterable[str]) -> bool:
        return any(keyword.lower() in self._search_text for keyword in keywords)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "price": self.price,
            "type": self.type.value,
            "images": list(self.images),
            "amenities": list(self.amenities),
            "universityProximity": self.university_proximity,
            "availableFrom": self.available_from,
            "ownerName": self.owner_name,
            "ownerBio": self.owner_bio,
            "currentOccupants": self.current_occupants,
            "maxOccupants": self.max_occupants,
            "projectCompletionDate": self.project_completion_date,
        }


def _photos(*numbers: int) -> tuple[str, ...]:
    return tuple(f"https://picsum.photos/800/600?random={n}" for n in numbers)


LISTINGS: tuple[Listing, ...] = (
    Listing(
        id="1",
        title="Sunny Studio near Engineering Faculty",
        description=(
            "A bright, fully furnished studio apartment perfect for a solo student. "
            "Quiet environment, ideal for studying."
        ),
        location="North Avenue, 5 mins walk to campus",
        price=650,
        type=ListingType.VACANT_ROOM,
        images=_photos(1, 2),
        amenities=("WiFi", "AC", "Private Bath", "Kitchenette"),
        university_proximity="0.2 miles",
        available_from="2024-06-01",
        owner_name="Sarah Jenkins",
        max_occupants=1,
    ),
    Listing(
        id="2",
        title="Looking for a chill roommate!",
        description=(
            "I have a 2-bedroom apartment and my roommate is graduating. Looking for "
            "someone clean and friendly. I love gaming and cooking."
        ),
        location="Westside Apartments",
        price=450,
        type=ListingType.ROOMMATE_WANTED,
        images=_photos(3, 4),
        amenities=("Shared Living Room", "Laundry in unit", "Balcony", "High-speed Internet"),
        university_proximity="1.5 miles (Shuttle available)",
        available_from="Immediate",
        owner_name="Mike Chen",
        owner_bio="Computer Science junior. Night owl, gamer, but keeps common areas clean.",
        current_occupants=1,
        max_occupants=2,
    ),
    Listing(
        id="3",
        title="The Hub - Luxury Student Living",
        description=(
            "State-of-the-art student housing complex currently under construction. "
            "Featuring a gym, study lounges, and rooftop pool."
        ),
        location="Downtown Campus District",
        price=900,
        type=ListingType.COMING_SOON,
        images=_photos(5, 6),
        amenities=("Gym", "Pool", "Study Lounge", "24/7 Security"),
        university_proximity="On Campus",
        available_from="2025-01-01",
        owner_name="Urban Developers Ltd.",
        project_completion_date="December 2024",
    ),
    Listing(
        id="4",
        title="Cozy Room in Shared House",
        description=(
            "One bedroom available in a 4-bedroom house. We are a mix of Arts and "
            "Science students. Weekly potlucks!"
        ),
        location="Maple Street",
        price=350,
        type=ListingType.ROOMMATE_WANTED,
        images=_photos(7),
        amenities=("Shared Kitchen", "Backyard", "Bike Storage"),
        university_proximity="0.8 miles",
        available_from="2024-07-01",
        owner_name="The Maple Crew",
        owner_bio="We are social, eco-friendly, and love movie nights.",
        current_occupants=3,
        max_occupants=4,
    ),
    Listing(
        id="5",
        title="Modern Loft - 2 Bed 2 Bath",
        description="Spacious loft with high ceilings. Looking to fill the master bedroom.",
        location="Arts District",
        price=800,
        type=ListingType.VACANT_ROOM,
        images=_photos(8, 9),
        amenities=("In-unit Laundry", "Gym Access", "Parking"),
        university_proximity="2 miles",
        available_from="2024-08-15",
        owner_name="Alex Rivera",
        max_occupants=2,
    ),
    Listing(
        id="6",
        title="Campus View Residences II",
        description=(
            "Phase 2 of the popular Campus View project. Pre-leasing now for the "
            "Spring semester."
        ),
        location="East Gate",
        price=750,
        type=ListingType.COMING_SOON,
        images=_photos(10),
        amenities=("Cafeteria", "Library", "Gaming Room"),
        university_proximity="0.1 miles",
        available_from="2025-03-01",
        owner_name="Campus Living Corp",
        project_completion_date="February 2025",
    ),
)

_BY_ID = {listing.id: listing for listing in LISTINGS}


def get_listing(listing_id: str) -> Listing | None:
    return _BY_ID.get(str(listing_id))


def filter_listings(
    listings: Iterable[Listing] = LISTINGS,
    *,
    listing_type: ListingType | None = None,
    max_price: float | None = DEFAULT_MAX_PRICE,
    amenities: Iterable[str] = (),
    keywords: Iterable[str] = (),
) -> list[Listing]:
    """Apply the explore filters in catalog order.

    Without an explicit type, upcoming buildings are left out.
    """

    wanted_amenities = list(amenities)
    wanted_keywords = [k for k in keywords if k]
    results = []
    for listing in listings:
        if listing_type is None:
            if listing.type is ListingType.COMING_SOON:
                continue
        elif listing.type is not listing_type:
            continue
        if max_price is not None and listing.price > max_price:
            continue
        if any(a not in listing.amenities for a in wanted_amenities):
            continue
        if wanted_keywords and not listing.mentions_any(wanted_keywords):
            continue
        results.append(listing)
    return results
