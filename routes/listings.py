"""Listings blueprint: browse, filter, detail, smart search and compatibility."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from catalog import (
    AMENITIES,
    DEFAULT_MAX_PRICE,
    LISTINGS,
    ListingType,
    filter_listings,
    get_listing,
)
from errors import NotFoundError, ValidationError
from utils.request_validation import parse_csv_arg, parse_json_request

listings_bp = Blueprint("listings", __name__)
search_bp = Blueprint("search", __name__)


def _parse_type(raw: str | None) -> ListingType | None:
    if not raw or raw.upper() == "ALL":
        return None
    try:
        return ListingType(raw.upper())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in ListingType)
        raise ValidationError(f"type must be one of: ALL, {allowed}.") from exc


def _parse_price(raw: str | None) -> float:
    if raw in (None, ""):
        return DEFAULT_MAX_PRICE
    try:
        price = float(raw)
    except ValueError as exc:
        raise ValidationError("maxPrice must be numeric.") from exc
    if price < 0:
        raise ValidationError("maxPrice must not be negative.")
    return price


def _listing_or_404(listing_id: str):
    listing = get_listing(listing_id)
    if listing is None:
        raise NotFoundError("Listing not found.")
    return listing


@listings_bp.route("", methods=["GET"])
def search_listings():
    """Return listings matching the explore filters."""

    results = filter_listings(
        listing_type=_parse_type(request.args.get("type")),
        max_price=_parse_price(request.args.get("maxPrice")),
        amenities=parse_csv_arg(request.args.get("amenities")),
        keywords=(request.args.get("q") or "").split(),
    )
    return jsonify(
        {"results": [listing.to_dict() for listing in results], "count": len(results)}
    )


@listings_bp.route("/amenities", methods=["GET"])
def list_amenities():
    return jsonify({"amenities": list(AMENITIES)})


@listings_bp.route("/coming-soon", methods=["GET"])
def coming_soon():
    """Return buildings that are still under construction."""

    results = [l for l in LISTINGS if l.type is ListingType.COMING_SOON]
    return jsonify(
        {"results": [listing.to_dict() for listing in results], "count": len(results)}
    )


@listings_bp.route("/<listing_id>", methods=["GET"])
def get_listing_detail(listing_id: str):
    return jsonify(_listing_or_404(listing_id).to_dict())


@listings_bp.route("/<listing_id>/compatibility", methods=["POST"])
def check_compatibility(listing_id: str):
    """Score a student's bio against the listing's household."""

    listing = _listing_or_404(listing_id)
    payload = parse_json_request(request, required_keys=["bio"])
    scorer = current_app.extensions["uninest.scorer"]
    result = scorer.score(payload["bio"].strip(), listing.match_profile)
    return jsonify(result.to_dict())


@search_bp.route("/smart", methods=["POST"])
def smart_search():
    """Parse a free-text query into filters and apply them to the catalog."""

    payload = parse_json_request(request, required_keys=["query"])
    parser = current_app.extensions["uninest.search_parser"]
    intent = parser.parse(payload["query"].strip())

    results = filter_listings(
        listing_type=intent.listing_type,
        max_price=intent.max_price or DEFAULT_MAX_PRICE,
        keywords=intent.keywords,
    )
    return jsonify(
        {
            "intent": intent.to_dict(),
            "results": [listing.to_dict() for listing in results],
            "count": len(results),
        }
    )
