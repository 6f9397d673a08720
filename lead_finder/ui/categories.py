"""Built-in catalogue of business categories usable as search terms."""

from __future__ import annotations

from typing import Iterable

BUSINESS_CATEGORIES: tuple[str, ...] = (
    "Accountant",
    "Advertising agency",
    "Architect",
    "Auto repair shop",
    "Bakery",
    "Bank",
    "Bar",
    "Barber shop",
    "Beauty salon",
    "Bicycle store",
    "Bookstore",
    "Cafe",
    "Car dealer",
    "Car wash",
    "Caterer",
    "Chiropractor",
    "Cleaning service",
    "Clothing store",
    "Coffee shop",
    "Coworking space",
    "Dentist",
    "Dry cleaner",
    "Electrician",
    "Event planner",
    "Florist",
    "Furniture store",
    "Gas station",
    "Gym",
    "Hair salon",
    "Hardware store",
    "Home builder",
    "Hotel",
    "Insurance agency",
    "Interior designer",
    "Jewelry store",
    "Landscaper",
    "Law firm",
    "Locksmith",
    "Marketing agency",
    "Massage therapist",
    "Moving company",
    "Nail salon",
    "Optician",
    "Painter",
    "Pet groomer",
    "Pet store",
    "Pharmacy",
    "Photographer",
    "Physical therapist",
    "Pizza restaurant",
    "Plumber",
    "Real estate agency",
    "Restaurant",
    "Roofing contractor",
    "Shoe store",
    "Spa",
    "Supermarket",
    "Tattoo shop",
    "Tax preparation service",
    "Travel agency",
    "Veterinarian",
    "Wedding venue",
    "Yoga studio",
)


def filter_categories(text: str = "", categories: Iterable[str] = BUSINESS_CATEGORIES) -> list[str]:
    """Case-insensitive substring match; empty filter returns everything."""

    needle = text.strip().lower()
    if not needle:
        return list(categories)
    return [category for category in categories if needle in category.lower()]


def selectable_categories(existing: Iterable[str], text: str = "") -> list[str]:
    """Categories matching ``text`` that are not already chosen."""

    chosen = set(existing)
    return [category for category in filter_categories(text) if category not in chosen]


__all__ = ["BUSINESS_CATEGORIES", "filter_categories", "selectable_categories"]
