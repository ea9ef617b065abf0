from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

MAX_IMAGES_PER_LISTING = 5

# Sentinel category meaning "no category filter"
ALL_CATEGORIES = "All"

EDITABLE_FIELDS = frozenset(
    {"title", "description", "price", "category", "images", "show_in_homepage"}
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingValidationError(Exception):
    """Raised when caller-supplied listing data fails required-field or shape checks."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        details = "; ".join(f"{name}: {message}" for name, message in errors.items())
        super().__init__(f"Invalid listing data. {details}")


class ListingQuotaExceededError(ListingValidationError):
    def __init__(self, user_id: str, limit: int) -> None:
        self.user_id = user_id
        self.limit = limit
        super().__init__({"user_id": f"User already owns the maximum of {limit} listings."})


def validate_listing_fields(values: dict) -> dict[str, str]:  # type: ignore[type-arg]
    """
    Check whichever editable fields are present in ``values``.

    Returns a mapping of field name -> error message; empty when valid.
    Fields missing from ``values`` are not checked, so the same rules serve
    both full drafts and partial updates.
    """
    errors: dict[str, str] = {}

    if "title" in values and not str(values["title"] or "").strip():
        errors["title"] = "Title is required."
    if "description" in values and not str(values["description"] or "").strip():
        errors["description"] = "Description is required."
    if "price" in values:
        price = values["price"]
        if price is None:
            errors["price"] = "Price is required."
        elif Decimal(str(price)) < 0:
            errors["price"] = "Price cannot be negative."
    if "category" in values and not values["category"]:
        errors["category"] = "At least one category is required."
    if "images" in values:
        images = values["images"] or []
        if not images:
            errors["images"] = "At least one image is required."
        elif len(images) > MAX_IMAGES_PER_LISTING:
            errors["images"] = f"At most {MAX_IMAGES_PER_LISTING} images are allowed."
    if "show_in_homepage" in values and values["show_in_homepage"] is None:
        errors["show_in_homepage"] = "Visibility must be true or false."

    return errors


@dataclass(frozen=True)
class Listing:
    """
    Snapshot of a marketplace listing as stored in the ``posts`` table.

    Snapshots are immutable; the store replaces them wholesale after every
    successful remote read or write.
    """

    id: UUID = field(default_factory=uuid4)
    title: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    category: tuple[str, ...] = ()
    images: tuple[str, ...] = ()
    user_id: str = ""
    show_in_homepage: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def was_edited(self) -> bool:
        return self.updated_at != self.created_at

    @property
    def is_publishable(self) -> bool:
        return bool(self.images) and bool(self.category)

    def has_category(self, category: str) -> bool:
        return category == ALL_CATEGORIES or category in self.category

    def matches_text(self, query: str) -> bool:
        """Case-insensitive substring match across title and description."""
        needle = query.casefold()
        return needle in self.title.casefold() or needle in self.description.casefold()


@dataclass
class NewListing:
    """Caller-supplied fields for a listing that does not exist yet."""

    title: str
    description: str
    price: Decimal
    category: list[str]
    images: list[str]
    user_id: str
    show_in_homepage: bool = True

    def validate(self) -> None:
        errors = validate_listing_fields(
            {
                "title": self.title,
                "description": self.description,
                "price": self.price,
                "category": self.category,
                "images": self.images,
            }
        )
        if not self.user_id:
            errors["user_id"] = "Owner is required."
        if errors:
            raise ListingValidationError(errors)
