"""Data models for catalog products, filters and supplier feeds."""

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional

from catalog.coerce import now_iso
from catalog.config import THEME_DEFAULTS

__all__ = ["Product", "Filters", "SupplierEntry", "SupplierTheme"]

# Attribute name -> wire key, for fields whose JSON name differs
_WIRE_KEYS = {
    "image_url": "imageUrl",
    "technical_details": "technicalDetails",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


@dataclass(frozen=True)
class Product:
    """Canonical product record that every ingestion path converges to.

    Records are immutable; edits produce a new record through
    ``with_changes`` and replace the old one in the store.
    """

    # Required fields
    id: str
    name: str
    description: str
    category: str
    supplier: str
    created_at: str
    updated_at: str

    # Optional fields
    price: Optional[float] = None
    unit: Optional[str] = None
    available: bool = True
    image_url: Optional[str] = None
    technical_details: Optional[str] = None
    applications: List[str] = field(default_factory=list)
    badges: List[str] = field(default_factory=list)
    item_number: Optional[str] = None
    url: Optional[str] = None

    def with_changes(self, **changes: Any) -> "Product":
        """Return a copy with ``changes`` applied and ``updated_at`` refreshed."""
        changes.pop("id", None)
        changes.setdefault("updated_at", now_iso())
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON wire form (camelCase where the source uses it)."""
        return {_WIRE_KEYS.get(key, key): value for key, value in asdict(self).items()}


@dataclass(frozen=True)
class Filters:
    """Active filter criteria; None means no constraint."""

    category: Optional[str] = None
    supplier: Optional[str] = None
    search_term: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SupplierEntry:
    """One row of the supplier index."""

    id: str
    name: str
    products_file: str
    config_file: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupplierEntry":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            products_file=str(data.get("products_file", "")),
            config_file=str(data.get("config_file", "")),
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SupplierTheme:
    """Display theming published alongside a supplier feed."""

    supplier_name: str = THEME_DEFAULTS["supplier_name"]
    primary_color: str = THEME_DEFAULTS["primary_color"]
    secondary_color: str = THEME_DEFAULTS["secondary_color"]
    tertiary_color: str = THEME_DEFAULTS["tertiary_color"]
    logo_url: str = THEME_DEFAULTS["logo_url"]
    contact_email: str = THEME_DEFAULTS["contact_email"]
    contact_phone: str = THEME_DEFAULTS["contact_phone"]
    website: str = THEME_DEFAULTS["website"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SupplierTheme":
        """Build a theme, falling back to defaults for empty or missing keys."""
        values = {
            key: str(data.get(key) or default)
            for key, default in THEME_DEFAULTS.items()
        }
        return cls(**values)

    def css_variables(self) -> Dict[str, str]:
        return {
            "--primary-color": self.primary_color,
            "--secondary-color": self.secondary_color,
            "--tertiary-color": self.tertiary_color,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
