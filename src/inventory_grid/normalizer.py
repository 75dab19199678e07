from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

UNKNOWN_PRODUCT = "Unknown Product"
UNCATEGORIZED = "Uncategorized"
NO_SUPPLIER = "-"
ZERO_PRICE = "$0.00"
BASE_PRODUCT_LABEL = "Base Product"


class RecordShapeError(ValueError):
    """A present field had a type the grid cannot render."""


@dataclass(frozen=True)
class DisplayName:
    display_name: str


@dataclass(frozen=True)
class Variant:
    name: str
    price: float = 0.0
    id: str | None = None
    sku: str | None = None
    plu_upc: str | None = None
    quantity: int = 0


@dataclass(frozen=True)
class Product:
    id: str | None
    name: str = UNKNOWN_PRODUCT
    quantity: int = 0
    price: str = ZERO_PRICE
    sku: str | None = None
    plu: str | None = None
    category: DisplayName = field(default_factory=lambda: DisplayName(UNCATEGORIZED))
    supplier: DisplayName = field(default_factory=lambda: DisplayName(NO_SUPPLIER))
    has_variants: bool = False
    variants: tuple[Variant, ...] = ()
    description: str = ""
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class DisplayRow:
    """One rendered grid row; ``variant_index`` is the edit target index."""

    name: str
    quantity: int
    price: str
    sku: str | None
    plu: str | None
    variant_index: int | None = None
    label: str | None = None


def normalize_product(raw: Any) -> Product:
    if not isinstance(raw, Mapping):
        return _fallback_product({})
    try:
        return _normalize(raw)
    except (RecordShapeError, TypeError, ValueError, OverflowError):
        return _fallback_product(raw)


def normalize_products(raws: Iterable[Any]) -> list[Product]:
    return [normalize_product(raw) for raw in raws]


def _normalize(raw: Mapping[str, Any]) -> Product:
    has_variants = bool(raw.get("hasVariants"))
    raw_variants = raw.get("variants")
    if raw_variants is None:
        raw_variants = []
    if not isinstance(raw_variants, list):
        raise RecordShapeError("variants must be a list")

    quantity_source = raw.get("itemQuantity")
    if quantity_source is None:
        quantity_source = raw.get("quantity")

    return Product(
        id=_optional_text(raw.get("id")),
        name=_optional_text(raw.get("name")) or UNKNOWN_PRODUCT,
        quantity=_to_int(quantity_source),
        price=_product_price(raw),
        sku=_optional_text(raw.get("sku")),
        plu=_optional_text(raw.get("pluUpc") if raw.get("pluUpc") is not None else raw.get("plu")),
        category=_category(raw.get("category")),
        supplier=_supplier(raw),
        has_variants=has_variants,
        variants=tuple(_variant(item) for item in raw_variants),
        description=_optional_text(raw.get("description")) or "",
        created_at=_optional_text(raw.get("createdAt")),
        updated_at=_optional_text(raw.get("updatedAt")),
    )


def _variant(raw: Any) -> Variant:
    if not isinstance(raw, Mapping):
        raise RecordShapeError("variant must be an object")
    return Variant(
        id=_optional_text(raw.get("id")),
        name=_optional_text(raw.get("name")) or "",
        price=_to_float(raw.get("price")),
        sku=_optional_text(raw.get("sku")),
        plu_upc=_optional_text(raw.get("pluUpc")),
        quantity=_to_int(raw.get("quantity")),
    )


def _fallback_product(raw: Mapping[str, Any]) -> Product:
    raw_id = raw.get("id")
    raw_name = raw.get("name")
    return Product(
        id=str(raw_id) if isinstance(raw_id, (str, int)) and str(raw_id) else None,
        name=raw_name.strip() if isinstance(raw_name, str) and raw_name.strip() else UNKNOWN_PRODUCT,
    )


def _product_price(raw: Mapping[str, Any]) -> str:
    value = raw.get("singleItemSellingPrice")
    if value is None:
        value = raw.get("price")
    if value is None:
        return ZERO_PRICE
    if isinstance(value, str):
        return format_price(parse_price(value, strict=True))
    return format_price(_to_float(value))


def _category(value: Any) -> DisplayName:
    return DisplayName(_display_text(value) or UNCATEGORIZED)


def _supplier(raw: Mapping[str, Any]) -> DisplayName:
    name = _display_text(raw.get("supplier"))
    if not name:
        links = raw.get("productSuppliers")
        if isinstance(links, list) and links and isinstance(links[0], Mapping):
            name = _display_text(links[0].get("supplier"))
    return DisplayName(name or NO_SUPPLIER)


def _display_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, Mapping):
        for key in ("displayName", "name", "categoryName"):
            text = value.get(key)
            if isinstance(text, str) and text.strip():
                return text.strip()
        return None
    raise RecordShapeError(f"expected string or object, got {type(value).__name__}")


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    raise RecordShapeError(f"expected scalar, got {type(value).__name__}")


def _to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise RecordShapeError("boolean is not a quantity")
    if isinstance(value, float):
        return int(value)
    return int(float(str(value).strip()))


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise RecordShapeError("boolean is not a price")
    if isinstance(value, str):
        return parse_price(value, strict=True)
    return float(value)


def parse_price(value: Any, strict: bool = False) -> float:
    """Numeric value of a display price such as ``"$1,234.50"``."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value or "").strip().replace("$", "").replace(",", "")
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        if strict:
            raise
        return 0.0


def format_price(value: float) -> str:
    return f"${value:.2f}"


def display_row(product: Product) -> DisplayRow:
    if product.has_variants and product.variants:
        base = product.variants[0]
        return DisplayRow(
            name=base.name or product.name,
            quantity=base.quantity,
            price=format_price(base.price),
            sku=base.sku,
            plu=base.plu_upc,
            variant_index=0,
            label=BASE_PRODUCT_LABEL,
        )
    return DisplayRow(
        name=product.name,
        quantity=product.quantity,
        price=product.price,
        sku=product.sku,
        plu=product.plu,
    )


def expandable_rows(product: Product) -> list[DisplayRow]:
    if not product.has_variants:
        return []
    return [
        DisplayRow(
            name=variant.name or f"Variant {index + 1}",
            quantity=variant.quantity,
            price=format_price(variant.price),
            sku=variant.sku,
            plu=variant.plu_upc,
            variant_index=index,
        )
        for index, variant in enumerate(product.variants)
        if index > 0
    ]


def product_key(product: Product, index: int) -> str:
    return product.id or f"product-{index}"


def product_identifier(product: Product) -> str | None:
    """Best identifier for product-level mutations, ``None`` when not actionable."""
    return product.id or product.sku or product.plu
