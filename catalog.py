"""Ingredient and product catalog operations.

All functions take the current lists and return new ones; nothing here
touches storage or the UI. Invalid input raises a ``CatalogError``
subclass whose message is meant to be shown to the user as-is.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from calc import normalize_unit, price_per_unit, product_total_cost, recompute_costs

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CatalogError(ValueError):
    """Base class for errors raised by catalog operations."""


class ValidationError(CatalogError):
    pass


class NotFoundError(CatalogError):
    pass


class IngredientInUseError(CatalogError):
    pass


def new_id(existing: List[Record]) -> str:
    """Millisecond timestamp id, bumped until unique within ``existing``."""
    taken = {r["id"] for r in existing}
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def _number(value: Any, label: str) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label} is required.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.") from None


# -----------------------------------------------------------------------------
# Ingredients
# -----------------------------------------------------------------------------
def make_ingredient(data: Record, ingredient_id: str) -> Record:
    """Validate form data and build an ingredient with its derived price."""
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Ingredient name is required.")
    price = _number(data.get("purchase_price"), "Purchase price")
    if price < 0:
        raise ValidationError("Purchase price cannot be negative.")
    size = _number(data.get("package_size"), "Package size")
    if size <= 0:
        raise ValidationError("Package size must be greater than 0.")
    unit = normalize_unit(data.get("unit") or "")
    if not unit:
        raise ValidationError("Unit is required.")
    return {
        "id": ingredient_id,
        "name": name,
        "purchase_price": price,
        "package_size": size,
        "unit": unit,
        "price_per_unit": price_per_unit(price, size),
    }


def is_ingredient_used(products: List[Record], ingredient_id: str) -> bool:
    return any(
        line.get("ingredient_id") == ingredient_id
        for p in products
        for line in p.get("ingredients", [])
    )


def add_ingredient(ingredients: List[Record], products: List[Record], data: Record) -> Tuple[List[Record], List[Record]]:
    ing = make_ingredient(data, new_id(ingredients))
    ingredients = ingredients + [ing]
    logger.info("Added ingredient %s (%s)", ing["name"], ing["id"])
    return ingredients, recompute_costs(products, ingredients)


def update_ingredient(
    ingredients: List[Record], products: List[Record], ingredient_id: str, data: Record
) -> Tuple[List[Record], List[Record]]:
    """Replace an ingredient and refresh the cost of products that use it."""
    if not any(i["id"] == ingredient_id for i in ingredients):
        raise NotFoundError(f"Ingredient {ingredient_id} not found.")
    updated = make_ingredient(data, ingredient_id)
    ingredients = [updated if i["id"] == ingredient_id else i for i in ingredients]
    logger.info("Updated ingredient %s (%s)", updated["name"], ingredient_id)
    return ingredients, recompute_costs(products, ingredients)


def delete_ingredient(ingredients: List[Record], products: List[Record], ingredient_id: str) -> List[Record]:
    if is_ingredient_used(products, ingredient_id):
        raise IngredientInUseError(
            "This ingredient is used by a product. Delete the product first."
        )
    remaining = [i for i in ingredients if i["id"] != ingredient_id]
    if len(remaining) == len(ingredients):
        raise NotFoundError(f"Ingredient {ingredient_id} not found.")
    logger.info("Deleted ingredient %s", ingredient_id)
    return remaining


# -----------------------------------------------------------------------------
# Product lines
# -----------------------------------------------------------------------------
def new_line(ingredients: List[Record]) -> Record:
    """Default line for a product form: first ingredient, its own unit."""
    if not ingredients:
        raise ValidationError("Add ingredients to the catalog first.")
    first = ingredients[0]
    return {"ingredient_id": first["id"], "quantity": 0.0, "unit": first["unit"]}


def change_line_ingredient(line: Record, ingredient_id: str, ingredients: List[Record]) -> Record:
    """Point a line at another ingredient, resetting the unit to its unit."""
    ing: Optional[Record] = next((i for i in ingredients if i["id"] == ingredient_id), None)
    return {**line, "ingredient_id": ingredient_id, "unit": ing["unit"] if ing else "gram"}


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------
def make_product(data: Record, product_id: str, ingredients: List[Record]) -> Record:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Product name is required.")
    lines = data.get("ingredients") or []
    if not lines:
        raise ValidationError("Add at least one ingredient.")
    clean = []
    for line in lines:
        qty = _number(line.get("quantity"), "Quantity")
        if qty <= 0:
            raise ValidationError("Ingredient quantities must be greater than 0.")
        clean.append({
            "ingredient_id": line["ingredient_id"],
            "quantity": qty,
            "unit": normalize_unit(line.get("unit") or ""),
        })
    return {
        "id": product_id,
        "name": name,
        "ingredients": clean,
        "total_cost": product_total_cost(clean, ingredients),
    }


def add_product(products: List[Record], ingredients: List[Record], data: Record) -> List[Record]:
    product = make_product(data, new_id(products), ingredients)
    logger.info("Added product %s (%s), cost %.2f", product["name"], product["id"], product["total_cost"])
    return products + [product]


def update_product(products: List[Record], ingredients: List[Record], product_id: str, data: Record) -> List[Record]:
    if not any(p["id"] == product_id for p in products):
        raise NotFoundError(f"Product {product_id} not found.")
    product = make_product(data, product_id, ingredients)
    logger.info("Updated product %s (%s), cost %.2f", product["name"], product_id, product["total_cost"])
    return [product if p["id"] == product_id else p for p in products]


def delete_product(products: List[Record], product_id: str) -> List[Record]:
    remaining = [p for p in products if p["id"] != product_id]
    if len(remaining) == len(products):
        raise NotFoundError(f"Product {product_id} not found.")
    logger.info("Deleted product %s", product_id)
    return remaining


def ingredient_name(ingredients: List[Record], ingredient_id: str) -> str:
    return next((i["name"] for i in ingredients if i["id"] == ingredient_id), "Unknown")
