"""Pure calculation utilities for product cost logic."""

import logging
from typing import Dict, List, Tuple, Any

logger = logging.getLogger(__name__)

# grams-equivalent factor per unit; volume and count share the weight scale
UNIT_FACTORS: Dict[str, float] = {
    "gram": 1.0,
    "kg": 1000.0,
    "ml": 1.0,
    "liter": 1000.0,
    "tablespoon": 15.0,
    "teaspoon": 5.0,
    "piece": 1.0,
}

UNIT_ALIASES: Dict[str, str] = {
    "g": "gram",
    "l": "liter",
    "pcs": "piece",
    "sdm": "tablespoon",
    "sdt": "teaspoon",
}

UNITS: List[str] = ["gram", "kg", "ml", "liter", "piece", "tablespoon", "teaspoon"]


def normalize_unit(unit: str) -> str:
    """Return the canonical unit name (aliases resolved, lowercased)."""
    u = (unit or "").strip().lower()
    return UNIT_ALIASES.get(u, u)


def unit_choices(current: str) -> List[str]:
    """Form options for a unit; a stored unit outside UNITS stays selectable."""
    u = normalize_unit(current)
    return UNITS if not u or u in UNITS else UNITS + [u]


def unit_factor(unit: str) -> float:
    """Grams-equivalent factor of a unit; unknown units count as 1."""
    return UNIT_FACTORS.get(normalize_unit(unit)) or 1.0


def convert(qty: float, from_unit: str, to_unit: str) -> float:
    """Convert quantity between units through the grams-equivalent scale."""
    return float(qty) * unit_factor(from_unit) / unit_factor(to_unit)


def price_per_unit(purchase_price: float, package_size: float) -> float:
    """Purchase price divided by package size, in the ingredient's unit."""
    return float(purchase_price) / float(package_size)


def index_by_id(records: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {r["id"]: r for r in records}


def line_cost(line: Dict[str, Any], ingredients_by_id: Dict[str, Dict[str, Any]]) -> float:
    """Cost of one product line; dangling references cost nothing."""
    ing = ingredients_by_id.get(line.get("ingredient_id"))
    if ing is None:
        return 0.0
    qty = convert(float(line.get("quantity") or 0.0), line.get("unit", ""), ing["unit"])
    return qty * float(ing["price_per_unit"])


def product_total_cost(lines: List[Dict[str, Any]], ingredients: List[Dict[str, Any]]) -> float:
    """Sum the converted, priced ingredient lines of a product."""
    by_id = index_by_id(ingredients)
    total = 0.0
    for line in lines:
        total += line_cost(line, by_id)
    return total


def recompute_costs(products: List[Dict[str, Any]], ingredients: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Refresh every product's total cost against the current catalog.

    Products whose cost is unchanged are returned as the same object, so
    callers can tell which records were touched.
    """
    out = []
    changed = 0
    for p in products:
        cost = product_total_cost(p.get("ingredients", []), ingredients)
        if cost == p.get("total_cost"):
            out.append(p)
            continue
        out.append({**p, "total_cost": cost})
        changed += 1
    logger.debug("Recomputed %d product(s), %d changed", len(products), changed)
    return out


def cost_breakdown(product: Dict[str, Any], ingredients: List[Dict[str, Any]]) -> List[Tuple[str, float, str, float]]:
    """Return (name, quantity, unit, cost) rows for lines that resolve."""
    by_id = index_by_id(ingredients)
    rows = []
    for line in product.get("ingredients", []):
        ing = by_id.get(line.get("ingredient_id"))
        if ing is None:
            continue
        rows.append((ing["name"], float(line["quantity"]), line["unit"], line_cost(line, by_id)))
    return rows
