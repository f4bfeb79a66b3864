"""Представления заказов для кухни, таблиц и чат-платформы."""
from collections import OrderedDict
from datetime import time
from typing import Dict, Iterable, List, Optional

from mealops.models.order import Order
from mealops.services.nutrition_calculator import MEAL_COMPONENTS
from mealops.services.recipe_resolution import NameOverride, resolve_source

MAX_TIME = time(23, 59, 59)


def format_time(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else ""


def parse_time(value: Optional[str]) -> Optional[time]:
    """'11:30' или '11:30:00' -> time; мусор -> None"""
    if not value:
        return None
    parts = value.strip().split(":")
    try:
        hour, minute = int(parts[0]), int(parts[1]) if len(parts) > 1 else 0
        return time(hour=hour, minute=minute)
    except (ValueError, IndexError):
        return None


def component_name(order: Order, component: str) -> Optional[str]:
    """Название блюда в слоте; тот же приоритет, что и при архивации в историю."""
    source = resolve_source(
        getattr(order, f"{component}_recipe_id", None),
        getattr(order, f"modified_{component}_name", None),
        None,
    )
    if isinstance(source, NameOverride):
        return source.name
    recipe = getattr(order, f"{component}_recipe", None)
    return recipe.name if recipe else None


def sort_by_delivery_time(orders: Iterable[Order]) -> List[Order]:
    return sorted(orders, key=lambda order: (order.effective_time or MAX_TIME, order.id or 0))


def order_summary(order: Order) -> Dict:
    customer = order.customer
    summary = {
        "id": order.id,
        "customer_id": order.customer_id,
        "customer_name": customer.name if customer else None,
        "customer_phone": customer.phone if customer else None,
        "order_date": order.order_date,
        "meal_type": order.meal_type,
        "status": order.status,
        "delivery_address": order.effective_address,
        "delivery_time": order.effective_time,
        "notes": order.notes,
    }
    for component in MEAL_COMPONENTS:
        summary[f"{component}_recipe_id"] = getattr(order, f"{component}_recipe_id")
        summary[f"{component}_name"] = component_name(order, component)
        summary[f"{component}_amount_gr"] = getattr(order, f"{component}_amount_gr")
    return summary


def production_summary(orders: Iterable[Order]) -> List[Dict]:
    """
    Сколько граммов каждого блюда приготовить на слот.
    Отменённые заказы не учитываются.
    """
    totals: "OrderedDict[tuple, Dict]" = OrderedDict()
    for order in orders:
        if order.is_cancelled:
            continue
        for component in MEAL_COMPONENTS:
            grams = getattr(order, f"{component}_amount_gr") or 0
            name = component_name(order, component)
            if not name or grams <= 0:
                continue
            key = (component, name)
            entry = totals.setdefault(key, {
                "component": component,
                "recipe_name": name,
                "total_grams": 0.0,
                "portions": 0,
            })
            entry["total_grams"] += grams
            entry["portions"] += 1
    return list(totals.values())
