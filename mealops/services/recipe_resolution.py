"""
Выбор рецепта для слота заказа.

Порядок (первое совпадение побеждает):
1. CatalogReference: явный id рецепта в заказе;
2. NameOverride: произвольное название без привязки к каталогу;
3. MenuDefault: рецепт из меню на эту дату.
"""
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class CatalogReference:
    recipe_id: int


@dataclass(frozen=True)
class NameOverride:
    name: str


@dataclass(frozen=True)
class MenuDefault:
    recipe_id: Optional[int]


RecipeSource = Union[CatalogReference, NameOverride, MenuDefault]


def resolve_source(
    order_recipe_id: Optional[int],
    override_name: Optional[str],
    menu_recipe_id: Optional[int],
) -> RecipeSource:
    if order_recipe_id:
        return CatalogReference(order_recipe_id)
    if override_name and override_name.strip():
        return NameOverride(override_name.strip())
    return MenuDefault(menu_recipe_id)
