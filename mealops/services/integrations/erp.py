"""
Отправка заказа в ERP кухни (Sischef).

Позиции заказа идут в килограммах по цене за кг из каталога. Заказ
без имени клиента, адреса, с рецептом без внешнего id ERP или с блюдом,
заданным только названием, не отправляется вовсе.
"""
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import httpx

from mealops.core.config import settings
from mealops.core.errors import IntegrationNotConfigured, NotFoundError, NotSendableError, UpstreamError
from mealops.models.order import Order
from mealops.models.recipe import Recipe
from mealops.repositories.order_repository import OrderRepository
from mealops.services.order_query import format_time
from mealops.services.recipe_resolution import NameOverride, resolve_source

logger = logging.getLogger(__name__)

# Порядок позиций в заказе ERP и их категории в сообщениях об ошибках
ERP_COMPONENTS = (
    ("carb", "carboidrato"),
    ("protein", "proteina"),
    ("vegetable", "legumes"),
    ("salad", "salada"),
    ("sauce", "molho_salada"),
)


@dataclass
class ParsedAddress:
    logradouro: str = ""
    numero: str = ""
    complemento: str = ""
    bairro: str = ""
    cidade: str = ""
    estado: str = ""


def parse_address(full_address: str) -> ParsedAddress:
    """
    'Avenida Paulista, 2100, Sala 3, Bela Vista, São Paulo - SP' ->
    улица, номер, дополнение, район, город, штат.
    """
    address = ParsedAddress()
    parts = [part.strip() for part in (full_address or "").split(",") if part.strip()]
    if not parts:
        return address

    address.logradouro = parts[0]

    if len(parts) >= 2:
        match = re.search(r"\d+", parts[1])
        if match:
            address.numero = match.group(0)
            address.complemento = parts[1].replace(address.numero, "", 1).strip()
        else:
            address.numero = parts[1]

    rest = parts[2:]
    if rest and " - " in rest[-1]:
        pieces = [piece.strip() for piece in rest[-1].split(" - ")]
        if len(pieces) >= 3:
            address.bairro, address.cidade, address.estado = pieces[0], pieces[-2], pieces[-1]
        else:
            address.cidade, address.estado = pieces
        rest = rest[:-1]

    if rest and not address.bairro:
        address.bairro = rest[-1]
        rest = rest[:-1]

    extra = [part for part in [address.complemento, *rest] if part]
    address.complemento = ", ".join(extra)
    return address


def order_items(order: Order) -> List[Tuple[str, Recipe, float]]:
    """(категория, рецепт, граммы) для позиций с ненулевым весом"""
    items = []
    for component, category in ERP_COMPONENTS:
        recipe = getattr(order, f"{component}_recipe")
        grams = getattr(order, f"{component}_amount_gr") or 0
        if recipe is not None and grams > 0:
            items.append((category, recipe, grams))
    return items


def unresolved_names(order: Order) -> List[Dict[str, str]]:
    """Слоты, где правка названием не привязана к рецепту каталога"""
    missing = []
    for component, category in ERP_COMPONENTS:
        source = resolve_source(
            getattr(order, f"{component}_recipe_id"),
            getattr(order, f"modified_{component}_name", None),
            None,
        )
        if isinstance(source, NameOverride):
            missing.append({"name": source.name, "category": category})
    return missing


def ensure_sendable(order: Order) -> List[Tuple[str, Recipe, float]]:
    if order.is_cancelled:
        raise NotSendableError("Cannot send cancelled orders to the ERP")

    items = order_items(order)
    missing = unresolved_names(order) + [
        {"name": recipe.name, "category": category}
        for category, recipe, _ in items
        if not recipe.erp_external_id
    ]
    if missing:
        raise NotSendableError("Some recipes are not synchronized with the ERP", missing)

    customer = order.customer
    if customer is None or not (customer.name or "").strip():
        raise NotSendableError("Customer name is required to send the order")
    if not (order.effective_address or "").strip():
        raise NotSendableError("Delivery address is required to send the order")
    return items


def build_payload(order: Order, items: List[Tuple[str, Recipe, float]], now: datetime) -> Dict:
    customer = order.customer
    delivery_time = format_time(order.effective_time) or "12:00"

    erp_items = []
    total = 0.0
    for _, recipe, grams in items:
        quantity_kg = grams / 1000
        unit_price = recipe.price_per_kg or 0
        item_total = round(unit_price * quantity_kg, 2)
        total += item_total
        erp_items.append({
            "nome": recipe.name,
            "id": str(recipe.id),
            "quantidade": quantity_kg,
            "valorDesconto": 0,
            "valorUnitario": unit_price,
            "valorTotal": item_total,
            "subItens": [],
            "codigoExterno": recipe.erp_external_id,
        })

    address = asdict(parse_address(order.effective_address))
    address["cep"] = ""

    return {
        "id": str(order.id),
        "idUnicoIntegracao": str(order.id),
        "dataPedido": f"{order.order_date.isoformat()}T{delivery_time}:00",
        "createdAt": now.isoformat(),
        "descricao": f"Pedido {order.meal_type.value} - {customer.name}",
        "tipoPedido": "DELIVERY",
        "situacao": "CONFIRMADO",
        "identificador": {"numero": str(customer.id), "tipo": "DELIVERY"},
        "identificadorSecundario": customer.phone or "",
        "cliente": {
            "nome": customer.name,
            "telefone": customer.phone or "",
            "cpf": "",
            "email": customer.email or "",
        },
        "enderecoEntrega": address,
        "itens": erp_items,
        "troco": 0,
        "valorDesconto": 0,
        "valorTotal": round(total, 2),
        "observacoes": f"Horário de entrega: {delivery_time}",
    }


class ErpClient:
    def __init__(
        self,
        token: str,
        base_url: str = settings.ERP_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = settings.HTTP_TIMEOUT,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ErpClient":
        if not settings.ERP_API_TOKEN:
            raise IntegrationNotConfigured("ERP_API_TOKEN is not configured")
        return cls(settings.ERP_API_TOKEN, transport=transport)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"token-integracao": self.token},
            timeout=self.timeout,
            transport=self.transport,
        )

    @staticmethod
    def _check(response: httpx.Response, action: str) -> None:
        if response.is_error:
            logger.error(f"ERP {action} failed: {response.status_code} {response.text}")
            raise UpstreamError("erp", f"Failed to {action}", response.status_code, response.text)

    async def _request(self, method: str, url: str, action: str, **kwargs) -> Dict:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"ERP {action} failed: {e}")
            raise UpstreamError("erp", f"Failed to {action}: {e}") from e
        self._check(response, action)
        return response.json()

    async def send_order(self, payload: Dict) -> Dict:
        return await self._request("POST", "/OT", "send order to the ERP", json=payload)

    async def get_product(self, product_id: str) -> Dict:
        return await self._request("GET", f"/produtos/{product_id}", "fetch ERP product")


class ErpService:
    def __init__(self, orders: OrderRepository, client: ErpClient):
        self.orders = orders
        self.client = client

    async def send_order(self, order_id: int, now: Optional[datetime] = None) -> Dict:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        items = ensure_sendable(order)
        payload = build_payload(order, items, now or datetime.utcnow())
        erp_response = await self.client.send_order(payload)
        logger.info(f"Заказ {order.id} отправлен в ERP: {len(items)} позиций")
        return {"success": True, "payload": payload, "erp_response": erp_response}
