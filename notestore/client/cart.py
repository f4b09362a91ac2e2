"""
Panier côté client: {note_id: quantité}, persisté dans le stockage local, avec abonnés.

Les mutations sont synchrones et immédiates; chaque mutation effective notifie les abonnés,
qui relisent l’état courant. La persistance est best-effort: un échec d’écriture est journalisé
et la mutation en mémoire est conservée.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import json
import logging

from .storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "cart"

PriceLookup = Callable[[str], Any]
Listener = Callable[["CartStore"], None]

@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError("quantity doit être >= 1")

    def as_item(self) -> Dict[str, Any]:
        """Ligne au format attendu par POST /api/v1/checkout."""
        return {"id": self.product_id, "quantity": self.quantity}

class CartStore:
    def __init__(self, storage: Optional[KeyValueStorage] = None, storage_key: str = CART_STORAGE_KEY):
        self._storage = storage if storage is not None else MemoryStorage()
        self._key = storage_key
        self._listeners: List[Listener] = []
        self._quantities: Dict[str, int] = self._load()

    def _load(self) -> Dict[str, int]:
        try:
            raw = self._storage.get_item(self._key)
        except Exception:
            logger.exception("cart: lecture du stockage impossible, panier vide")
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("cart: contenu stocké illisible, panier vide")
            return {}
        quantities: Dict[str, int] = {}
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                continue
            product_id = str(item.get("id") or "").strip()
            try:
                qty = int(item.get("quantity") or 0)
            except (TypeError, ValueError):
                continue
            if product_id and qty >= 1:
                quantities[product_id] = quantities.get(product_id, 0) + qty
        return quantities

    def _commit(self) -> None:
        try:
            self._storage.set_item(self._key, json.dumps([line.as_item() for line in self.list()]))
        except Exception:
            logger.exception("cart: persistance impossible, état conservé en mémoire")
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("cart: abonné en erreur")

    def add(self, product_id: str, qty: int = 1) -> None:
        if not product_id or qty < 1:
            return
        self._quantities[product_id] = self._quantities.get(product_id, 0) + qty
        self._commit()

    def remove(self, product_id: str) -> None:
        if self._quantities.pop(product_id, None) is not None:
            self._commit()

    def set_quantity(self, product_id: str, qty: int) -> None:
        # qty < 1 refusée sans effet: la ligne garde sa quantité (pas de suppression implicite)
        if qty < 1 or product_id not in self._quantities:
            return
        if self._quantities[product_id] != qty:
            self._quantities[product_id] = qty
            self._commit()

    def list(self) -> List[CartLine]:
        return [CartLine(product_id, qty) for product_id, qty in self._quantities.items()]

    def total(self, price_lookup: PriceLookup) -> Decimal:
        total = Decimal("0.00")
        for product_id, qty in self._quantities.items():
            price = price_lookup(product_id)
            if price is None:
                continue
            total += Decimal(str(price)) * qty
        return total

    def clear(self) -> None:
        if self._quantities:
            self._quantities.clear()
            self._commit()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def __len__(self) -> int:
        return len(self._quantities)
