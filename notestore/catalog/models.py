from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

CENT = Decimal("0.01")

class Product(BaseModel):
    """Note en vente (table notes). Le prix fait foi côté serveur, jamais celui du client."""
    id: str
    title: str = ""
    description: Optional[str] = None
    price: Decimal = Decimal("0.00")
    file_url: Optional[str] = None
    preview_url: Optional[str] = None
    note_type: Optional[str] = None
    stripe_price_id: Optional[str] = None

    @field_validator("id", mode="before")
    def id_as_str(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("price", mode="before")
    def price_two_places(cls, v: Any) -> Decimal:
        # float -> str pour éviter 19.989999...
        value = Decimal(str(v if v is not None else "0"))
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        return cls.model_validate(row)

    def public_dict(self) -> Dict[str, Any]:
        """Représentation publique: la référence du document principal n’est jamais exposée."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": str(self.price),
            "note_type": self.note_type,
        }

class ProductCreate(BaseModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(gt=0)
    file_url: str = Field(min_length=1)
    preview_url: Optional[str] = None
    note_type: Optional[str] = None
    stripe_price_id: Optional[str] = None

class ProductUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0)
    file_url: Optional[str] = None
    preview_url: Optional[str] = None
    note_type: Optional[str] = None
    stripe_price_id: Optional[str] = None
