# workshop/schemas/parts.py
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..domain.money import to_money


def _positive_money(v: Decimal, field: str) -> Decimal:
    try:
        d = to_money(v)
    except ValueError:
        raise ValueError(f"{field} must be a valid decimal")
    if d <= 0:
        raise ValueError(f"{field} must be > 0")
    return d


class PartIn(BaseModel):
    Description: str = Field(min_length=1, max_length=255)
    Quantity: int = Field(gt=0)
    UnitCost: Decimal
    UnitSalePrice: Optional[Decimal] = None

    @field_validator("UnitCost")
    @classmethod
    def _cost_decimal(cls, v: Decimal) -> Decimal:
        return _positive_money(v, "UnitCost")

    @field_validator("UnitSalePrice")
    @classmethod
    def _sale_decimal(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is None:
            return v
        return _positive_money(v, "UnitSalePrice")


class AddPartsIn(BaseModel):
    WorkItemID: int = Field(ge=1)
    # false = appointment work item, true = order work item
    Order: bool = False
    Parts: List[PartIn] = Field(min_length=1)


class OrderPartsIn(BaseModel):
    Parts: List[PartIn] = Field(min_length=1)


class SalePriceIn(BaseModel):
    UnitSalePrice: Decimal

    @field_validator("UnitSalePrice")
    @classmethod
    def _sale_decimal(cls, v: Decimal) -> Decimal:
        return _positive_money(v, "UnitSalePrice")
