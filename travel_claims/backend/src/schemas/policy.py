"""Travel policy schemas."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict


class PolicyEntitlement(BaseModel):
    """Per-level entitlements. A zero allowance means "actual basis" (no cap)."""

    model_config = ConfigDict(frozen=True)

    grade: str
    level: str
    da_food: int
    da_town: int
    da_capital: int
    da_metro: int
    hotel_max: int
    travelling_entitlement: int
    meal_without_bill: int
    phone_limit: int
    fuel_entitlement: str
    vehicle_type: Literal["car", "2wheeler"]
    fuel_efficiency_km_per_liter: int


class AmountCheck(BaseModel):
    is_valid: bool
    max_allowed: Decimal
    message: str


class VehicleInfo(BaseModel):
    type: str
    efficiency: int
    description: str


class PolicySummary(BaseModel):
    grade: str
    entitlement: PolicyEntitlement
    vehicle: VehicleInfo
    monthly_limit: Decimal
