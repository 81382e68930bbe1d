"""Grade-based travel policy tables and entitlement calculations.

Based on the domestic sales travel policy (TF / PL 01 HR 01) with the 2025 HR
amendments on fuel entitlement. Grades are first mapped onto a policy level;
unknown grades fall back to the lowest tier so a missing row never blocks a
claim.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from ..core.enums import ClaimType, LocationType
from ..core.policy_cache import PolicyCache
from ..schemas.policy import AmountCheck, PolicyEntitlement, VehicleInfo

LOGGER = structlog.get_logger(__name__)

DEFAULT_POLICY_LEVEL = "C Class"
DEFAULT_MONTHLY_LIMIT = Decimal("10000")
DEFAULT_FUEL_PRICE_PER_LITER = 100
LOW_BALANCE_THRESHOLD = Decimal("1000")


def _entitlement(
    grade: str,
    level: str,
    da: tuple[int, int, int, int],
    hotel_max: int,
    travelling: int,
    meal_without_bill: int,
    vehicle: str,
    km_per_liter: int,
) -> PolicyEntitlement:
    if km_per_liter == 0:
        fuel = "Actual basis - no limit"
    elif vehicle == "car":
        fuel = f"Car / {km_per_liter} Km per liter fuel limit"
    else:
        fuel = f"2-wheeler / {km_per_liter} Km per liter fuel limit"
    da_food, da_town, da_capital, da_metro = da
    return PolicyEntitlement(
        grade=grade,
        level=level,
        da_food=da_food,
        da_town=da_town,
        da_capital=da_capital,
        da_metro=da_metro,
        hotel_max=hotel_max,
        travelling_entitlement=travelling,
        meal_without_bill=meal_without_bill,
        phone_limit=400,
        fuel_entitlement=fuel,
        vehicle_type=vehicle,
        fuel_efficiency_km_per_liter=km_per_liter,
    )


TRAVEL_POLICY: dict[str, PolicyEntitlement] = {
    "C Class": _entitlement("C Class", "C", (150, 250, 750, 1100), 750, 1100, 200, "2wheeler", 25),
    "B Class": _entitlement("B Class", "B", (200, 300, 750, 1200), 750, 1200, 200, "2wheeler", 25),
    "A Class": _entitlement("A Class", "A", (225, 350, 800, 1300), 800, 1300, 200, "2wheeler", 25),
    "L5": _entitlement("L5", "L5", (250, 400, 900, 1500), 900, 1500, 200, "2wheeler", 25),
    "L4": _entitlement("L4", "L4", (275, 425, 1000, 1600), 1000, 1600, 300, "car", 7),
    "L3": _entitlement("L3", "L3", (300, 450, 1200, 1600), 1200, 1600, 300, "car", 7),
    "L2": _entitlement("L2", "L2", (325, 500, 1500, 2000), 1500, 2000, 500, "car", 7),
    "L1": _entitlement("L1", "L1", (350, 500, 1800, 2000), 1800, 2000, 500, "car", 7),
    "GM": _entitlement("GM", "GM", (375, 550, 2000, 2500), 2000, 2500, 300, "car", 7),
    # Sr. GM and above are reimbursed on actual basis for food/town DA and fuel.
    "Sr. GM": _entitlement("Sr. GM", "Sr. GM", (0, 0, 3000, 3500), 3000, 3500, 0, "car", 0),
    "DGM": _entitlement("DGM", "DGM", (0, 0, 3500, 4000), 3500, 4000, 0, "car", 0),
    "Director": _entitlement("Director", "Director", (0, 0, 0, 0), 0, 0, 0, "car", 0),
}

GRADE_TO_POLICY_LEVEL: dict[str, str] = {
    "Trainee": "C Class",
    "Officer": "C Class",
    "Executive": "C Class",
    "Sr. Officer": "B Class",
    "Sr. Executive": "B Class",
    "Asst. Manager": "A Class",
    "ASM": "L5",
    "Dy. Manager": "L4",
    "Manager": "L3",
    "Sr. Manager": "L2",
    "AGM": "L1",
    "DGM": "DGM",
    "GM": "GM",
    "RBH": "GM",
    "Sr. GM": "Sr. GM",
    "Director": "Director",
}
# Policy levels are also valid grades in their own right.
GRADE_TO_POLICY_LEVEL.update({level: level for level in TRAVEL_POLICY})

MONTHLY_TRAVEL_LIMITS: dict[str, Decimal] = {
    "C Class": Decimal("5000"),
    "B Class": Decimal("7500"),
    "A Class": Decimal("10000"),
    "L5": Decimal("12000"),
    "L4": Decimal("15000"),
    "L3": Decimal("20000"),
    "L2": Decimal("25000"),
    "L1": Decimal("30000"),
    "GM": Decimal("40000"),
    "Sr. GM": Decimal("50000"),
    "DGM": Decimal("60000"),
    "Director": Decimal("75000"),
    "Manager": Decimal("18000"),
    "Sr. Manager": Decimal("22000"),
    "AGM": Decimal("28000"),
}


def _whole_rupees(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PolicyTable:
    """Lookup facade over the static policy tables with a short-lived cache."""

    def __init__(
        self,
        cache: PolicyCache | None = None,
        *,
        fuel_price_per_liter: int = DEFAULT_FUEL_PRICE_PER_LITER,
        entitlements: dict[str, PolicyEntitlement] | None = None,
        grade_levels: dict[str, str] | None = None,
        monthly_limits: dict[str, Decimal] | None = None,
    ) -> None:
        self.cache = cache or PolicyCache()
        self.fuel_price_per_liter = fuel_price_per_liter
        self._entitlements = entitlements or TRAVEL_POLICY
        self._grade_levels = grade_levels or GRADE_TO_POLICY_LEVEL
        self._monthly_limits = monthly_limits or MONTHLY_TRAVEL_LIMITS

    async def lookup_policy(self, grade: str) -> PolicyEntitlement:
        """Return the entitlement for ``grade``, defaulting to the lowest tier."""

        cache_key = f"policy:{grade}"
        cached: Any = await self.cache.get(cache_key)
        if cached is not None:
            if isinstance(cached, PolicyEntitlement):
                return cached
            return PolicyEntitlement.model_validate(cached)

        level = self._grade_levels.get(grade)
        if level is None or level not in self._entitlements:
            LOGGER.info("policy_grade_unmapped", grade=grade, fallback=DEFAULT_POLICY_LEVEL)
            level = DEFAULT_POLICY_LEVEL
        policy = self._entitlements[level]
        await self.cache.set(cache_key, policy.model_dump())
        return policy

    def lookup_monthly_limit(self, grade: str) -> Decimal:
        """Monthly cap keyed by the raw grade, not its policy level.

        Staff grades such as ``Executive`` have no row of their own and get
        :data:`DEFAULT_MONTHLY_LIMIT`.
        """

        limit = self._monthly_limits.get(grade)
        if limit is None:
            return DEFAULT_MONTHLY_LIMIT
        return limit

    async def calculate_fuel_entitlement(self, grade: str, distance_km: Decimal | float | int) -> int:
        """Return the rupee value of fuel for ``distance_km``.

        Zero means "actual basis" for grades without a formula, not "free".
        """

        policy = await self.lookup_policy(grade)
        if policy.fuel_efficiency_km_per_liter == 0:
            return 0
        liters = Decimal(str(distance_km)) / Decimal(policy.fuel_efficiency_km_per_liter)
        return _whole_rupees(liters * Decimal(self.fuel_price_per_liter))

    async def calculate_daily_allowance(
        self, grade: str, location_type: LocationType | str, days: int = 1
    ) -> int:
        policy = await self.lookup_policy(grade)
        rates = {
            LocationType.FOOD: policy.da_food,
            LocationType.TOWN: policy.da_town,
            LocationType.CAPITAL: policy.da_capital,
            LocationType.METRO: policy.da_metro,
        }
        try:
            location = LocationType(location_type)
        except ValueError:
            location = LocationType.FOOD
        return rates[location] * days

    async def validate_claim_amount(
        self,
        grade: str,
        claim_type: ClaimType | str,
        amount: Decimal,
        location_type: LocationType | str | None = None,
        days: int | None = None,
    ) -> AmountCheck:
        """Check ``amount`` against the per-claim caps for the grade."""

        policy = await self.lookup_policy(grade)
        kind = ClaimType(claim_type)

        if kind is ClaimType.ACCOMMODATION:
            return self._capped(amount, policy.hotel_max)
        if kind is ClaimType.FOOD and location_type and days:
            max_da = await self.calculate_daily_allowance(grade, location_type, days)
            if max_da == 0:
                return self._capped(amount, 0)
            return AmountCheck(
                is_valid=amount <= max_da,
                max_allowed=Decimal(max_da),
                message=f"Maximum DA: ₹{max_da} for {days} day(s)",
            )
        if kind is ClaimType.COMMUNICATION:
            return AmountCheck(
                is_valid=amount <= policy.phone_limit,
                max_allowed=Decimal(policy.phone_limit),
                message=f"Monthly phone limit: ₹{policy.phone_limit}",
            )
        if kind is ClaimType.TRAVEL:
            return self._capped(amount, policy.travelling_entitlement)

        return AmountCheck(
            is_valid=True,
            max_allowed=Decimal(0),
            message="Please review as per company policy",
        )

    @staticmethod
    def _capped(amount: Decimal, cap: int) -> AmountCheck:
        if cap == 0:
            return AmountCheck(is_valid=True, max_allowed=Decimal(0), message="On actual basis")
        return AmountCheck(
            is_valid=amount <= cap,
            max_allowed=Decimal(cap),
            message=f"Maximum allowed: ₹{cap}",
        )

    async def vehicle_info(self, grade: str) -> VehicleInfo:
        policy = await self.lookup_policy(grade)
        if policy.fuel_efficiency_km_per_liter == 0:
            return VehicleInfo(type="Actual", efficiency=0, description="Actual basis - no limit")
        efficiency = policy.fuel_efficiency_km_per_liter
        if policy.vehicle_type == "car":
            return VehicleInfo(
                type="Car",
                efficiency=efficiency,
                description=f"Car entitlement - 1 liter per {efficiency} km",
            )
        return VehicleInfo(
            type="2-Wheeler",
            efficiency=efficiency,
            description=f"2-wheeler entitlement - 1 liter per {efficiency} km",
        )


__all__ = [
    "DEFAULT_MONTHLY_LIMIT",
    "DEFAULT_POLICY_LEVEL",
    "GRADE_TO_POLICY_LEVEL",
    "LOW_BALANCE_THRESHOLD",
    "MONTHLY_TRAVEL_LIMITS",
    "PolicyTable",
    "TRAVEL_POLICY",
]
