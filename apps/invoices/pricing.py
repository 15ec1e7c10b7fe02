"""Repair job cost computation.

Business Logic:
===============

A job is priced from three components:
- Parts: quantity x unit price, the price snapshotted when the part was used
- Services: a flat price each
- Labour: a single figure typed in by the workshop

subtotal = parts + services + labour
VAT is added on top only when the invoice is shown "with VAT"; the toggle is
never stored.

Summary views (invoice list, customer history, reports) need one figure per
job even when nothing has been itemised yet, so they use the override chain:
  1. final_cost, when it is set and positive
  2. the computed subtotal, when it is positive
  3. estimated_cost, or 0
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
import math

DEFAULT_VAT_RATE = 20.0


class CostComputationError(ValueError):
    """Raised when a job's figures cannot be priced (negative amounts, bad VAT rate)."""


def to_amount(value) -> float:
    """Coerce a stored money value to a float. Missing or non-numeric values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def _to_quantity(value) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _non_negative(amount: float, what: str) -> float:
    if amount < 0:
        raise CostComputationError(f"{what} cannot be negative (got {amount})")
    return amount


@dataclass(frozen=True)
class PartLine:
    quantity: int
    unit_price: float

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class ServiceLine:
    price: float


@dataclass(frozen=True)
class CostBreakdown:
    """Result of pricing one job for display"""
    parts_total: float
    services_total: float
    labor: float
    subtotal: float
    vat_rate: float
    include_vat: bool
    vat: float
    display_total: float


def parts_total(parts: Iterable) -> float:
    """Sum of quantity x unit_price. Accepts PartLine, ORM rows or anything with those attributes."""
    total = 0.0
    for part in parts:
        quantity = _to_quantity(getattr(part, "quantity", 0))
        unit_price = to_amount(getattr(part, "unit_price", 0))
        if quantity < 0:
            raise CostComputationError(f"Part quantity cannot be negative (got {quantity})")
        _non_negative(unit_price, "Part unit price")
        total += quantity * unit_price
    return total


def services_total(services: Iterable) -> float:
    total = 0.0
    for service in services:
        total += _non_negative(to_amount(getattr(service, "price", 0)), "Service price")
    return total


def compute_total(
    parts: Iterable,
    services: Iterable,
    labor_cost=None,
    vat_rate=DEFAULT_VAT_RATE,
    include_vat: bool = True
) -> CostBreakdown:
    """Price a job for the invoice preview.

    Pure function of its inputs; calling it twice with the same arguments
    returns equal breakdowns.

    Raises:
        CostComputationError: a negative price, quantity or labour figure, or
            a VAT rate outside 0-100.
    """
    rate = to_amount(vat_rate)
    if not 0 <= rate <= 100:
        raise CostComputationError(f"VAT rate must be between 0 and 100 (got {rate})")

    parts_sum = parts_total(parts)
    services_sum = services_total(services)
    labor = _non_negative(to_amount(labor_cost), "Labour")

    subtotal = parts_sum + services_sum + labor
    vat = subtotal * (rate / 100) if include_vat else 0.0

    return CostBreakdown(
        parts_total=parts_sum,
        services_total=services_sum,
        labor=labor,
        subtotal=subtotal,
        vat_rate=rate,
        include_vat=include_vat,
        vat=vat,
        display_total=subtotal + vat,
    )


def authoritative_total(
    parts: Iterable,
    services: Iterable,
    labor_cost=None,
    final_cost=None,
    estimated_cost=None
) -> float:
    """The one figure summary and reporting views show for a job (no VAT applied here)."""
    final = to_amount(final_cost)
    if final > 0:
        return final

    calculated = compute_total(parts, services, labor_cost, include_vat=False).subtotal
    if calculated > 0:
        return calculated

    return to_amount(estimated_cost)


def initial_labor(
    parts: Iterable,
    services: Iterable,
    labor_cost=None,
    final_cost=None,
    estimated_cost=None
) -> float:
    """Labour figure to pre-fill when an invoice is opened.

    A job with no parts and no services that was only ever given a final or
    estimated cost has that figure treated as labour, so the invoice does not
    open at zero. Nothing is written back.
    """
    labor = to_amount(labor_cost)
    if labor > 0:
        return labor

    if not list(parts) and not list(services):
        final = to_amount(final_cost)
        if final > 0:
            return final
        estimate = to_amount(estimated_cost)
        if estimate > 0:
            return estimate

    return 0.0


def job_total(job) -> float:
    """authoritative_total for a RepairJob row with its parts and services loaded"""
    return authoritative_total(
        job.parts,
        job.services,
        labor_cost=job.labor_cost,
        final_cost=job.final_cost,
        estimated_cost=job.estimated_cost,
    )


def round_money(amount: float) -> float:
    """Round half up to pennies for storage and display"""
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
