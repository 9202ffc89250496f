"""
Blood request status transitions.

A request starts `pending` and is decided once by the blood bank it was sent to:
- `accept_request`: needs enough in-stock units of the requested type; the
  units are taken out of the bank's inventory (soonest-expiring entries first)
- `reject_request`: no inventory change

Both return updated copies and leave their inputs untouched; storing the result
is the caller's job.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from bloodmatch.domain.models import BloodBank, BloodRequest, InventoryEntry

logger = logging.getLogger(__name__)


class InvalidStatusTransition(ValueError):
    """Raised when a request is not in a state that allows the requested change."""


class InsufficientStock(ValueError):
    """Raised when a blood bank cannot cover a request's units."""

    def __init__(self, blood_type: str, required: int, available: int):
        super().__init__(f"not enough {blood_type} units: required {required}, available {available}")
        self.blood_type = blood_type
        self.required = required
        self.available = available


def available_units(blood_bank: BloodBank, blood_type: str, *, on: date | None = None) -> int:
    """In-stock (unexpired) units of `blood_type` at `blood_bank`."""
    return sum(e.units_available for e in blood_bank.inventory if e.blood_type == blood_type and e.in_stock(on))


def _check_decidable(request: BloodRequest, blood_bank: BloodBank) -> None:
    if request.status != "pending":
        raise InvalidStatusTransition(f"request {request.id} is already {request.status}")
    if request.blood_bank_id is not None and request.blood_bank_id != blood_bank.id:
        raise InvalidStatusTransition(
            f"request {request.id} was sent to blood bank {request.blood_bank_id}, not {blood_bank.id}"
        )


def _draw_units(inventory: list[InventoryEntry], blood_type: str, units: int, on: date | None) -> list[InventoryEntry]:
    order = sorted(
        (i for i, e in enumerate(inventory) if e.blood_type == blood_type and e.in_stock(on)),
        key=lambda i: (inventory[i].expiry_date is None, inventory[i].expiry_date or date.max),
    )
    out = list(inventory)
    remaining = units
    for i in order:
        if remaining == 0:
            break
        take = min(out[i].units_available, remaining)
        out[i] = out[i].model_copy(update={"units_available": out[i].units_available - take})
        remaining -= take
    return out


def accept_request(
    request: BloodRequest,
    blood_bank: BloodBank,
    *,
    on: date | None = None,
    fulfilled_at: datetime | None = None,
) -> tuple[BloodRequest, BloodBank]:
    """Accept a pending request and draw its units from the bank's inventory.

    Returns `(accepted_request, updated_blood_bank)`. Raises `InsufficientStock`
    when the bank holds fewer in-stock units than `request.units_required`, and
    `InvalidStatusTransition` when the request is not pending or belongs to a
    different bank.
    """
    _check_decidable(request, blood_bank)
    have = available_units(blood_bank, request.blood_type, on=on)
    if have < request.units_required:
        raise InsufficientStock(request.blood_type, request.units_required, have)

    inventory = _draw_units(blood_bank.inventory, request.blood_type, request.units_required, on)
    accepted = request.model_copy(
        update={"status": "accepted", "fulfilled_at": fulfilled_at or datetime.now(timezone.utc)}
    )
    logger.info(
        "Accepted request %s at %s: %d x %s (left %d)",
        request.id,
        blood_bank.id,
        request.units_required,
        request.blood_type,
        have - request.units_required,
    )
    return accepted, blood_bank.model_copy(update={"inventory": inventory})


def reject_request(request: BloodRequest, blood_bank: BloodBank) -> BloodRequest:
    """Reject a pending request; the bank's inventory is unchanged."""
    _check_decidable(request, blood_bank)
    logger.info("Rejected request %s at %s", request.id, blood_bank.id)
    return request.model_copy(update={"status": "rejected", "fulfilled_at": None})
