# portfolio/utils/status.py

from fastapi import HTTPException, status

from portfolio.models import AppointmentStatus, ContractStatus, RequestStatus

# ─────────────────────────────
# 🔁 Erlaubte Statuswechsel
# ─────────────────────────────
# Anfragen: der Admin darf frei zwischen allen Stati wechseln
REQUEST_TRANSITIONS = {s: set(RequestStatus) for s in RequestStatus}

APPOINTMENT_TRANSITIONS = {
    AppointmentStatus.pending: {AppointmentStatus.confirmed, AppointmentStatus.cancelled, AppointmentStatus.completed},
    AppointmentStatus.confirmed: {AppointmentStatus.pending, AppointmentStatus.cancelled, AppointmentStatus.completed},
    AppointmentStatus.completed: {AppointmentStatus.confirmed},
    AppointmentStatus.cancelled: set(),
}

CONTRACT_TRANSITIONS = {s: set(ContractStatus) for s in ContractStatus}


def can_transition(table: dict, current, target) -> bool:
    if current == target:
        return True
    return target in table.get(current, set())


def ensure_transition(table: dict, current, target) -> None:
    if not can_transition(table, current, target):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Statuswechsel von '{current.value}' nach '{target.value}' nicht erlaubt",
        )
