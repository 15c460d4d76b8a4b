# portfolio/appointments.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.config import BASE_URL
from portfolio.database import get_db
from portfolio.email_sender import admin_recipient, notify
from portfolio.models import Appointment, AppointmentStatus, AppointmentType, Customer
from portfolio.permissions import Admin, CustomerIdentity, require_admin, require_customer
from portfolio.project_requests import get_owned_request
from portfolio.utils.labels import APPOINTMENT_TYPE_LABELS, label
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.placeholders import format_date_de
from portfolio.utils.status import APPOINTMENT_TRANSITIONS, ensure_transition

router = APIRouter(prefix="/api", tags=["Termine"])

# Feste Tagesslots (Mittagspause 12-13 Uhr)
TIME_SLOTS = ["09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00", "17:00"]


# 📝 Pydantic Schemas
class AppointmentCreate(BaseModel):
    date: date
    time_slot: str
    type: AppointmentType = AppointmentType.consultation
    notes: Optional[str] = None
    request_id: Optional[int] = None


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentOut(BaseModel):
    id: int
    customer_id: int
    request_id: Optional[int] = None
    date: date
    time_slot: str
    type: AppointmentType
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


def appointment_out(appointment: Appointment) -> AppointmentOut:
    out = AppointmentOut.model_validate(appointment)
    if appointment.customer is not None:
        out.customer_name = appointment.customer.name
        out.customer_email = appointment.customer.email
    return out


# -----------------------------------------------------
# 🧮 Verfügbarkeit
# -----------------------------------------------------
def is_bookable_day(day: date, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return day >= today and day.weekday() < 5


def available_slots(db: Session, day: date, today: Optional[date] = None) -> List[str]:
    """Raster minus aktive Buchungen; Wochenende und Vergangenheit → leer."""
    if not is_bookable_day(day, today):
        return []
    taken = {
        slot for (slot,) in db.query(Appointment.time_slot)
        .filter(Appointment.date == day, Appointment.status != AppointmentStatus.cancelled)
        .all()
    }
    return [slot for slot in TIME_SLOTS if slot not in taken]


@router.get("/appointments/slots")
def get_slots(day: date = Query(..., alias="date"), db: Session = Depends(get_db)):
    return {"date": day, "slots": available_slots(db, day)}


# -----------------------------------------------------
# 👤 Kunde
# -----------------------------------------------------
@router.get("/customer/appointments", response_model=List[AppointmentOut])
def my_appointments(db: Session = Depends(get_db), identity: CustomerIdentity = Depends(require_customer)):
    appointments = (
        db.query(Appointment)
        .filter(Appointment.customer_id == identity.customer_id)
        .order_by(Appointment.date.desc(), Appointment.time_slot.desc())
        .all()
    )
    return [appointment_out(a) for a in appointments]


@router.post("/customer/appointments", response_model=AppointmentOut)
def book_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    customer = db.get(Customer, identity.customer_id)
    if customer is None:
        raise HTTPException(status_code=401, detail="Nicht angemeldet")

    # verknüpfte Anfrage muss existieren und dem Kunden gehören
    if data.request_id is not None:
        get_owned_request(db, data.request_id, customer.id)

    if data.time_slot not in TIME_SLOTS:
        raise HTTPException(status_code=400, detail="Ungültiger Zeitslot")
    if not is_bookable_day(data.date):
        raise HTTPException(status_code=400, detail="An diesem Tag sind keine Termine möglich")
    if data.time_slot not in available_slots(db, data.date):
        raise HTTPException(status_code=409, detail="Dieser Termin ist bereits vergeben")

    appointment = Appointment(
        customer_id=customer.id,
        request_id=data.request_id,
        date=data.date,
        time_slot=data.time_slot,
        type=data.type,
        status=AppointmentStatus.pending,
        notes=data.notes,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError:
        # zeitgleiche Buchung hat den Slot zuerst bekommen
        db.rollback()
        raise HTTPException(status_code=409, detail="Dieser Termin ist bereits vergeben")
    db.refresh(appointment)

    when = f"{format_date_de(appointment.date)} um {appointment.time_slot} Uhr"
    log_activity(db, "appointment_booked", f"Terminanfrage von {customer.email}: {when}")
    notify(
        db,
        admin_recipient(db),
        f"Neue Terminanfrage: {when}",
        f"{customer.name or customer.email} möchte einen Termin "
        f"({label(APPOINTMENT_TYPE_LABELS, appointment.type)}) am {when}.\n\n{appointment.notes or ''}",
        email_type="appointment_request",
        action_url=f"{BASE_URL}/admin/",
        action_text="Termin bestätigen",
    )
    return appointment_out(appointment)


@router.post("/customer/appointments/{appointment_id}/cancel", response_model=AppointmentOut)
def cancel_my_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    appointment = db.get(Appointment, appointment_id)
    if not appointment or appointment.customer_id != identity.customer_id:
        raise HTTPException(status_code=404, detail="Termin nicht gefunden")

    ensure_transition(APPOINTMENT_TRANSITIONS, appointment.status, AppointmentStatus.cancelled)
    appointment.status = AppointmentStatus.cancelled
    db.commit()
    db.refresh(appointment)
    return appointment_out(appointment)


# -----------------------------------------------------
# 🔐 Admin
# -----------------------------------------------------
@router.get("/admin/appointments", response_model=List[AppointmentOut])
def admin_appointments(
    status: Optional[AppointmentStatus] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(Appointment)
    if status is not None:
        query = query.filter(Appointment.status == status)
    appointments = query.order_by(Appointment.date.asc(), Appointment.time_slot.asc()).all()
    return [appointment_out(a) for a in appointments]


@router.put("/admin/appointments/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    appointment = db.get(Appointment, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Termin nicht gefunden")

    old_status = appointment.status
    if data.status is not None:
        ensure_transition(APPOINTMENT_TRANSITIONS, old_status, data.status)
        appointment.status = data.status
    if data.notes is not None:
        appointment.notes = data.notes

    db.commit()
    db.refresh(appointment)

    if appointment.status == AppointmentStatus.confirmed and old_status != AppointmentStatus.confirmed:
        when = f"{format_date_de(appointment.date)} um {appointment.time_slot} Uhr"
        notify(
            db,
            appointment.customer.email if appointment.customer else None,
            f"Termin bestätigt: {when}",
            f"Ihr Termin ({label(APPOINTMENT_TYPE_LABELS, appointment.type)}) am {when} ist bestätigt.",
            email_type="appointment_confirmed",
        )
    return appointment_out(appointment)


@router.delete("/admin/appointments/{appointment_id}")
def delete_appointment(appointment_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    appointment = db.get(Appointment, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Termin nicht gefunden")
    db.delete(appointment)
    db.commit()
    return {"success": True}
