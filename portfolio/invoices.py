# portfolio/invoices.py
from __future__ import annotations

import json
import os
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import Customer, Invoice, InvoiceStatus
from portfolio.permissions import Admin, require_admin
from portfolio.settings import get_bool_setting, get_decimal_setting, get_int_setting, get_settings_map
from portfolio.utils.billing import (
    DEFAULT_HOURLY_RATE,
    DEFAULT_PAYMENT_DAYS,
    DEFAULT_VALIDITY_DAYS,
    compute_invoice,
    compute_quote,
)
from portfolio.utils.filters import format_currency, format_date, format_number
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.numbering import next_number

router = APIRouter(prefix="/api", tags=["Rechnungen"])

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))
templates.env.filters["format_currency"] = format_currency
templates.env.filters["format_date"] = format_date
templates.env.filters["format_number"] = format_number


# 📝 Pydantic Schemas
class InvoiceItemIn(BaseModel):
    description: str = ""
    quantity: float = Field(default=1, ge=0)
    unit_price: float = 0


class QuoteItemIn(BaseModel):
    description: str = ""
    hours: float = Field(default=0, ge=0)
    rate: Optional[float] = None


class InvoiceCalculate(BaseModel):
    items: List[InvoiceItemIn] = []
    small_business: Optional[bool] = None
    invoice_date: Optional[date] = None
    payment_days: Optional[int] = Field(default=None, ge=0)


class QuoteCalculate(BaseModel):
    items: List[QuoteItemIn] = []
    small_business: Optional[bool] = None
    quote_date: Optional[date] = None
    validity_days: Optional[int] = Field(default=None, ge=0)


class QuotePrint(QuoteCalculate):
    quote_number: Optional[str] = None
    customer_name: str = ""
    customer_address: Optional[str] = None
    notes: Optional[str] = None


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    items: List[InvoiceItemIn] = []
    # nur genutzt, wenn keine Positionen übergeben werden
    amount: Optional[float] = None
    small_business: Optional[bool] = None
    invoice_date: Optional[date] = None
    payment_days: Optional[int] = Field(default=None, ge=0)
    due_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.offen
    notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    status: Optional[InvoiceStatus] = None
    paid_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None


class InvoiceOut(BaseModel):
    id: int
    invoice_number: str
    customer_id: Optional[int] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_address: Optional[str] = None
    items: list = []
    amount: float
    tax: float
    total: float
    status: InvoiceStatus
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def invoice_out(invoice: Invoice) -> InvoiceOut:
    data = {c: getattr(invoice, c) for c in InvoiceOut.model_fields if c != "items"}
    data["items"] = json.loads(invoice.items) if invoice.items else []
    return InvoiceOut(**data)


def small_business_default(db: Session, value: Optional[bool]) -> bool:
    if value is not None:
        return value
    return get_bool_setting(db, "kleinunternehmer", False)


def get_invoice_or_404(db: Session, invoice_id: int) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Rechnung nicht gefunden")
    return invoice


# ============================================================
# 🧮 Berechnung (ohne Speichern)
# ============================================================
@router.post("/invoices/calculate")
def calculate_invoice(
    data: InvoiceCalculate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    result = compute_invoice(
        [i.model_dump() for i in data.items],
        small_business=small_business_default(db, data.small_business),
        invoice_date=data.invoice_date,
        payment_days=data.payment_days if data.payment_days is not None
        else get_int_setting(db, "payment_days", DEFAULT_PAYMENT_DAYS),
    )
    return {**result.as_dict(), "invoice_date": result.issue_date, "due_date": result.deadline}


def _quote_result(db: Session, data: QuoteCalculate):
    rate = get_decimal_setting(db, "hourly_rate", DEFAULT_HOURLY_RATE)
    return compute_quote(
        [i.model_dump() for i in data.items],
        small_business=small_business_default(db, data.small_business),
        quote_date=data.quote_date,
        validity_days=data.validity_days if data.validity_days is not None
        else get_int_setting(db, "quote_validity_days", DEFAULT_VALIDITY_DAYS),
        default_rate=rate,
    )


@router.post("/quotes/calculate")
def calculate_quote(
    data: QuoteCalculate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    result = _quote_result(db, data)
    return {**result.as_dict(), "quote_date": result.issue_date, "valid_until": result.deadline}


# ============================================================
# 🧾 Rechnungsarchiv
# ============================================================
@router.get("/invoices", response_model=List[InvoiceOut])
def list_invoices(
    status: Optional[InvoiceStatus] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    query = db.query(Invoice)
    if status is not None:
        query = query.filter(Invoice.status == status)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Invoice.invoice_number.like(like), Invoice.customer_name.like(like)))
    invoices = query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()
    return [invoice_out(i) for i in invoices]


@router.post("/invoices", response_model=InvoiceOut)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    customer = None
    if data.customer_id is not None:
        customer = db.get(Customer, data.customer_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Kunde nicht gefunden")

    customer_name = data.customer_name or (customer and (customer.company or customer.name or customer.email))
    if not customer_name:
        raise HTTPException(status_code=400, detail="Kundenname fehlt")

    items = [i.model_dump() for i in data.items]
    if not items:
        if data.amount is None:
            raise HTTPException(status_code=400, detail="Keine Positionen angegeben")
        items = [{"description": "Leistung", "quantity": 1, "unit_price": data.amount}]

    result = compute_invoice(
        items,
        small_business=small_business_default(db, data.small_business),
        invoice_date=data.invoice_date,
        payment_days=data.payment_days if data.payment_days is not None
        else get_int_setting(db, "payment_days", DEFAULT_PAYMENT_DAYS),
    )

    invoice_number = data.invoice_number or next_number(
        db, Invoice.invoice_number, "R", result.issue_date.year
    )

    invoice = Invoice(
        invoice_number=invoice_number,
        customer_id=customer.id if customer else None,
        customer_name=customer_name,
        customer_email=data.customer_email or (customer.email if customer else None),
        customer_address=data.customer_address,
        items=json.dumps(result.lines),
        amount=float(result.subtotal),
        tax=float(result.tax),
        total=float(result.total),
        status=data.status,
        invoice_date=result.issue_date,
        due_date=data.due_date or result.deadline,
        paid_date=date.today() if data.status == InvoiceStatus.bezahlt else None,
        notes=data.notes,
    )
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Rechnungsnummer existiert bereits")
    db.refresh(invoice)

    log_activity(
        db, "invoice_created",
        f"Rechnung {invoice.invoice_number} über {format_currency(invoice.total)} erstellt",
    )
    return invoice_out(invoice)


@router.put("/invoices/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    invoice = get_invoice_or_404(db, invoice_id)

    if data.status is not None and data.status != invoice.status:
        invoice.status = data.status
        if data.status == InvoiceStatus.bezahlt:
            invoice.paid_date = data.paid_date or date.today()
            log_activity(db, "invoice_paid", f"Rechnung {invoice.invoice_number} bezahlt", commit=False)
        else:
            invoice.paid_date = data.paid_date
    elif data.paid_date is not None:
        invoice.paid_date = data.paid_date

    for field in ("due_date", "notes", "customer_name", "customer_email", "customer_address"):
        value = getattr(data, field)
        if value is not None:
            setattr(invoice, field, value)

    db.commit()
    db.refresh(invoice)
    return invoice_out(invoice)


@router.delete("/invoices/{invoice_id}")
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    invoice = get_invoice_or_404(db, invoice_id)
    number = invoice.invoice_number
    db.delete(invoice)
    db.commit()
    log_activity(db, "invoice_deleted", f"Rechnung {number} gelöscht")
    return {"success": True}


# ============================================================
# 🖨 Druckansichten (HTML statt PDF)
# ============================================================
@router.get("/invoices/{invoice_id}/print", response_class=HTMLResponse)
def print_invoice(
    invoice_id: int,
    request: Request,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    invoice = get_invoice_or_404(db, invoice_id)
    return templates.TemplateResponse(request, "print/invoice.html", {
        "invoice": invoice_out(invoice),
        "settings": get_settings_map(db),
        "small_business": invoice.tax == 0,
    })


@router.post("/quotes/print", response_class=HTMLResponse)
def print_quote(
    data: QuotePrint,
    request: Request,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    result = _quote_result(db, data)
    quote_number = data.quote_number or f"A-{result.issue_date.year}-001"
    return templates.TemplateResponse(request, "print/quote.html", {
        "quote_number": quote_number,
        "customer_name": data.customer_name,
        "customer_address": data.customer_address,
        "notes": data.notes,
        "result": result,
        "settings": get_settings_map(db),
    })
