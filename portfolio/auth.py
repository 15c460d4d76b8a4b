# portfolio/auth.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, EmailStr
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.config import BASE_URL, DEFAULT_ADMIN_PASSWORD
from portfolio.database import get_db
from portfolio.email_sender import notify
from portfolio.models import AdminCredential, Customer
from portfolio.permissions import (
    ADMIN_SESSION_KEY,
    CUSTOMER_SESSION_KEY,
    Admin,
    CustomerIdentity,
    get_identity,
    require_admin,
    require_customer,
)
from portfolio.utils.logging_utils import log_activity

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

router = APIRouter(prefix="/api", tags=["Authentication"])

MIN_PASSWORD_LENGTH = 6


# ===============================
# 🔧 Hilfsfunktionen
# ===============================
def check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Passwort muss mindestens {MIN_PASSWORD_LENGTH} Zeichen haben",
        )


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def ensure_admin(db: Session) -> AdminCredential:
    """Legt beim ersten Start den Admin-Zugang an (genau eine Zeile)."""
    admin = db.query(AdminCredential).order_by(AdminCredential.id).first()
    if admin is None:
        admin = AdminCredential(password_hash=hash_password(DEFAULT_ADMIN_PASSWORD))
        db.add(admin)
        db.commit()
        logger.warning("⚠️ Admin-Zugang mit Standardpasswort angelegt, bitte sofort ändern!")
    return admin


# ===============================
# 📝 Schemas
# ===============================
class AdminLogin(BaseModel):
    password: str


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class CustomerRegister(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None


class CustomerLogin(BaseModel):
    email: EmailStr
    password: str


class CustomerOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# ===============================
# 🔐 Admin
# ===============================
@router.post("/login")
def admin_login(data: AdminLogin, request: Request, db: Session = Depends(get_db)):
    admin = ensure_admin(db)
    if not verify_password(data.password, admin.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Falsches Passwort")

    request.session[ADMIN_SESSION_KEY] = True
    return {"success": True}


@router.post("/logout")
def admin_logout(request: Request):
    request.session.pop(ADMIN_SESSION_KEY, None)
    return {"success": True}


@router.get("/auth/check")
def admin_check(identity=Depends(get_identity)):
    return {"authenticated": isinstance(identity, Admin)}


@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    admin = ensure_admin(db)
    if not verify_password(data.current_password, admin.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Aktuelles Passwort ist falsch")

    check_password_length(data.new_password)
    admin.password_hash = hash_password(data.new_password)
    db.commit()
    log_activity(db, "password_changed", "Admin-Passwort geändert")
    return {"success": True}


# ===============================
# 👤 Kunden
# ===============================
@router.post("/customer/register")
def customer_register(data: CustomerRegister, request: Request, db: Session = Depends(get_db)):
    check_password_length(data.password)
    email = data.email.lower()
    if db.query(Customer).filter(Customer.email == email).first():
        raise HTTPException(status_code=400, detail="E-Mail existiert bereits")

    customer = Customer(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name,
        company=data.company,
        phone=data.phone,
    )
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="E-Mail existiert bereits")
    db.refresh(customer)

    request.session[CUSTOMER_SESSION_KEY] = customer.id
    log_activity(db, "customer_registered", f"Neuer Kunde registriert: {customer.email}")

    notify(
        db,
        customer.email,
        "Willkommen im Kundenportal",
        f"Hallo {customer.name or customer.email},\n\n"
        "dein Konto wurde erfolgreich angelegt. Im Kundenportal kannst du "
        "Projektanfragen stellen und den Fortschritt verfolgen.",
        email_type="welcome",
        action_url=f"{BASE_URL}/kunde/",
        action_text="Zum Kundenportal",
    )
    return {"success": True, "customer_id": customer.id}


@router.post("/customer/login")
def customer_login(data: CustomerLogin, request: Request, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.email == data.email.lower()).first()
    if not customer or not verify_password(data.password, customer.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="E-Mail oder Passwort falsch")

    request.session[CUSTOMER_SESSION_KEY] = customer.id
    return {"success": True, "customer_id": customer.id}


@router.post("/customer/logout")
def customer_logout(request: Request):
    request.session.pop(CUSTOMER_SESSION_KEY, None)
    return {"success": True}


@router.get("/customer/check")
def customer_check(request: Request, db: Session = Depends(get_db)):
    customer_id = request.session.get(CUSTOMER_SESSION_KEY)
    customer = db.get(Customer, customer_id) if customer_id else None
    if customer is None:
        # Konto wurde inzwischen gelöscht
        request.session.pop(CUSTOMER_SESSION_KEY, None)
        return {"authenticated": False}
    return {"authenticated": True, "customer": CustomerOut.model_validate(customer)}


def _current_customer(db: Session, identity: CustomerIdentity) -> Customer:
    customer = db.get(Customer, identity.customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Nicht angemeldet")
    return customer


@router.get("/customer/profile", response_model=CustomerOut)
def read_profile(
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    return _current_customer(db, identity)


@router.put("/customer/profile", response_model=CustomerOut)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    identity: CustomerIdentity = Depends(require_customer),
):
    customer = _current_customer(db, identity)

    if data.name is not None:
        customer.name = data.name
    if data.company is not None:
        customer.company = data.company
    if data.phone is not None:
        customer.phone = data.phone

    if data.new_password:
        check_password_length(data.new_password)
        if not data.current_password or not verify_password(data.current_password, customer.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Aktuelles Passwort ist falsch")
        customer.password_hash = hash_password(data.new_password)

    db.commit()
    db.refresh(customer)
    return customer
