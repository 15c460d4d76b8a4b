# portfolio/permissions.py

from dataclasses import dataclass
from typing import Union

from fastapi import Depends, HTTPException, Request, status

ADMIN_SESSION_KEY = "is_admin"
CUSTOMER_SESSION_KEY = "customer_id"


# ─────────────────────────────
# 🪪 Wer ruft gerade auf?
# ─────────────────────────────
@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Admin:
    pass


@dataclass(frozen=True)
class CustomerIdentity:
    customer_id: int


Identity = Union[Anonymous, Admin, CustomerIdentity]


def get_identity(request: Request) -> Identity:
    """
    Liest die Session genau einmal aus.
    Ist jemand gleichzeitig Admin und Kunde eingeloggt, gewinnt der Admin.
    """
    session = request.session
    if session.get(ADMIN_SESSION_KEY):
        return Admin()
    customer_id = session.get(CUSTOMER_SESSION_KEY)
    if customer_id:
        return CustomerIdentity(customer_id=int(customer_id))
    return Anonymous()


def require_admin(identity: Identity = Depends(get_identity)) -> Admin:
    if not isinstance(identity, Admin):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nicht autorisiert",
        )
    return identity


def require_customer(request: Request) -> CustomerIdentity:
    """Kundenrouten prüfen nur die Kunden-Session, unabhängig vom Admin-Flag."""
    customer_id = request.session.get(CUSTOMER_SESSION_KEY)
    if not customer_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nicht angemeldet",
        )
    return CustomerIdentity(customer_id=int(customer_id))


def require_admin_or_customer(identity: Identity = Depends(get_identity)) -> Identity:
    if isinstance(identity, Anonymous):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nicht angemeldet",
        )
    return identity


def ensure_owner(identity: Identity, customer_id: int) -> None:
    """Admins sehen alles, Kunden nur ihre eigenen Datensätze."""
    if isinstance(identity, Admin):
        return
    if isinstance(identity, CustomerIdentity) and identity.customer_id == customer_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Kein Zugriff",
    )
