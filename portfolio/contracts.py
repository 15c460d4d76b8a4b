# portfolio/contracts.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.database import get_db
from portfolio.models import (
    Contract,
    ContractStatus,
    ContractTemplate,
    Customer,
    ProjectRequest,
    utcnow,
)
from portfolio.permissions import Admin, require_admin
from portfolio.settings import get_settings_map
from portfolio.utils.logging_utils import log_activity
from portfolio.utils.numbering import next_number
from portfolio.utils.placeholders import (
    DEFAULT_CONTRACT_TEMPLATE,
    build_placeholders,
    substitute,
)
from portfolio.utils.status import CONTRACT_TRANSITIONS, ensure_transition

router = APIRouter(prefix="/api/admin", tags=["Verträge"])

# Parallele Erzeugung kann dieselbe Nummer ziehen → neu versuchen
NUMBER_RETRIES = 3


# 📝 Pydantic Schemas
class ContractTemplateIn(BaseModel):
    name: str
    type: str = "service"
    content: str


class ContractTemplateUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    content: Optional[str] = None


class ContractTemplateOut(BaseModel):
    id: int
    name: str
    type: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ContractGenerate(BaseModel):
    template_id: int
    customer_id: int
    request_id: Optional[int] = None
    title: Optional[str] = None


class ContractUpdate(BaseModel):
    status: ContractStatus


class ContractOut(BaseModel):
    id: int
    contract_number: str
    template_id: Optional[int] = None
    customer_id: Optional[int] = None
    request_id: Optional[int] = None
    title: Optional[str] = None
    content: str
    status: ContractStatus
    created_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


def contract_out(contract: Contract) -> ContractOut:
    out = ContractOut.model_validate(contract)
    if contract.customer is not None:
        out.customer_name = contract.customer.name
        out.customer_email = contract.customer.email
    return out


# ============================================================
# 📄 Vertragsvorlagen
# ============================================================
@router.get("/contract-templates", response_model=List[ContractTemplateOut])
def list_contract_templates(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    return db.query(ContractTemplate).order_by(ContractTemplate.name.asc()).all()


@router.get("/contract-templates/default")
def default_contract_template(_: Admin = Depends(require_admin)):
    return {"name": "Dienstleistungsvertrag", "type": "service", "content": DEFAULT_CONTRACT_TEMPLATE}


@router.post("/contract-templates", response_model=ContractTemplateOut)
def create_contract_template(
    data: ContractTemplateIn,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    template = ContractTemplate(**data.model_dump())
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@router.put("/contract-templates/{template_id}", response_model=ContractTemplateOut)
def update_contract_template(
    template_id: int,
    data: ContractTemplateUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    template = db.get(ContractTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Vorlage nicht gefunden")
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(template, field, value)
    db.commit()
    db.refresh(template)
    return template


@router.delete("/contract-templates/{template_id}")
def delete_contract_template(
    template_id: int,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    template = db.get(ContractTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Vorlage nicht gefunden")
    # erzeugte Verträge bleiben erhalten (template_id → NULL)
    db.delete(template)
    db.commit()
    return {"success": True}


# ============================================================
# ✍️ Verträge
# ============================================================
@router.get("/contracts", response_model=List[ContractOut])
def list_contracts(db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    contracts = db.query(Contract).order_by(Contract.created_at.desc(), Contract.id.desc()).all()
    return [contract_out(c) for c in contracts]


@router.get("/contracts/{contract_id}", response_model=ContractOut)
def get_contract(contract_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    contract = db.get(Contract, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Vertrag nicht gefunden")
    return contract_out(contract)


def generate_contract(
    db: Session,
    template: ContractTemplate,
    customer: Customer,
    request: Optional[ProjectRequest],
    title: Optional[str] = None,
    today: Optional[date] = None,
) -> Contract:
    """Nummer ziehen, Platzhalter ersetzen, Text einfrieren."""
    today = today or date.today()
    settings = get_settings_map(db)

    for attempt in range(NUMBER_RETRIES):
        number = next_number(db, Contract.contract_number, "V", today.year)
        values = build_placeholders(customer, request, settings, contract_number=number, today=today)
        contract = Contract(
            contract_number=number,
            template_id=template.id,
            customer_id=customer.id,
            request_id=request.id if request else None,
            title=title or template.name,
            content=substitute(template.content, values),
            status=ContractStatus.draft,
        )
        db.add(contract)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == NUMBER_RETRIES - 1:
                raise
            continue
        db.refresh(contract)
        return contract


@router.post("/contracts/generate")
def create_contract(
    data: ContractGenerate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    template = db.get(ContractTemplate, data.template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Vorlage nicht gefunden")
    customer = db.get(Customer, data.customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Kunde nicht gefunden")

    request = None
    if data.request_id is not None:
        request = db.get(ProjectRequest, data.request_id)
        if not request or request.customer_id != customer.id:
            raise HTTPException(status_code=404, detail="Anfrage nicht gefunden")

    contract = generate_contract(db, template, customer, request, title=data.title)
    log_activity(db, "contract_created", f"Vertrag {contract.contract_number} für {customer.email} erstellt")
    return {"success": True, "id": contract.id, "contract_number": contract.contract_number}


@router.put("/contracts/{contract_id}", response_model=ContractOut)
def update_contract(
    contract_id: int,
    data: ContractUpdate,
    db: Session = Depends(get_db),
    _: Admin = Depends(require_admin),
):
    contract = db.get(Contract, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Vertrag nicht gefunden")

    ensure_transition(CONTRACT_TRANSITIONS, contract.status, data.status)
    if data.status == ContractStatus.signed and contract.status != ContractStatus.signed:
        contract.signed_at = utcnow()
    elif data.status != ContractStatus.signed:
        contract.signed_at = None
    contract.status = data.status

    db.commit()
    db.refresh(contract)
    return contract_out(contract)


@router.delete("/contracts/{contract_id}")
def delete_contract(contract_id: int, db: Session = Depends(get_db), _: Admin = Depends(require_admin)):
    contract = db.get(Contract, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Vertrag nicht gefunden")
    db.delete(contract)
    db.commit()
    return {"success": True}
