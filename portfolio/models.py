# portfolio/models.py

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Float,
    Text,
    Index,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SqlEnum

from portfolio.database import Base


def utcnow() -> datetime:
    # SQLite speichert ohne Zeitzone → naive UTC-Werte
    return datetime.now(timezone.utc).replace(tzinfo=None)


def enum_column(enum_cls):
    """Speichert den Enum-Wert (nicht den Namen) als VARCHAR."""
    return SqlEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=20,
    )


# ─────────────────────────────
# 🧭 Status-Enums
# ─────────────────────────────

class ProjectStatus(str, enum.Enum):
    in_progress = "in_progress"
    completed = "completed"
    paused = "paused"
    planned = "planned"


class RequestStatus(str, enum.Enum):
    new = "new"
    in_progress = "in_progress"
    waiting = "waiting"
    completed = "completed"
    cancelled = "cancelled"


class InvoiceStatus(str, enum.Enum):
    offen = "offen"
    bezahlt = "bezahlt"
    ueberfaellig = "überfällig"


class AppointmentStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class AppointmentType(str, enum.Enum):
    consultation = "consultation"
    project_discussion = "project_discussion"
    review = "review"
    other = "other"


class ContractStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    signed = "signed"
    cancelled = "cancelled"


class SenderType(str, enum.Enum):
    admin = "admin"
    customer = "customer"


class EmailStatus(str, enum.Enum):
    sent = "sent"
    skipped = "skipped"
    failed = "failed"


# ─────────────────────────────
# 🔐 Admin-Zugang (genau eine Zeile)
# ─────────────────────────────
class AdminCredential(Base):
    __tablename__ = "admin"

    id = Column(Integer, primary_key=True)
    password_hash = Column(String(255), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ─────────────────────────────
# 🖼 Portfolio
# ─────────────────────────────
class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(255), nullable=True)

    # JSON-Liste als Text
    tags = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)
    status = Column(enum_column(ProjectStatus), default=ProjectStatus.completed, nullable=False)
    sort_order = Column(Integer, default=0)
    progress = Column(Integer, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Project {self.id} {self.title!r}>"


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    icon = Column(String(100), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow)


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    icon = Column(String(100), nullable=True)
    category = Column(String(50), default="other")
    level = Column(Integer, default=80)
    color = Column(String(20), nullable=True)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)


class FAQ(Base):
    __tablename__ = "faqs"

    id = Column(Integer, primary_key=True, index=True)
    question = Column(String(500), nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String(50), default="general")
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


# ─────────────────────────────
# ⚙️ Einstellungen (Key/Value)
# ─────────────────────────────
class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Setting {self.key}={self.value!r}>"


# ─────────────────────────────
# 👥 Kunden
# ─────────────────────────────
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=True)
    company = Column(String(150), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    # 🔗 Beziehungen
    requests = relationship(
        "ProjectRequest", back_populates="customer",
        cascade="all, delete-orphan", order_by="ProjectRequest.id.desc()",
    )
    appointments = relationship("Appointment", back_populates="customer", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="customer", cascade="all, delete-orphan")
    documents = relationship("CustomerDocument", back_populates="customer", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Customer {self.id} ({self.email})>"


# ─────────────────────────────
# 📨 Projektanfragen + Nachrichten
# ─────────────────────────────
class ProjectRequest(Base):
    __tablename__ = "project_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)

    project_type = Column(String(50), nullable=False)
    budget = Column(String(50), nullable=True)
    timeline = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)

    status = Column(enum_column(RequestStatus), default=RequestStatus.new, nullable=False)
    deadline = Column(Date, nullable=True)
    progress = Column(Integer, default=0)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="requests")
    messages = relationship(
        "Message", back_populates="request",
        cascade="all, delete-orphan", order_by="Message.id",
    )
    files = relationship("RequestFile", back_populates="request", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="request", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ProjectRequest {self.id} {self.project_type} [{self.status}]>"


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("project_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_type = Column(enum_column(SenderType), nullable=False)
    sender_id = Column(Integer, nullable=True)
    content = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("ProjectRequest", back_populates="messages")
    attachment = relationship(
        "RequestFile", back_populates="message",
        uselist=False, cascade="all, delete-orphan",
    )


class RequestFile(Base):
    __tablename__ = "request_files"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("project_requests.id", ondelete="CASCADE"), nullable=False, index=True)

    # höchstens ein Anhang pro Nachricht
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=True, unique=True)

    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    uploaded_by = Column(enum_column(SenderType), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("ProjectRequest", back_populates="files")
    message = relationship("Message", back_populates="attachment")


# ─────────────────────────────
# 🧾 Rechnungsarchiv
# ─────────────────────────────
class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(50), unique=True, nullable=False)

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(120), nullable=True)
    customer_address = Column(Text, nullable=True)

    # Positionen als JSON-Text
    items = Column(Text, nullable=True)
    amount = Column(Float, default=0.0)
    tax = Column(Float, default=0.0)
    total = Column(Float, default=0.0)

    status = Column(enum_column(InvoiceStatus), default=InvoiceStatus.offen, nullable=False)
    invoice_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Invoice {self.invoice_number} {self.total} [{self.status}]>"


# ─────────────────────────────
# ⭐ Bewertungen
# ─────────────────────────────
class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("request_id", "customer_id", name="uq_review_request_customer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("project_requests.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=True)
    is_public = Column(Boolean, default=True)
    is_approved = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    request = relationship("ProjectRequest", back_populates="reviews")
    customer = relationship("Customer", back_populates="reviews")


# ─────────────────────────────
# 📅 Termine
# ─────────────────────────────
class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Ein Slot darf nur einmal aktiv gebucht sein
        Index(
            "uq_appointment_active_slot", "date", "time_slot",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    request_id = Column(Integer, ForeignKey("project_requests.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False)
    time_slot = Column(String(5), nullable=False)
    type = Column(enum_column(AppointmentType), default=AppointmentType.consultation, nullable=False)
    status = Column(enum_column(AppointmentStatus), default=AppointmentStatus.pending, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    customer = relationship("Customer", back_populates="appointments")


# ─────────────────────────────
# 📝 Vorlagen + Verträge
# ─────────────────────────────
class MessageTemplate(Base):
    __tablename__ = "message_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    subject = Column(String(255), nullable=True)
    category = Column(String(50), default="general")
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ContractTemplate(Base):
    __tablename__ = "contract_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    type = Column(String(50), default="service")
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    contract_number = Column(String(30), unique=True, nullable=False)
    template_id = Column(Integer, ForeignKey("contract_templates.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    request_id = Column(Integer, ForeignKey("project_requests.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(200), nullable=True)

    # eingefrorener Vertragstext
    content = Column(Text, nullable=False)
    status = Column(enum_column(ContractStatus), default=ContractStatus.draft, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    signed_at = Column(DateTime, nullable=True)

    customer = relationship("Customer")

    def __repr__(self):
        return f"<Contract {self.contract_number} [{self.status}]>"


# ─────────────────────────────
# 📂 Kundendokumente
# ─────────────────────────────
class CustomerDocument(Base):
    __tablename__ = "customer_documents"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    customer = relationship("Customer", back_populates="documents")


# ─────────────────────────────
# 📝 Verlauf, Logs, Jobs
# ─────────────────────────────
class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(50), nullable=False)
    message = Column(String(500), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Activity {self.type}: {self.message}>"


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    recipient = Column(String(255), nullable=True)
    subject = Column(String(255), nullable=True)
    email_type = Column(String(50), nullable=True)
    status = Column(enum_column(EmailStatus), nullable=False)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class BackupLog(Base):
    __tablename__ = "backup_logs"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=True)
    kind = Column(String(20), default="manual")
    size = Column(Integer, default=0)
    status = Column(String(20), default="success")
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class JobRun(Base):
    __tablename__ = "job_runs"

    name = Column(String(50), primary_key=True)
    last_run_date = Column(Date, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
