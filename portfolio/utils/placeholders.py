# portfolio/utils/placeholders.py

from datetime import date
from typing import Dict, Optional

from portfolio.models import Customer, ProjectRequest
from portfolio.utils.labels import (
    BUDGET_LABELS,
    PROJECT_TYPE_LABELS,
    REQUEST_STATUS_LABELS,
    TIMELINE_LABELS,
    label,
)


def format_date_de(value: Optional[date]) -> str:
    if not value:
        return ""
    return value.strftime("%d.%m.%Y")


def build_placeholders(
    customer: Optional[Customer],
    request: Optional[ProjectRequest],
    settings: Dict[str, str],
    contract_number: str = "",
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Liefert alle {{TOKEN}} → Wert Paare für Verträge und Nachrichtenvorlagen.
    Fehlende Daten ergeben leere Strings.
    """
    today = today or date.today()
    values = {
        "VERTRAGSNUMMER": contract_number,
        "DATUM": format_date_de(today),
        "ANBIETER_NAME": settings.get("impressum_name", ""),
        "ANBIETER_EMAIL": settings.get("impressum_email", ""),
        "KUNDE_NAME": "",
        "KUNDE_FIRMA": "",
        "KUNDE_EMAIL": "",
        "KUNDE_TELEFON": "",
        "PROJEKT_TYP": "",
        "PROJEKT_BESCHREIBUNG": "",
        "PROJEKT_BUDGET": "",
        "PROJEKT_ZEITRAHMEN": "",
        "PROJEKT_STATUS": "",
        "PROJEKT_FORTSCHRITT": "",
        "DEADLINE": "",
        "ANFRAGE_ID": "",
    }

    if customer is not None:
        values.update({
            "KUNDE_NAME": customer.name or "",
            "KUNDE_FIRMA": customer.company or "",
            "KUNDE_EMAIL": customer.email or "",
            "KUNDE_TELEFON": customer.phone or "",
        })

    if request is not None:
        values.update({
            "PROJEKT_TYP": label(PROJECT_TYPE_LABELS, request.project_type),
            "PROJEKT_BESCHREIBUNG": request.description or "",
            "PROJEKT_BUDGET": label(BUDGET_LABELS, request.budget),
            "PROJEKT_ZEITRAHMEN": label(TIMELINE_LABELS, request.timeline),
            "PROJEKT_STATUS": label(REQUEST_STATUS_LABELS, request.status),
            "PROJEKT_FORTSCHRITT": f"{request.progress or 0}%",
            "DEADLINE": format_date_de(request.deadline),
            "ANFRAGE_ID": str(request.id),
        })

    return values


def substitute(content: str, values: Dict[str, str]) -> str:
    """Einfaches Suchen/Ersetzen, unbekannte Tokens bleiben stehen."""
    for key, value in values.items():
        content = content.replace("{{" + key + "}}", value)
    return content


DEFAULT_CONTRACT_TEMPLATE = """DIENSTLEISTUNGSVERTRAG

Vertragsnummer: {{VERTRAGSNUMMER}}
Datum: {{DATUM}}

zwischen

{{ANBIETER_NAME}}
(nachfolgend "Auftragnehmer")

und

{{KUNDE_NAME}}
{{KUNDE_FIRMA}}
E-Mail: {{KUNDE_EMAIL}}
Telefon: {{KUNDE_TELEFON}}
(nachfolgend "Auftraggeber")

§1 Vertragsgegenstand
Der Auftragnehmer erbringt für den Auftraggeber folgende Leistung:
{{PROJEKT_TYP}}

Beschreibung:
{{PROJEKT_BESCHREIBUNG}}

§2 Vergütung
Das vereinbarte Budget beträgt: {{PROJEKT_BUDGET}}

§3 Zeitrahmen
Gewünschter Zeitrahmen: {{PROJEKT_ZEITRAHMEN}}
Fertigstellung bis: {{DEADLINE}}

§4 Mitwirkungspflichten
Der Auftraggeber stellt alle für die Durchführung notwendigen Informationen
und Materialien rechtzeitig zur Verfügung.

§5 Schlussbestimmungen
Änderungen und Ergänzungen dieses Vertrages bedürfen der Textform.
Referenz: Anfrage #{{ANFRAGE_ID}}


______________________          ______________________
Auftragnehmer                   Auftraggeber
"""
