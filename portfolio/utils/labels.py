# portfolio/utils/labels.py
# Anzeige-Texte für Codes, die in Mails, Verträgen und Druckansichten landen.

PROJECT_TYPE_LABELS = {
    "webdesign": "Webdesign",
    "custom-app": "Custom App",
    "discord-bot": "Discord Bot",
    "linux-setup": "Linux Setup",
}

BUDGET_LABELS = {
    "unter-500": "Unter 500 €",
    "500-1000": "500 - 1.000 €",
    "1000-2500": "1.000 - 2.500 €",
    "ueber-2500": "Über 2.500 €",
}

TIMELINE_LABELS = {
    "asap": "So schnell wie möglich",
    "1-2-wochen": "1-2 Wochen",
    "1-monat": "1 Monat",
    "flexibel": "Flexibel",
}

REQUEST_STATUS_LABELS = {
    "new": "Neu",
    "in_progress": "In Bearbeitung",
    "waiting": "Wartet auf Rückmeldung",
    "completed": "Abgeschlossen",
    "cancelled": "Abgebrochen",
}

APPOINTMENT_TYPE_LABELS = {
    "consultation": "Erstberatung",
    "project_discussion": "Projektbesprechung",
    "review": "Review",
    "other": "Sonstiges",
}


def label(mapping: dict, code) -> str:
    """Unbekannte Codes werden unverändert ausgegeben."""
    if code is None:
        return ""
    key = getattr(code, "value", code)
    return mapping.get(key, str(key))
