# portfolio/utils/numbering.py

from sqlalchemy.orm import Session


def next_number(db: Session, column, prefix: str, year: int, width: int = 3) -> str:
    """
    Fortlaufende Nummer je Jahr, z. B. V-2024-001, V-2024-002 ...
    Basis ist die höchste vorhandene Nummer, Lücken werden nicht aufgefüllt.
    """
    stem = f"{prefix}-{year}-"
    existing = db.query(column).filter(column.like(f"{stem}%")).all()

    highest = 0
    for (number,) in existing:
        suffix = number[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))

    return f"{stem}{highest + 1:0{width}d}"
