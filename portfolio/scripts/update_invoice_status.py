# portfolio/scripts/update_invoice_status.py
# Manuell oder per Cron: python -m portfolio.scripts.update_invoice_status
from portfolio.database import SessionLocal
from portfolio.jobs import run_payment_reminder_check


def run():
    db = SessionLocal()

    try:
        count = run_payment_reminder_check(db)
        print(f"📨 {count} Rechnung(en) als überfällig markiert.")
    finally:
        db.close()


if __name__ == "__main__":
    run()
