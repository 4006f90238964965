"""Monthly generation of transactions from recurring templates."""
import logging

from sqlmodel import Session

import store
from models import RecurringTransaction, Transaction
from utils import clamp_day, validate_period

logger = logging.getLogger(__name__)


def already_generated(template: RecurringTransaction, month: int, year: int) -> bool:
    return template.last_generated_month == month and template.last_generated_year == year


def generate_recurring_transactions_for_month(session: Session, month: int, year: int) -> list[Transaction]:
    """Create this period's transaction for every active template.

    Templates already generated for the period are skipped, so calling this
    twice for the same month does not duplicate anything. A day_of_month past
    the end of the month lands on its last day.
    """
    validate_period(month, year)
    created: list[Transaction] = []

    for template in store.get_recurring_transactions(session, active_only=True):
        if already_generated(template, month, year):
            continue

        transaction = Transaction(
            type=template.type,
            category=template.category,
            description=template.description,
            amount=template.amount,
            currency=template.currency,
            date=clamp_day(template.day_of_month, month, year),
        )
        template.last_generated_month = month
        template.last_generated_year = year

        with store.persistence(session, f"generate recurring transaction {template.id}"):
            session.add(transaction)
            session.add(template)
            session.commit()
            session.refresh(transaction)
        created.append(transaction)

    logger.info("Generated %d recurring transactions for %d/%d", len(created), month, year)
    return created
