"""
Expenses module - one-off and recurring owner expenses
Only available once the module has been activated on the owner's profile
"""

import logging
from datetime import date
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import ADMIN_ROLE, get_current_user
from ..database import get_db
from ..models import Expense, Profile, RecurringExpense
from ..schemas import (
    ExpenseCreate,
    ExpenseOccurrence,
    ExpenseResponse,
    RecurringExpenseCreate,
    RecurringExpenseResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["Expenses"])

FREQUENCY_MONTHS = {"monthly": 1, "quarterly": 3, "yearly": 12}


async def get_expenses_user(current_user: Profile = Depends(get_current_user)) -> Profile:
    if not current_user.expenses_module_enabled and current_user.role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Le module dépenses n'est pas activé.")
    return current_user


def default_year(year: Optional[int]) -> int:
    return year if year is not None else date.today().year


def recurring_occurrences(recurring: Iterable[RecurringExpense], year: int) -> list[ExpenseOccurrence]:
    """
    Expand recurring expenses into dated occurrences falling inside `year`.

    Each occurrence is offset from the start date, so a series starting on the
    31st lands on the last day of shorter months without drifting.
    """
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)
    occurrences = []

    for item in recurring:
        step = FREQUENCY_MONTHS.get(item.frequency)
        if not step:
            continue
        last_day = min(year_end, item.end_date) if item.end_date else year_end

        n = 0
        current = item.start_date
        while current <= last_day:
            if current >= year_start:
                occurrences.append(
                    ExpenseOccurrence(
                        id=f"recurring-{item.id}-{current.isoformat()}",
                        recurring_expense_id=item.id,
                        amount=item.amount,
                        description=f"{item.description} (Récurrent)",
                        category=item.category,
                        expense_date=current,
                    )
                )
            n += 1
            current = item.start_date + relativedelta(months=n * step)

    occurrences.sort(key=lambda o: o.expense_date, reverse=True)
    return occurrences


@router.get("", response_model=list[ExpenseResponse])
async def list_expenses(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    """One-off expenses of the given year, newest first"""
    year = default_year(year)
    return (
        db.query(Expense)
        .filter(
            Expense.user_id == current_user.id,
            Expense.expense_date >= date(year, 1, 1),
            Expense.expense_date <= date(year, 12, 31),
        )
        .order_by(Expense.expense_date.desc())
        .all()
    )


@router.post("", response_model=ExpenseResponse, status_code=201)
async def add_expense(
    data: ExpenseCreate,
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    expense = Expense(user_id=current_user.id, **data.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(f"💶 Expense {expense.id} added by {current_user.id}")
    return expense


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str,
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    expense = (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.user_id == current_user.id)
        .first()
    )
    if not expense:
        raise HTTPException(status_code=404, detail="Dépense introuvable.")
    db.delete(expense)
    db.commit()
    return {"message": "Dépense supprimée."}


@router.get("/recurring", response_model=list[RecurringExpenseResponse])
async def list_recurring_expenses(
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(RecurringExpense)
        .filter(RecurringExpense.user_id == current_user.id)
        .order_by(RecurringExpense.start_date.desc())
        .all()
    )


@router.post("/recurring", response_model=RecurringExpenseResponse, status_code=201)
async def add_recurring_expense(
    data: RecurringExpenseCreate,
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    recurring = RecurringExpense(user_id=current_user.id, **data.model_dump())
    db.add(recurring)
    db.commit()
    db.refresh(recurring)
    logger.info(f"🔁 Recurring expense {recurring.id} ({recurring.frequency}) added by {current_user.id}")
    return recurring


@router.delete("/recurring/{recurring_id}")
async def delete_recurring_expense(
    recurring_id: str,
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    recurring = (
        db.query(RecurringExpense)
        .filter(RecurringExpense.id == recurring_id, RecurringExpense.user_id == current_user.id)
        .first()
    )
    if not recurring:
        raise HTTPException(status_code=404, detail="Dépense récurrente introuvable.")
    db.delete(recurring)
    db.commit()
    return {"message": "Dépense récurrente supprimée."}


@router.get("/recurring/occurrences", response_model=list[ExpenseOccurrence])
async def list_recurring_occurrences(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    current_user: Profile = Depends(get_expenses_user),
    db: Session = Depends(get_db),
):
    """Recurring expenses expanded into the dates they fall on during the year"""
    recurring = db.query(RecurringExpense).filter(RecurringExpense.user_id == current_user.id).all()
    return recurring_occurrences(recurring, default_year(year))
