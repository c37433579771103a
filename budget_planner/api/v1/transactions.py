"""
Transaction API Endpoints - Actual expenses and revenues.

Implements:
- POST /api/v1/transactions - Book a transaction (amount in cents)
- GET /api/v1/transactions?year&type&limit - Newest transactions first
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from budget_planner.models import get_db
from budget_planner.domain.services import TransactionService
from budget_planner.domain.exceptions import DomainError
from .errors import http_error

router = APIRouter()


class TransactionCreate(BaseModel):
    """Request model for booking a transaction."""
    type: str = Field(..., pattern="^(expense|revenue)$", description="expense or revenue")
    amount: int = Field(..., ge=0, description="Amount in cents")
    description: str = Field(..., min_length=1)
    date: date
    budget_item_id: Optional[str] = Field(None, description="Budget item the amount is booked against")
    csv_file_name: Optional[str] = Field(None, max_length=255)
    csv_row_number: Optional[int] = Field(None, ge=1)


class TransactionResponse(BaseModel):
    id: str
    type: str
    amount: int
    description: str
    date: date
    budget_item_id: Optional[str]
    csv_file_name: Optional[str]
    csv_row_number: Optional[int]
    created_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a transaction",
)
def create_transaction(data: TransactionCreate, db: Session = Depends(get_db)):
    try:
        return TransactionService(db).create(
            type=data.type,
            amount_cents=data.amount,
            description=data.description,
            transaction_date=data.date,
            budget_item_id=data.budget_item_id,
            csv_file_name=data.csv_file_name,
            csv_row_number=data.csv_row_number,
        )
    except DomainError as e:
        raise http_error(e)


@router.get("", response_model=List[TransactionResponse], summary="List transactions")
def list_transactions(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    type: Optional[str] = Query(None, pattern="^(expense|revenue)$"),
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    return TransactionService(db).list_transactions(year=year, type=type, limit=limit)
