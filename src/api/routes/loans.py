"""Loan routes."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from src.api.deps import get_loan_service
from src.api.schemas import (
    AmortizationItemResponse,
    CancelledResponse,
    CreateLoanRequest,
    CustomerResponse,
    FundLoanRequest,
    LoanBalanceResponse,
    LoanResponse,
    LoanSummaryResponse,
    PaymentAppliedResponse,
    PropertyResponse,
    UpdateLoanRequest,
)
from src.data.loan_service import EnrichedLoan, LoanPreconditionError, LoanService
from src.models.db import LoanRecord, ScheduleItemRecord
from src.models.loan import LoanApplication, LoanChanges

router = APIRouter(prefix="/api/v1/loans", tags=["loans"])


def _summary(loan: LoanRecord) -> LoanSummaryResponse:
    return LoanSummaryResponse(
        id=loan.id,
        loan_number=loan.loan_number,
        customer_id=loan.customer_id,
        property_id=loan.property_id,
        principal_amount=loan.principal_amount,
        interest_rate=loan.interest_rate,
        term_months=loan.term_months,
        loan_type=loan.loan_type.value,
        status=loan.status.value,
        monthly_payment=loan.monthly_payment,
        current_balance=loan.current_balance,
        created_at=loan.created_at,
    )


def _loan_to_response(view: EnrichedLoan) -> LoanResponse:
    loan = view.loan
    customer = None
    if view.customer is not None:
        c = view.customer
        customer = CustomerResponse(
            id=c.id,
            first_name=c.first_name,
            last_name=c.last_name,
            full_name=c.display_name,
            email=c.email,
            phone=c.phone,
        )
    prop = None
    if view.property is not None:
        p = view.property
        prop = PropertyResponse(
            id=p.id,
            full_address=p.full_address,
            property_type=p.property_type,
            estimated_value=p.estimated_value,
            listing_price=p.listing_price,
            bedrooms=p.bedrooms,
            bathrooms=p.bathrooms,
            square_feet=p.square_feet,
        )

    return LoanResponse(
        **_summary(loan).model_dump(),
        customer=customer,
        property=prop,
        original_balance=loan.original_balance,
        start_date=loan.start_date,
        maturity_date=loan.maturity_date,
        first_payment_date=loan.first_payment_date,
        down_payment=loan.down_payment,
        ltv=loan.ltv,
        dti=loan.dti,
        has_escrow=loan.has_escrow,
        escrow_balance=loan.escrow_balance,
        monthly_escrow_amount=loan.monthly_escrow_amount,
        updated_at=loan.updated_at,
        closed_at=loan.closed_at,
        notes=loan.notes,
    )


def _item_to_response(item: ScheduleItemRecord) -> AmortizationItemResponse:
    return AmortizationItemResponse(
        payment_number=item.payment_number,
        payment_date=item.payment_date,
        payment_amount=item.payment_amount,
        principal_amount=item.principal_amount,
        interest_amount=item.interest_amount,
        escrow_amount=item.escrow_amount,
        remaining_balance=item.remaining_balance,
        cumulative_interest=item.cumulative_interest,
        cumulative_principal=item.cumulative_principal,
        is_paid=item.is_paid,
        actual_payment_date=item.actual_payment_date,
    )


def _not_found(loan_ref) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Loan {loan_ref} not found")


@router.get("", response_model=list[LoanSummaryResponse])
async def list_loans(service: LoanService = Depends(get_loan_service)):
    return [_summary(loan) for loan in await service.list_loans()]


@router.get("/number/{loan_number}", response_model=LoanResponse)
async def get_loan_by_number(loan_number: str, service: LoanService = Depends(get_loan_service)):
    view = await service.get_loan_by_number(loan_number)
    if view is None:
        raise _not_found(loan_number)
    return _loan_to_response(view)


@router.get("/customer/{customer_id}", response_model=list[LoanSummaryResponse])
async def list_by_customer(customer_id: UUID, service: LoanService = Depends(get_loan_service)):
    return [_summary(loan) for loan in await service.list_by_customer(customer_id)]


@router.get("/property/{property_id}", response_model=list[LoanSummaryResponse])
async def list_by_property(property_id: UUID, service: LoanService = Depends(get_loan_service)):
    return [_summary(loan) for loan in await service.list_by_property(property_id)]


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(
    loan_id: UUID,
    enrich: bool = True,
    service: LoanService = Depends(get_loan_service),
):
    """Get a loan, with customer and property details unless enrich=false."""
    view = await service.get_loan(loan_id, enrich=enrich)
    if view is None:
        raise _not_found(loan_id)
    return _loan_to_response(view)


@router.post("", response_model=LoanResponse, status_code=201)
async def create_loan(req: CreateLoanRequest, service: LoanService = Depends(get_loan_service)):
    application = LoanApplication(**req.model_dump())
    try:
        view = await service.create_loan(application)
    except LoanPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _loan_to_response(view)


@router.put("/{loan_id}", response_model=LoanResponse)
async def update_loan(
    loan_id: UUID,
    req: UpdateLoanRequest,
    service: LoanService = Depends(get_loan_service),
):
    try:
        view = await service.update_loan(loan_id, LoanChanges(**req.model_dump()))
    except LoanPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if view is None:
        raise _not_found(loan_id)
    return _loan_to_response(view)


@router.post("/{loan_id}/fund", response_model=LoanResponse)
async def fund_loan(
    loan_id: UUID,
    req: FundLoanRequest,
    service: LoanService = Depends(get_loan_service),
):
    """Fund a loan and generate its amortization schedule."""
    try:
        view = await service.fund_loan(
            loan_id, req.funding_date, req.first_payment_date, notes=req.notes
        )
    except LoanPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if view is None:
        raise _not_found(loan_id)
    return _loan_to_response(view)


@router.delete("/{loan_id}", response_model=CancelledResponse)
async def cancel_loan(loan_id: UUID, service: LoanService = Depends(get_loan_service)):
    """Soft delete: the loan is kept with status Cancelled."""
    try:
        cancelled = await service.cancel_loan(loan_id)
    except LoanPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not cancelled:
        raise _not_found(loan_id)
    return CancelledResponse(id=loan_id)


@router.get("/{loan_id}/balance", response_model=LoanBalanceResponse)
async def get_balance(loan_id: UUID, service: LoanService = Depends(get_loan_service)):
    snapshot = await service.get_balance(loan_id)
    if snapshot is None:
        raise _not_found(loan_id)
    return LoanBalanceResponse(**vars(snapshot))


@router.get("/{loan_id}/schedule", response_model=list[AmortizationItemResponse])
async def get_schedule(loan_id: UUID, service: LoanService = Depends(get_loan_service)):
    return [_item_to_response(item) for item in await service.get_schedule(loan_id)]


@router.post("/{loan_id}/schedule/regenerate", response_model=list[AmortizationItemResponse])
async def regenerate_schedule(loan_id: UUID, service: LoanService = Depends(get_loan_service)):
    """Discard the loan's schedule and rebuild it from its current terms."""
    try:
        items = await service.generate_schedule(loan_id)
    except LoanPreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if items is None:
        raise _not_found(loan_id)
    return [_item_to_response(item) for item in items]


@router.post("/{loan_id}/apply-payment", response_model=PaymentAppliedResponse)
async def apply_payment(
    loan_id: UUID,
    principal: Decimal = Query(..., ge=0),
    interest: Decimal = Query(..., ge=0),
    service: LoanService = Depends(get_loan_service),
):
    """Internal endpoint for the payment service."""
    if not await service.apply_payment(loan_id, principal, interest):
        raise _not_found(loan_id)
    return PaymentAppliedResponse(loan_id=loan_id)
