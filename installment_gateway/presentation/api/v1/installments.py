"""Installment API endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from installment_gateway.application.dto import (
    CheckoutRequest,
    GuarantorInput,
    OrderResponse,
    ProductConfigRequest,
    SaleDecisionRequest,
    TrancheDecisionRequest,
    TrancheProofRequest,
)
from installment_gateway.application.services import (
    AnalyticsService,
    EligibilityService,
    PlanLifecycleService,
    ProductConfigService,
    ReconciliationSweeper,
)
from installment_gateway.core.dependencies import (
    get_analytics_service,
    get_current_user_id,
    get_eligibility_service,
    get_plan_service,
    get_product_config_service,
    get_reconciliation_sweeper,
)
from installment_gateway.core.metrics import (
    record_checkout_rejection,
    record_plan_completed,
    record_plan_created,
    record_sale_confirmation,
    record_tranche_proof,
    record_tranche_validation,
)
from installment_gateway.domain.entities import OrderStatus
from installment_gateway.domain.exceptions import DomainException
from installment_gateway.presentation.schemas import (
    CheckoutRequestSchema,
    EligibilitySchema,
    ErrorResponseSchema,
    OrderResponseSchema,
    ProductConfigResponseSchema,
    ProductConfigSchema,
    SaleDecisionSchema,
    SellerAnalyticsSchema,
    SweepReportSchema,
    TrancheDecisionSchema,
    TrancheProofSchema,
)

installments_router = APIRouter(
    prefix="/installments",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        401: {"model": ErrorResponseSchema, "description": "Missing caller identity"},
        404: {"model": ErrorResponseSchema, "description": "Not found"},
        409: {"model": ErrorResponseSchema, "description": "State conflict"},
    },
)

CurrentUser = Annotated[str, Depends(get_current_user_id)]
TrancheIndex = Annotated[int, Path(ge=0, description="Position of the tranche in the schedule")]


def _order_schema(response: OrderResponse) -> OrderResponseSchema:
    return OrderResponseSchema.model_validate(asdict(response))


@installments_router.post(
    "/checkout",
    response_model=OrderResponseSchema,
    status_code=201,
    summary="Open Installment Plan",
    description="""
    Buy a product in installments.

    The first transfer is recorded as an already-claimed tranche and the
    remaining balance is split into roughly monthly tranches. The order
    waits in `pending_installment` until the seller confirms the sale.
    """,
    responses={
        201: {"description": "Order created"},
        403: {"model": ErrorResponseSchema, "description": "Customer restricted"},
        503: {"model": ErrorResponseSchema, "description": "Users service unavailable"},
    },
)
async def checkout(
    request: CheckoutRequestSchema,
    customer_id: CurrentUser,
    plan_service: Annotated[PlanLifecycleService, Depends(get_plan_service)],
) -> OrderResponseSchema:
    guarantor = None
    if request.guarantor is not None:
        guarantor = GuarantorInput(
            full_name=request.guarantor.full_name,
            phone=request.guarantor.phone,
            relation=request.guarantor.relation,
            address=request.guarantor.address,
            national_id=request.guarantor.national_id,
        )

    dto = CheckoutRequest(
        customer_id=customer_id,
        product_id=request.product_id,
        quantity=request.quantity,
        first_payment_cents=request.first_payment_cents,
        payer_name=request.payer_name,
        transaction_code=request.transaction_code,
        guarantor=guarantor,
    )

    try:
        response = await plan_service.checkout(dto)
    except DomainException as exc:
        record_checkout_rejection(exc.code)
        raise

    record_plan_created(response.installment_plan.risk_level)
    return _order_schema(response)


@installments_router.get(
    "/orders/{order_id}",
    response_model=OrderResponseSchema,
    summary="Get Installment Order",
    description="Read an installment order, as its buyer or its seller, with schedule and progress.",
)
async def get_order(
    order_id: UUID,
    user_id: CurrentUser,
    plan_service: Annotated[PlanLifecycleService, Depends(get_plan_service)],
) -> OrderResponseSchema:
    response = await plan_service.get_order(order_id, user_id)
    return _order_schema(response)


@installments_router.post(
    "/orders/{order_id}/tranches/{index}/proof",
    response_model=OrderResponseSchema,
    summary="Submit Tranche Proof",
    description="""
    Claim that a tranche was paid by external transfer.

    Every earlier tranche must already be paid or waived, and the amount
    must equal the tranche amount exactly.
    """,
)
async def submit_tranche_proof(
    order_id: UUID,
    index: TrancheIndex,
    request: TrancheProofSchema,
    customer_id: CurrentUser,
    plan_service: Annotated[PlanLifecycleService, Depends(get_plan_service)],
) -> OrderResponseSchema:
    dto = TrancheProofRequest(
        order_id=order_id,
        index=index,
        customer_id=customer_id,
        payer_name=request.payer_name,
        transaction_code=request.transaction_code,
        amount_cents=request.amount_cents,
    )
    response = await plan_service.submit_tranche_proof(dto)

    record_tranche_proof()
    return _order_schema(response)


@installments_router.post(
    "/seller/orders/{order_id}/confirm-sale",
    response_model=OrderResponseSchema,
    summary="Confirm or Reject Sale",
    description="""
    Seller decision on the initial payment: `approve: true` activates the
    plan, `approve: false` cancels the order with an optional reason.
    """,
)
async def decide_sale(
    order_id: UUID,
    request: SaleDecisionSchema,
    seller_id: CurrentUser,
    plan_service: Annotated[PlanLifecycleService, Depends(get_plan_service)],
) -> OrderResponseSchema:
    dto = SaleDecisionRequest(
        order_id=order_id,
        seller_id=seller_id,
        approve=request.approve,
        reason=request.reason,
    )
    response = await plan_service.decide_sale(dto)

    record_sale_confirmation(request.approve)
    return _order_schema(response)


@installments_router.post(
    "/seller/orders/{order_id}/tranches/{index}/validate",
    response_model=OrderResponseSchema,
    summary="Validate or Reject Tranche Proof",
    description="""
    Seller decision on a submitted proof. Validation marks the tranche
    paid and applies the late penalty when the due date has passed;
    rejection rewinds the tranche to pending.
    """,
)
async def decide_tranche(
    order_id: UUID,
    index: TrancheIndex,
    request: TrancheDecisionSchema,
    seller_id: CurrentUser,
    plan_service: Annotated[PlanLifecycleService, Depends(get_plan_service)],
) -> OrderResponseSchema:
    dto = TrancheDecisionRequest(
        order_id=order_id,
        index=index,
        seller_id=seller_id,
        approve=request.approve,
    )
    response = await plan_service.decide_tranche(dto)

    penalty_cents = response.installment_plan.schedule[index].penalty_cents
    record_tranche_validation(request.approve, penalty_cents if request.approve else 0)
    if request.approve and response.status == OrderStatus.COMPLETED.value:
        record_plan_completed()

    return _order_schema(response)


@installments_router.get(
    "/seller/analytics",
    response_model=SellerAnalyticsSchema,
    summary="Seller Installment Analytics",
    description="Counts and sums of the caller's installment sales, grouped by order status.",
)
async def seller_analytics(
    seller_id: CurrentUser,
    analytics_service: Annotated[AnalyticsService, Depends(get_analytics_service)],
) -> SellerAnalyticsSchema:
    response = await analytics_service.get_seller_analytics(seller_id)
    return SellerAnalyticsSchema.model_validate(asdict(response))


@installments_router.get(
    "/eligibility",
    response_model=EligibilitySchema,
    summary="Installment Eligibility",
    description="The caller's eligibility score (0-100) and risk level.",
)
async def eligibility(
    customer_id: CurrentUser,
    eligibility_service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> EligibilitySchema:
    response = await eligibility_service.get_eligibility(customer_id)
    return EligibilitySchema(
        customer_id=response.customer_id,
        eligibility_score=response.eligibility_score,
        risk_level=response.risk_level,
    )


@installments_router.put(
    "/seller/products/{product_id}/config",
    response_model=ProductConfigResponseSchema,
    summary="Set Product Installment Terms",
    description="""
    Validate and store a product's installment terms. Saving enabled terms
    lifts an automatic suspension.
    """,
)
async def configure_product(
    product_id: UUID,
    request: ProductConfigSchema,
    seller_id: CurrentUser,
    config_service: Annotated[ProductConfigService, Depends(get_product_config_service)],
) -> ProductConfigResponseSchema:
    dto = ProductConfigRequest(
        product_id=product_id,
        seller_id=seller_id,
        enabled=request.enabled,
        min_amount_cents=request.min_amount_cents,
        duration_days=request.duration_days,
        start_date=request.start_date,
        end_date=request.end_date,
        late_penalty_rate=request.late_penalty_rate,
        max_missed_payments=request.max_missed_payments,
        require_guarantor=request.require_guarantor,
    )
    response = await config_service.configure(dto)
    return ProductConfigResponseSchema.model_validate(asdict(response))


@installments_router.post(
    "/sweeps",
    response_model=SweepReportSchema,
    summary="Run Reconciliation Sweep",
    description="Run one reconciliation pass now; intended for an external scheduler.",
)
async def run_sweep(
    user_id: CurrentUser,
    sweeper: Annotated[ReconciliationSweeper, Depends(get_reconciliation_sweeper)],
) -> SweepReportSchema:
    report = await sweeper.run(triggered_by=user_id)
    return SweepReportSchema(
        processed_orders=report.processed_orders,
        reminders_sent=report.reminders_sent,
        overdue_warnings_sent=report.overdue_warnings_sent,
        suspended_products=report.suspended_products,
        conflicts=report.conflicts,
    )
