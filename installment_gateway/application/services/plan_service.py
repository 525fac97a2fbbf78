"""Plan lifecycle service - checkout, proofs, seller decisions."""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

import structlog

from installment_gateway.application.dto import (
    CheckoutRequest,
    OrderResponse,
    SaleDecisionRequest,
    TrancheDecisionRequest,
    TrancheProofRequest,
    normalize_transaction_code,
)
from installment_gateway.application.services.notifier import OutboxNotifier
from installment_gateway.domain.entities import (
    Guarantor,
    InstallmentPlan,
    NotificationType,
    Order,
    OrderItem,
    OrderItemSnapshot,
    OrderStatus,
    PaymentType,
    Product,
    Tranche,
    TrancheStatus,
    TransactionProof,
)
from installment_gateway.domain.exceptions import (
    AmountMismatchException,
    CustomerRestrictedException,
    GuarantorRequiredException,
    InstallmentUnavailableException,
    InvalidInstallmentRequestException,
    InvalidStateTransitionException,
    OrderNotFoundException,
    ProductNotFoundException,
    SequentialGateException,
)
from installment_gateway.domain.interfaces import (
    CartRepository,
    OrderRepository,
    ProductRepository,
    RestrictionClient,
    SalesCounterService,
)
from installment_gateway.domain.lifecycle import (
    require_order_status,
    transition_order,
    transition_tranche,
)
from installment_gateway.service.installments import (
    InstallmentSettings,
    calculate_eligibility_score,
    generate_schedule,
    installment_settings,
    penalty_for,
    risk_level_for_score,
    utcnow,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

DEFAULT_SALE_REJECTION_REASON = "Sale proof rejected by the seller."


class PlanLifecycleService:
    """
    Application service for the installment plan lifecycle.

    Every mutation follows the same shape: load the order, check the
    preconditions, mutate through the transition table, persist with
    the version check, then enqueue notifications.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        product_repository: ProductRepository,
        cart_repository: CartRepository,
        restriction_client: RestrictionClient,
        sales_counter: SalesCounterService,
        notifier: OutboxNotifier,
        settings: InstallmentSettings = installment_settings,
        clock: Clock = utcnow,
    ):
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._cart_repo = cart_repository
        self._restriction_client = restriction_client
        self._sales_counter = sales_counter
        self._notifier = notifier
        self._settings = settings
        self._clock = clock

    async def checkout(self, request: CheckoutRequest) -> OrderResponse:
        """
        Open an installment plan on a product.

        Args:
            request: The checkout request with the buyer's first payment claim

        Returns:
            OrderResponse for the new ``pending_installment`` order

        Raises:
            InvalidInstallmentRequestException: If request validation fails
            ProductNotFoundException: If the product is missing or not approved
            InstallmentUnavailableException: If installments are off or out of window
            CustomerRestrictedException: If the buyer may not order
            GuarantorRequiredException: If guarantor fields are missing
        """
        errors = request.validate(self._settings.transaction_code_length)
        if errors:
            raise InvalidInstallmentRequestException("; ".join(errors))

        log = logger.bind(
            customer_id=request.customer_id,
            product_id=request.product_id,
        )

        product_id = UUID(request.product_id)
        product = await self._product_repo.get_by_id(product_id)
        if product is None or not product.is_purchasable:
            raise ProductNotFoundException(request.product_id)

        now = self._clock()
        config = product.installment
        if not config.is_active(now):
            raise InstallmentUnavailableException(request.product_id)

        restriction = await self._restriction_client.get_order_restriction(
            request.customer_id
        )
        if restriction.is_active(now):
            log.info("checkout_restricted", reason=restriction.reason)
            raise CustomerRestrictedException(request.customer_id)

        total_cents = product.price_cents * request.quantity
        if request.first_payment_cents < config.min_amount_cents:
            raise InvalidInstallmentRequestException(
                f"The first payment must be at least {config.min_amount_cents} cents"
            )
        if request.first_payment_cents > total_cents:
            raise InvalidInstallmentRequestException(
                "The first payment cannot exceed the order total"
            )

        guarantor = self._build_guarantor(request, config.require_guarantor)

        history = await self._order_repo.get_customer_history(request.customer_id)
        score = calculate_eligibility_score(history, self._settings)
        risk_level = risk_level_for_score(score, self._settings)

        payer_name = request.payer_name.strip()
        transaction_code = normalize_transaction_code(request.transaction_code)
        down_payment = Tranche(
            due_date=now,
            amount_cents=request.first_payment_cents,
            status=TrancheStatus.PROOF_UPLOADED,
            transaction_proof=TransactionProof(
                sender_name=payer_name,
                transaction_code=transaction_code,
                amount_cents=request.first_payment_cents,
                submitted_at=now,
                submitted_by=request.customer_id,
            ),
            is_down_payment=True,
        )
        remaining_cents = total_cents - request.first_payment_cents
        duration_days = config.duration_days or self._settings.default_duration_days
        schedule = [down_payment] + generate_schedule(
            remaining_cents,
            duration_days,
            now,
            self._settings,
        )

        plan = InstallmentPlan(
            total_cents=total_cents,
            eligibility_score=score,
            risk_level=risk_level,
            late_penalty_rate=config.late_penalty_rate,
            first_payment_min_cents=config.min_amount_cents,
            schedule=schedule,
            guarantor=guarantor,
        )
        order = Order(
            customer_id=request.customer_id,
            items=[
                OrderItem(
                    product_id=product.id,
                    quantity=request.quantity,
                    snapshot=self._snapshot(product),
                )
            ],
            total_cents=total_cents,
            status=OrderStatus.PENDING_INSTALLMENT,
            payment_type=PaymentType.INSTALLMENT,
            installment_plan=plan,
            payment_name=payer_name,
            payment_transaction_code=transaction_code,
            created_at=now,
            updated_at=now,
        )
        order.sync_amounts()

        await self._order_repo.add(order)
        await self._cart_repo.remove_product(request.customer_id, product.id)

        log.info(
            "plan_created",
            order_id=str(order.id),
            total_cents=total_cents,
            first_payment_cents=request.first_payment_cents,
            num_tranches=len(schedule),
            eligibility_score=score,
            risk_level=risk_level.value,
        )

        await self._notifier.notify(
            recipient_id=product.seller_id,
            actor_id=request.customer_id,
            type=NotificationType.SALE_CONFIRMATION_REQUIRED,
            product_id=product.id,
            metadata={
                "order_id": str(order.id),
                "payer_name": payer_name,
                "transaction_code": transaction_code,
                "first_payment_cents": request.first_payment_cents,
                "total_cents": total_cents,
            },
        )
        await self._notifier.notify(
            recipient_id=request.customer_id,
            actor_id=request.customer_id,
            type=NotificationType.ORDER_CREATED,
            product_id=product.id,
            metadata={
                "order_id": str(order.id),
                "status": order.status.value,
                "payment_type": order.payment_type.value,
            },
        )

        return OrderResponse.from_entity(order)

    async def get_order(self, order_id: UUID, user_id: str) -> OrderResponse:
        """
        Read an installment order as its buyer or its seller.

        Raises:
            OrderNotFoundException: If the caller is neither party
        """
        order = await self._order_repo.get_installment_order_for_customer(order_id, user_id)
        if order is None:
            order = await self._order_repo.get_installment_order_for_seller(order_id, user_id)
        if order is None:
            raise OrderNotFoundException(str(order_id))
        return OrderResponse.from_entity(order)

    async def submit_tranche_proof(self, request: TrancheProofRequest) -> OrderResponse:
        """
        Record a buyer's payment proof for a tranche.

        Raises:
            InvalidInstallmentRequestException: If request validation fails
            OrderNotFoundException: If the buyer has no such order
            TrancheNotFoundException: If the index is out of range
            InvalidStateTransitionException: If the sale is unconfirmed or the
                tranche is not pending/overdue
            SequentialGateException: If an earlier tranche is unresolved
            AmountMismatchException: If the amount differs from the tranche
        """
        errors = request.validate(self._settings.transaction_code_length)
        if errors:
            raise InvalidInstallmentRequestException("; ".join(errors))

        order = await self._order_repo.get_installment_order_for_customer(
            request.order_id, request.customer_id
        )
        if order is None:
            raise OrderNotFoundException(str(request.order_id))

        plan = order.installment_plan
        tranche = plan.tranche(request.index)

        if tranche.is_resolved:
            raise InvalidStateTransitionException(
                f"Tranche {request.index} is already {tranche.status.value}",
                current=tranche.status.value,
                target=TrancheStatus.PROOF_UPLOADED.value,
            )
        if tranche.awaiting_validation:
            raise InvalidStateTransitionException(
                f"Tranche {request.index} is awaiting seller validation",
                current=tranche.status.value,
                target=TrancheStatus.PROOF_UPLOADED.value,
            )

        blocking = plan.first_unresolved_before(request.index)
        if blocking is not None:
            raise SequentialGateException(request.index, blocking)

        if not plan.is_sale_confirmed:
            raise InvalidStateTransitionException(
                "The sale must be confirmed by the seller before paying tranches",
                current=order.status.value,
            )

        if request.amount_cents != tranche.amount_cents:
            raise AmountMismatchException(tranche.amount_cents, request.amount_cents)

        now = self._clock()
        transition_tranche(tranche, request.index, TrancheStatus.PROOF_UPLOADED)
        tranche.transaction_proof = TransactionProof(
            sender_name=request.payer_name.strip(),
            transaction_code=normalize_transaction_code(request.transaction_code),
            amount_cents=request.amount_cents,
            submitted_at=now,
            submitted_by=request.customer_id,
        )
        order.sync_amounts()

        await self._order_repo.update(order)

        logger.info(
            "tranche_proof_submitted",
            order_id=str(order.id),
            tranche_index=request.index,
            amount_cents=request.amount_cents,
        )

        await self._notifier.notify(
            recipient_id=order.seller_id,
            actor_id=request.customer_id,
            type=NotificationType.PAYMENT_SUBMITTED,
            product_id=order.primary_product_id,
            metadata={
                "order_id": str(order.id),
                "tranche_index": request.index,
                "amount_cents": tranche.amount_cents,
                "due_date": tranche.due_date.isoformat(),
                "payer_name": tranche.transaction_proof.sender_name,
                "transaction_code": tranche.transaction_proof.transaction_code,
            },
        )

        return OrderResponse.from_entity(order)

    async def decide_sale(self, request: SaleDecisionRequest) -> OrderResponse:
        """Dispatch a seller's sale decision to confirm or reject."""
        if request.approve:
            return await self.confirm_sale(request.order_id, request.seller_id)
        return await self.reject_sale(request.order_id, request.seller_id, request.reason)

    async def confirm_sale(self, order_id: UUID, seller_id: str) -> OrderResponse:
        """
        Confirm the initial payment and activate the plan.

        Raises:
            OrderNotFoundException: If the seller has no such order
            InvalidStateTransitionException: If the order is not pending
        """
        order = await self._get_seller_order(order_id, seller_id)
        require_order_status(order, OrderStatus.PENDING_INSTALLMENT)

        now = self._clock()
        plan = order.installment_plan
        plan.sale_confirmed_at = now
        plan.sale_confirmed_by = seller_id
        transition_order(order, OrderStatus.INSTALLMENT_ACTIVE)
        order.sync_amounts()

        await self._order_repo.update(order)

        logger.info(
            "sale_confirmed",
            order_id=str(order.id),
            seller_id=seller_id,
            next_due_date=plan.next_due_date.isoformat() if plan.next_due_date else None,
        )

        await self._notifier.notify(
            recipient_id=order.customer_id,
            actor_id=seller_id,
            type=NotificationType.SALE_CONFIRMED,
            product_id=order.primary_product_id,
            metadata={
                "order_id": str(order.id),
                "next_due_date": (
                    plan.next_due_date.isoformat() if plan.next_due_date else None
                ),
            },
        )

        return OrderResponse.from_entity(order)

    async def reject_sale(
        self,
        order_id: UUID,
        seller_id: str,
        reason: Optional[str] = None,
    ) -> OrderResponse:
        """
        Reject the initial payment; the order is cancelled.

        Raises:
            OrderNotFoundException: If the seller has no such order
            InvalidStateTransitionException: If the order is not pending
        """
        order = await self._get_seller_order(order_id, seller_id)
        require_order_status(order, OrderStatus.PENDING_INSTALLMENT)

        transition_order(order, OrderStatus.CANCELLED)
        order.cancelled_at = self._clock()
        order.cancelled_by = seller_id
        order.cancellation_reason = (reason or "").strip() or DEFAULT_SALE_REJECTION_REASON

        await self._order_repo.update(order)

        logger.info(
            "sale_rejected",
            order_id=str(order.id),
            seller_id=seller_id,
            reason=order.cancellation_reason,
        )

        await self._notifier.notify(
            recipient_id=order.customer_id,
            actor_id=seller_id,
            type=NotificationType.SALE_REJECTED,
            product_id=order.primary_product_id,
            metadata={
                "order_id": str(order.id),
                "reason": order.cancellation_reason,
            },
        )

        return OrderResponse.from_entity(order)

    async def decide_tranche(self, request: TrancheDecisionRequest) -> OrderResponse:
        """Dispatch a seller's tranche decision to validate or reject."""
        if request.approve:
            return await self.validate_tranche(
                request.order_id, request.index, request.seller_id
            )
        return await self.reject_tranche(request.order_id, request.index, request.seller_id)

    async def validate_tranche(
        self,
        order_id: UUID,
        index: int,
        seller_id: str,
    ) -> OrderResponse:
        """
        Accept a submitted proof; applies the late penalty if due.

        Raises:
            OrderNotFoundException: If the seller has no such order
            TrancheNotFoundException: If the index is out of range
            InvalidStateTransitionException: If the sale is unconfirmed, the
                tranche has no proof, or the order is not being serviced
        """
        order = await self._get_seller_order(order_id, seller_id)
        plan = self._require_confirmed_plan(order)
        require_order_status(
            order,
            OrderStatus.INSTALLMENT_ACTIVE,
            OrderStatus.OVERDUE_INSTALLMENT,
        )

        tranche = plan.tranche(index)
        if not tranche.awaiting_validation:
            raise InvalidStateTransitionException(
                f"Tranche {index} has no proof awaiting validation",
                current=tranche.status.value,
                target=TrancheStatus.PAID.value,
            )
        if not tranche.has_valid_proof:
            raise InvalidStateTransitionException(
                f"Tranche {index} has no valid transaction proof",
                current=tranche.status.value,
                target=TrancheStatus.PAID.value,
            )

        now = self._clock()
        penalty_cents = penalty_for(tranche, plan.late_penalty_rate, now)
        transition_tranche(tranche, index, TrancheStatus.PAID)
        tranche.penalty_cents = penalty_cents
        tranche.validated_by = seller_id
        tranche.validated_at = now
        tranche.paid_at = now
        order.sync_amounts()

        completed = plan.remaining_cents <= 0
        if completed:
            transition_order(order, OrderStatus.COMPLETED)
        else:
            transition_order(order, self._servicing_status(plan))

        await self._order_repo.update(order)

        log = logger.bind(order_id=str(order.id), tranche_index=index)
        log.info(
            "tranche_validated",
            amount_cents=tranche.amount_cents,
            penalty_cents=penalty_cents,
            amount_paid_cents=plan.amount_paid_cents,
            remaining_cents=plan.remaining_cents,
        )

        if completed:
            for item in order.items:
                await self._sales_counter.recompute(item.product_id)
            log.info("plan_completed", total_penalty_cents=plan.total_penalty_cents)

        await self._notifier.notify(
            recipient_id=order.customer_id,
            actor_id=seller_id,
            type=NotificationType.PAYMENT_VALIDATED,
            product_id=order.primary_product_id,
            metadata={
                "order_id": str(order.id),
                "tranche_index": index,
                "amount_cents": tranche.amount_cents,
                "penalty_cents": penalty_cents,
            },
        )
        if completed:
            await self._notifier.notify(
                recipient_id=order.customer_id,
                actor_id=seller_id,
                type=NotificationType.PLAN_COMPLETED,
                product_id=order.primary_product_id,
                metadata={
                    "order_id": str(order.id),
                    "invoice_eligible": True,
                },
            )

        return OrderResponse.from_entity(order)

    async def reject_tranche(
        self,
        order_id: UUID,
        index: int,
        seller_id: str,
    ) -> OrderResponse:
        """
        Reject a submitted proof and drop it.

        A tranche under review goes back to pending; one the sweeper
        already flagged stays overdue.

        Raises:
            OrderNotFoundException: If the seller has no such order
            TrancheNotFoundException: If the index is out of range
            InvalidStateTransitionException: If the sale is unconfirmed or the
                tranche has no proof awaiting validation
        """
        order = await self._get_seller_order(order_id, seller_id)
        plan = self._require_confirmed_plan(order)

        tranche = plan.tranche(index)
        if not tranche.awaiting_validation:
            raise InvalidStateTransitionException(
                f"Tranche {index} has no proof awaiting validation",
                current=tranche.status.value,
                target=TrancheStatus.PENDING.value,
            )
        # An overdue tranche stays overdue once its proof is dropped
        if tranche.status == TrancheStatus.PROOF_UPLOADED:
            transition_tranche(tranche, index, TrancheStatus.PENDING)
        tranche.transaction_proof = None
        tranche.validated_by = None
        tranche.validated_at = None
        tranche.paid_at = None
        order.sync_amounts()

        await self._order_repo.update(order)

        logger.info(
            "tranche_proof_rejected",
            order_id=str(order.id),
            tranche_index=index,
        )

        await self._notifier.notify(
            recipient_id=order.customer_id,
            actor_id=seller_id,
            type=NotificationType.PAYMENT_REJECTED,
            product_id=order.primary_product_id,
            metadata={
                "order_id": str(order.id),
                "tranche_index": index,
                "amount_cents": tranche.amount_cents,
            },
        )

        return OrderResponse.from_entity(order)

    async def _get_seller_order(self, order_id: UUID, seller_id: str) -> Order:
        order = await self._order_repo.get_installment_order_for_seller(order_id, seller_id)
        if order is None:
            raise OrderNotFoundException(str(order_id))
        return order

    def _require_confirmed_plan(self, order: Order) -> InstallmentPlan:
        plan = order.installment_plan
        if plan is None or not plan.is_sale_confirmed:
            raise InvalidStateTransitionException(
                "The sale must be confirmed before payments can be reviewed",
                current=order.status.value,
            )
        return plan

    @staticmethod
    def _servicing_status(plan: InstallmentPlan) -> OrderStatus:
        if plan.overdue_count > 0:
            return OrderStatus.OVERDUE_INSTALLMENT
        return OrderStatus.INSTALLMENT_ACTIVE

    def _build_guarantor(
        self,
        request: CheckoutRequest,
        required: bool,
    ) -> Optional[Guarantor]:
        source = request.guarantor
        if source is None and not required:
            return None

        guarantor = Guarantor(
            full_name=(source.full_name if source else "").strip(),
            phone=(source.phone if source else "").strip(),
            relation=(source.relation if source else "").strip(),
            address=(source.address if source else "").strip(),
            national_id=(source.national_id if source else "").strip(),
            required=required,
        )
        if required:
            missing = guarantor.missing_fields()
            if missing:
                raise GuarantorRequiredException(missing)
        return guarantor

    @staticmethod
    def _snapshot(product: Product) -> OrderItemSnapshot:
        return OrderItemSnapshot(
            title=product.title,
            price_cents=product.price_cents,
            shop_id=product.seller_id,
            shop_name=product.shop_name,
            image=product.images[0] if product.images else None,
            slug=product.slug,
        )
