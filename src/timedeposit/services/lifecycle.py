"""Investment lifecycle: opening, cancellation and administrative transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Type, TypeVar

from ..config import BaseConfig, CancellationPolicy
from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.investment import (
    ALLOWED_TRANSITIONS,
    InterestModality,
    Investment,
    InvestmentState,
    Product,
)
from ..models.movement import Movement, MovementType
from ..models.schedule import ScheduleEntry, ScheduleEntryState
from .calculator import BusinessDayAdjuster, InterestCalculator, to_decimal
from .rates import RateTable
from .schedule import ScheduleGenerator
from .simulator import check_limits, parse_term
from .unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = get_logger("lifecycle")

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    if value is None or not isinstance(value, str):
        raise ValidationError(f"{field} is required", field=field)
    try:
        return enum_cls(value.strip().upper())
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {choices}", field=field, value=value
        ) from exc


@dataclass(slots=True)
class CancellationResult:
    investment: Investment
    payout: Decimal
    movement: Movement

    def to_dict(self) -> dict[str, Any]:
        return {
            "investment": self.investment.to_dict(),
            "payout": f"{self.payout:.2f}",
            "movement": self.movement.to_dict(),
        }


class InvestmentLifecycle:
    """Owns every state change of an investment outside the settlement batch."""

    def __init__(
        self,
        units: UnitOfWorkFactory,
        rate_table: RateTable,
        calculator: InterestCalculator,
        adjuster: BusinessDayAdjuster,
        schedule_generator: ScheduleGenerator,
        config: BaseConfig,
        *,
        today: Callable[[], date] = date.today,
    ):
        self.units = units
        self.rate_table = rate_table
        self.calculator = calculator
        self.adjuster = adjuster
        self.schedule_generator = schedule_generator
        self.config = config
        self.today = today

    # Opening

    def create(
        self,
        account_id: Any,
        principal: Any,
        term_days: Any,
        modality: Any,
        auto_renew: Any = False,
        product: Any = Product.TIME_DEPOSIT,
        open_date: Optional[date] = None,
    ) -> Investment:
        """Validate, price and open a deposit funded from ``account_id``."""

        if not account_id or not isinstance(account_id, str):
            raise ValidationError("account_id is required", field="account_id")
        amount = to_decimal(principal, "principal")
        if amount <= 0:
            raise ValidationError("principal must be positive", field="principal")
        term = parse_term(term_days)
        check_limits(self.config.limits(), amount, term)
        interest_modality = parse_enum(InterestModality, modality, "interest_modality")
        product_kind = parse_enum(Product, product, "product")
        if not isinstance(auto_renew, bool):
            raise ValidationError("auto_renew must be a boolean", field="auto_renew")

        with self.units() as uow:
            if not uow.ledger.has_account(account_id):
                raise NotFoundError(f"Account {account_id} not found", account_id=account_id)
            investment = self.open_contract(
                uow,
                account_id=account_id,
                principal=amount,
                term_days=term,
                modality=interest_modality,
                auto_renew=auto_renew,
                product=product_kind,
                open_date=open_date or self.today(),
            )
        logger.info(
            "Investment opened",
            extra={
                "investment_id": investment.id,
                "account_id": account_id,
                "principal": str(amount),
                "term_days": term,
            },
        )
        return investment

    def open_contract(
        self,
        uow: UnitOfWork,
        *,
        account_id: str,
        principal: Decimal,
        term_days: int,
        modality: InterestModality,
        auto_renew: bool,
        product: Product,
        open_date: date,
        renewed_from_id: Optional[str] = None,
    ) -> Investment:
        """Persist a contract, its schedule and its OPENING movement inside ``uow``.

        New contracts debit the principal from the account; renewals roll the
        principal of the matured contract, so no money moves.
        """

        investment = Investment(
            account_id=account_id,
            product=product,
            principal=principal,
            term_days=term_days,
            interest_modality=modality,
            open_date=open_date,
            maturity_date=self.adjuster.adjust_maturity(open_date, term_days),
            auto_renew=auto_renew,
            state=InvestmentState.ACTIVE,
            annual_rate=self.rate_table.lookup(principal, term_days),
            renewed_from_id=renewed_from_id,
        )
        uow.investments.add(investment)
        uow.schedule.add_all(self.schedule_generator.generate(investment))

        transaction_id = None
        if renewed_from_id is None:
            transaction_id = uow.ledger.debit(
                account_id, principal, f"Time deposit opening {investment.id}"
            )
        uow.movements.add(
            Movement(
                investment_id=investment.id,
                transaction_id=transaction_id,
                movement_type=MovementType.OPENING,
                amount=principal,
            )
        )
        return investment

    # Queries

    def _require(self, uow: UnitOfWork, investment_id: str) -> Investment:
        investment = uow.investments.get(investment_id)
        if investment is None:
            raise NotFoundError(
                f"Investment {investment_id} not found", investment_id=investment_id
            )
        return investment

    def get(self, investment_id: str) -> Investment:
        with self.units() as uow:
            return self._require(uow, investment_id)

    def list(
        self,
        account_id: Optional[str] = None,
        state: Any = None,
        product: Any = None,
    ) -> list[Investment]:
        state_filter = parse_enum(InvestmentState, state, "state") if state else None
        product_filter = parse_enum(Product, product, "product") if product else None
        with self.units() as uow:
            return uow.investments.find(
                account_id=account_id or None, state=state_filter, product=product_filter
            )

    def schedule(self, investment_id: str) -> list[ScheduleEntry]:
        with self.units() as uow:
            self._require(uow, investment_id)
            return uow.schedule.list_for(investment_id)

    def movements(self, investment_id: str) -> list[Movement]:
        with self.units() as uow:
            self._require(uow, investment_id)
            return uow.movements.list_for(investment_id)

    # Mutations

    def update(self, investment_id: str, *, auto_renew: Any) -> Investment:
        """Toggle auto-renew while the contract is still running."""

        if not isinstance(auto_renew, bool):
            raise ValidationError("auto_renew must be a boolean", field="auto_renew")
        with self.units() as uow:
            investment = self._require(uow, investment_id)
            if investment.state is not InvestmentState.ACTIVE:
                raise InvalidStateError(
                    "Only ACTIVE investments can be modified",
                    investment_id=investment_id,
                    state=investment.state.value,
                )
            investment.auto_renew = auto_renew
            return uow.investments.save(investment)

    def accrued_payout(self, investment: Investment, as_of: date, already_paid: Decimal) -> Decimal:
        """Early-cancellation payout under the configured policy."""

        principal = Decimal(investment.principal)
        if self.config.CANCELLATION_POLICY is CancellationPolicy.PRINCIPAL_ONLY:
            return principal
        elapsed = max(0, min((as_of - investment.open_date).days, investment.term_days))
        accrued = self.calculator.interest(principal, investment.annual_rate, elapsed)
        return principal + max(Decimal("0"), accrued - already_paid)

    def cancel(self, investment_id: str, as_of: Optional[date] = None) -> CancellationResult:
        as_of = as_of or self.today()
        with self.units() as uow:
            investment = self._require(uow, investment_id)
            if investment.state is not InvestmentState.ACTIVE:
                raise InvalidStateError(
                    "Only ACTIVE investments can be cancelled",
                    investment_id=investment_id,
                    state=investment.state.value,
                )
            payout = self.accrued_payout(
                investment, as_of, uow.schedule.settled_interest(investment_id)
            )
            if not uow.investments.transition(
                investment_id, InvestmentState.ACTIVE, InvestmentState.CANCELED
            ):
                raise InvalidStateError(
                    "Investment changed state concurrently", investment_id=investment_id
                )
            transaction_id = uow.ledger.credit(
                investment.account_id, payout, f"Time deposit cancellation {investment_id}"
            )
            uow.schedule.close_pending(investment_id, ScheduleEntryState.CANCELED)
            movement = uow.movements.add(
                Movement(
                    investment_id=investment_id,
                    transaction_id=transaction_id,
                    movement_type=MovementType.CANCELLATION,
                    amount=payout,
                )
            )
            uow.session.refresh(investment)
        logger.info(
            "Investment cancelled",
            extra={
                "investment_id": investment_id,
                "payout": str(payout),
                "policy": self.config.CANCELLATION_POLICY.value,
            },
        )
        return CancellationResult(investment=investment, payout=payout, movement=movement)

    def update_state(self, investment_id: str, new_state: Any) -> Investment:
        """Administrative transition along a legal edge; no money moves."""

        target = parse_enum(InvestmentState, new_state, "state")
        with self.units() as uow:
            investment = self._require(uow, investment_id)
            current = investment.state
            if target not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStateError(
                    f"Cannot move investment from {current.value} to {target.value}",
                    investment_id=investment_id,
                    state=current.value,
                    requested=target.value,
                )
            if not uow.investments.transition(investment_id, current, target):
                raise InvalidStateError(
                    "Investment changed state concurrently", investment_id=investment_id
                )
            uow.schedule.close_pending(investment_id, ScheduleEntryState.CANCELED)
            uow.session.refresh(investment)
        logger.warning(
            "Administrative state change",
            extra={"investment_id": investment_id, "from": current.value, "to": target.value},
        )
        return investment
