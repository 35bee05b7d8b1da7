"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.ledger import SQLModelLedger
from .logging_config import get_logger
from .services.calculator import BusinessDayAdjuster, InterestCalculator
from .services.jobs import JobTracker
from .services.lifecycle import InvestmentLifecycle
from .services.rates import RateTable
from .services.schedule import ScheduleGenerator
from .services.settlement import SettlementRunner
from .services.simulator import Simulator
from .services.unit_of_work import LedgerFactory, UnitOfWorkFactory

logger = get_logger("context")


@dataclass
class AppContext:
    """Every wired component of the engine, built once per process."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    units: UnitOfWorkFactory

    # Pricing
    rate_table: RateTable
    calculator: InterestCalculator
    adjuster: BusinessDayAdjuster
    simulator: Simulator

    # Contracts and settlement
    schedule_generator: ScheduleGenerator
    lifecycle: InvestmentLifecycle
    settlement: SettlementRunner
    jobs: JobTracker


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    engine: Optional[Engine] = None,
    ledger_factory: LedgerFactory = SQLModelLedger,
    today: Callable[[], date] = date.today,
) -> AppContext:
    """Create the engine (unless given), initialise the schema and wire services."""

    if config is None:
        config = BaseConfig()

    if engine is None:
        engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)
    units = UnitOfWorkFactory(session_factory, ledger_factory)

    rate_table = RateTable.from_config(config)
    calculator = InterestCalculator()
    adjuster = BusinessDayAdjuster()
    schedule_generator = ScheduleGenerator(calculator, adjuster)
    lifecycle = InvestmentLifecycle(
        units,
        rate_table,
        calculator,
        adjuster,
        schedule_generator,
        config,
        today=today,
    )
    settlement = SettlementRunner(
        units,
        calculator,
        lifecycle,
        workers=config.SETTLEMENT_WORKERS,
        deadline_seconds=config.SETTLEMENT_DEADLINE_SECONDS,
        horizon_days=config.MAX_TERM_DAYS,
        today=today,
    )
    logger.debug("Application context created", extra={"rules": len(rate_table.rules)})

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        units=units,
        rate_table=rate_table,
        calculator=calculator,
        adjuster=adjuster,
        simulator=Simulator(
            rate_table, calculator, adjuster, today=today, limits=config.limits()
        ),
        schedule_generator=schedule_generator,
        lifecycle=lifecycle,
        settlement=settlement,
        jobs=JobTracker(settlement.run, run_async=not config.TESTING),
    )
