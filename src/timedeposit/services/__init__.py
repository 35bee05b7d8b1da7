"""Domain services for pricing, scheduling and settling time deposits."""

from .calculator import BusinessDayAdjuster, InterestCalculator, normalize_rate, quantize_money
from .jobs import JobTracker
from .lifecycle import CancellationResult, InvestmentLifecycle
from .rates import RateRule, RateTable
from .schedule import ScheduleGenerator
from .settlement import DueSet, SettlementRun, SettlementRunner
from .simulator import SimulationResult, Simulator
from .unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "BusinessDayAdjuster",
    "CancellationResult",
    "DueSet",
    "InterestCalculator",
    "InvestmentLifecycle",
    "JobTracker",
    "RateRule",
    "RateTable",
    "ScheduleGenerator",
    "SettlementRun",
    "SettlementRunner",
    "SimulationResult",
    "Simulator",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "normalize_rate",
    "quantize_money",
]
