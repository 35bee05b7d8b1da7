"""Schedule (cronograma) generation for new investments."""

from __future__ import annotations

import calendar
from datetime import date
from decimal import ROUND_DOWN, Decimal

from ..models.investment import InterestModality, Investment
from ..models.schedule import ScheduleEntry, ScheduleEventType
from .calculator import CENT, BusinessDayAdjuster, InterestCalculator


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping to the last day of short months."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class ScheduleGenerator:
    def __init__(self, calculator: InterestCalculator, adjuster: BusinessDayAdjuster):
        self.calculator = calculator
        self.adjuster = adjuster

    def interest_dates(self, investment: Investment) -> list[date]:
        """Dates of every interest payment, the last one always at maturity."""

        interval = investment.interest_modality.interval_months
        maturity = investment.maturity_date
        if interval is None:
            return [maturity]

        periods = max(1, investment.term_days // (30 * interval))
        dates: list[date] = []
        for k in range(1, periods):
            candidate = self.adjuster.adjust(add_months(investment.open_date, k * interval))
            if candidate >= maturity:
                break
            dates.append(candidate)
        dates.append(maturity)
        return dates

    def generate(self, investment: Investment) -> list[ScheduleEntry]:
        """Build unsaved entries; interest shares sum exactly to the total interest."""

        total = self.calculator.interest(
            investment.principal, investment.annual_rate, investment.term_days
        )
        dates = self.interest_dates(investment)
        if investment.interest_modality is InterestModality.AT_MATURITY:
            shares = [total]
        else:
            share = (total / len(dates)).quantize(CENT, rounding=ROUND_DOWN)
            shares = [share] * (len(dates) - 1)
            shares.append(total - share * (len(dates) - 1))

        entries = [
            ScheduleEntry(
                investment_id=investment.id,
                sequence=sequence,
                event_type=ScheduleEventType.INTEREST_PAYMENT,
                scheduled_date=scheduled,
                scheduled_amount=amount,
            )
            for sequence, (scheduled, amount) in enumerate(zip(dates, shares), start=1)
        ]
        entries.append(
            ScheduleEntry(
                investment_id=investment.id,
                sequence=len(entries) + 1,
                event_type=ScheduleEventType.CAPITAL_RETURN,
                scheduled_date=investment.maturity_date,
                scheduled_amount=Decimal(investment.principal),
            )
        )
        return entries
