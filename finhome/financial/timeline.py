"""Key events over the life of a home loan."""

from dataclasses import dataclass
from typing import List, Optional

from finhome.financial.scenarios import ScenarioResult

# Month-to-month payment change worth an event, in VND
PAYMENT_CHANGE_THRESHOLD = 1_000_000


@dataclass
class TimelineEvent:
    key: str
    event_type: str
    name: str
    description: str
    month: int
    priority: int
    financial_impact: Optional[float] = None
    balance_after: Optional[float] = None


def generate_loan_timeline(
    loan_amount: float, term_months: int, promotional_months: int = 0
) -> List[TimelineEvent]:
    """Standard milestones of a mortgage, ordered by month.

    Signing happens at month 0, handover and the first payment at month 1.
    The end of the promotional rate is included only when there is one.
    """
    events = [
        TimelineEvent(
            key="loan-signing",
            event_type="loan_signing",
            name="Contract signing",
            description="Sign the purchase and loan contracts",
            month=0,
            priority=9,
            financial_impact=-loan_amount,
        ),
        TimelineEvent(
            key="property-handover",
            event_type="property_handover",
            name="Property handover",
            description="Receive the keys and start repaying",
            month=1,
            priority=8,
        ),
        TimelineEvent(
            key="first-payment",
            event_type="first_payment",
            name="First payment",
            description="First monthly instalment",
            month=1,
            priority=7,
        ),
    ]

    if 0 < promotional_months < term_months:
        events.append(
            TimelineEvent(
                key="promotional-end",
                event_type="rate_change",
                name="Promotional rate ends",
                description="Payments move to the regular rate",
                month=promotional_months,
                priority=8,
            )
        )

    events.append(
        TimelineEvent(
            key="midterm-milestone",
            event_type="milestone",
            name="Halfway",
            description="Half of the loan term completed",
            month=term_months // 2,
            priority=5,
        )
    )
    events.append(
        TimelineEvent(
            key="loan-completion",
            event_type="loan_completion",
            name="Loan repaid",
            description="The loan is fully repaid",
            month=term_months,
            priority=10,
            balance_after=0.0,
        )
    )

    return sorted(events, key=lambda event: event.month)


def timeline_from_scenario(result: ScenarioResult) -> List[TimelineEvent]:
    """Events implied by a scenario's cash flow.

    Extra payments become prepayment events and large changes in the regular
    payment become rate change events. The month the balance reaches zero
    marks completion.

    Pessimistic and stress scenarios get a crisis marker 30% into the loan;
    optimistic ones get an opportunity marker at 40%.
    """
    cash_flow = result.cash_flow
    events = [
        TimelineEvent(
            key="loan-start",
            event_type="loan_signing",
            name="Loan starts",
            description=result.scenario.description,
            month=0,
            priority=9,
        )
    ]

    previous = None
    for projection in cash_flow:
        if projection.extra_payment > 0:
            events.append(
                TimelineEvent(
                    key=f"prepayment-{projection.month}",
                    event_type="prepayment",
                    name="Extra payment",
                    description=f"Prepay {projection.extra_payment:,.0f} of principal",
                    month=projection.month,
                    priority=7,
                    financial_impact=-projection.extra_payment,
                    balance_after=projection.remaining_balance,
                )
            )
        if previous is not None and projection.remaining_balance > 0:
            regular = projection.total_payment - projection.extra_payment
            previous_regular = previous.total_payment - previous.extra_payment
            change = regular - previous_regular
            if abs(change) > PAYMENT_CHANGE_THRESHOLD:
                events.append(
                    TimelineEvent(
                        key=f"payment-change-{projection.month}",
                        event_type="rate_change",
                        name="Payment increases" if change > 0 else "Payment decreases",
                        description=f"Monthly payment changes from {previous_regular:,.0f} to {regular:,.0f}",
                        month=projection.month,
                        priority=7,
                        financial_impact=round(-change, 2),
                        balance_after=projection.remaining_balance,
                    )
                )
        previous_balance = previous.remaining_balance if previous is not None else None
        if projection.remaining_balance == 0 and (previous_balance is None or previous_balance > 0):
            events.append(
                TimelineEvent(
                    key="loan-completion",
                    event_type="loan_completion",
                    name="Loan repaid",
                    description="The loan is fully repaid",
                    month=projection.month,
                    priority=10,
                    balance_after=0.0,
                )
            )
        previous = projection

    scenario_type = result.scenario.scenario_type
    if scenario_type in ("pessimistic", "stress_test"):
        events.append(
            TimelineEvent(
                key="crisis-event",
                event_type="crisis_event",
                name="Financial strain",
                description="Expected hardship under this scenario",
                month=int(len(cash_flow) * 0.3),
                priority=9,
            )
        )
    elif scenario_type == "optimistic":
        events.append(
            TimelineEvent(
                key="opportunity-event",
                event_type="opportunity",
                name="Investment opportunity",
                description="Room to grow the portfolio under this scenario",
                month=int(len(cash_flow) * 0.4),
                priority=6,
            )
        )

    return sorted(events, key=lambda event: event.month)


def scenario_risk_level(result: ScenarioResult) -> str:
    """low, medium or high; stress and pessimistic scenarios are always high."""
    scenario_type = result.scenario.scenario_type
    if scenario_type in ("pessimistic", "stress_test"):
        return "high"
    if scenario_type == "optimistic":
        return "low"

    metrics = result.metrics
    if metrics.debt_to_income_ratio > 40:
        return "high"
    if metrics.debt_to_income_ratio > 30 or metrics.affordability_score < 6:
        return "medium"
    return "low"
