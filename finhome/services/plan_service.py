"""Financial plan service: scenarios, cached metrics, status workflow and milestones."""

from dataclasses import asdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.config import settings
from finhome.exceptions import NotFoundError, PermissionDeniedError
from finhome.financial.calculations import (
    CashFlowProjection,
    InvestmentParameters,
    LoanParameters,
    PaymentScheduleItem,
    calculate_cash_flow_projections,
    calculate_financial_metrics,
    generate_payment_schedule,
)
from finhome.financial.scenarios import (
    PREDEFINED_SCENARIO_IDS,
    ScenarioDefinition,
    ScenarioEngine,
    ScenarioResult,
)
from finhome.financial.timeline import TimelineEvent, generate_loan_timeline, timeline_from_scenario
from finhome.logging_config import get_logger
from finhome.models.base import utcnow
from finhome.models.plan import (
    MILESTONE_CATEGORIES,
    MILESTONE_PRIORITIES,
    MILESTONE_STATUSES,
    PLAN_STATUSES,
    PLAN_TYPES,
    FinancialPlan,
    PlanMilestone,
    PlanStatusHistory,
)
from finhome.models.user import User
from finhome.services.gamification_service import GamificationService
from finhome.services.recurring_service import add_months
from finhome.services.subscription_service import SubscriptionService

logger = get_logger(__name__)

MIN_PURCHASE_PRICE = Decimal("100000000")
MIN_DOWN_PAYMENT = Decimal("10000000")
MIN_MONTHLY_INCOME = Decimal("5000000")
MIN_MONTHLY_EXPENSES = Decimal("1000000")
MAX_APPRECIATION_RATE = Decimal("30")
MAX_HORIZON_YEARS = 30

STATUS_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "draft": ("active", "archived"),
    "active": ("completed", "archived"),
    "completed": ("archived",),
    "archived": ("draft",),
}

PLAN_FIELDS = (
    "plan_name",
    "plan_description",
    "plan_type",
    "purchase_price",
    "down_payment",
    "additional_costs",
    "monthly_income",
    "monthly_expenses",
    "current_savings",
    "other_debts",
    "expected_rental_income",
    "expected_appreciation_rate",
    "investment_horizon_years",
)
FINANCIAL_FIELDS = set(PLAN_FIELDS) - {"plan_name", "plan_description"}

MILESTONE_FIELDS = {
    "title",
    "description",
    "category",
    "status",
    "priority",
    "required_amount",
    "current_amount",
    "target_date",
}


def validate_plan_inputs(values: Mapping[str, Any]) -> None:
    """Check plan inputs against the minimums a realistic home purchase needs.

    Raises:
        ValueError: Describing the first rule that fails
    """
    name = (values.get("plan_name") or "").strip()
    if not 1 <= len(name) <= 255:
        raise ValueError("Plan name must be between 1 and 255 characters")
    if values.get("plan_type", "home_purchase") not in PLAN_TYPES:
        raise ValueError(f"Invalid plan type: {values.get('plan_type')}")

    price = Decimal(values["purchase_price"])
    down_payment = Decimal(values["down_payment"])
    if price < MIN_PURCHASE_PRICE:
        raise ValueError("Purchase price must be at least 100,000,000")
    if down_payment < MIN_DOWN_PAYMENT:
        raise ValueError("Down payment must be at least 10,000,000")
    if down_payment >= price:
        raise ValueError("Down payment must be less than the purchase price")
    if Decimal(values["monthly_income"]) < MIN_MONTHLY_INCOME:
        raise ValueError("Monthly income must be at least 5,000,000")
    if Decimal(values["monthly_expenses"]) < MIN_MONTHLY_EXPENSES:
        raise ValueError("Monthly expenses must be at least 1,000,000")

    for field_name in ("additional_costs", "current_savings", "other_debts", "expected_rental_income"):
        value = values.get(field_name)
        if value is not None and Decimal(value) < 0:
            raise ValueError(f"{field_name} cannot be negative")

    appreciation = values.get("expected_appreciation_rate")
    if appreciation is not None and not 0 <= Decimal(appreciation) <= MAX_APPRECIATION_RATE:
        raise ValueError("Expected appreciation rate must be between 0 and 30")
    horizon = values.get("investment_horizon_years")
    if horizon is not None and not 1 <= int(horizon) <= MAX_HORIZON_YEARS:
        raise ValueError("Investment horizon must be between 1 and 30 years")


def build_loan_parameters(plan: FinancialPlan) -> LoanParameters:
    """Loan implied by a plan under the configured default bank terms."""
    return LoanParameters(
        principal=float(Decimal(plan.purchase_price) - Decimal(plan.down_payment)),
        annual_rate=settings.default_loan_rate,
        term_months=settings.default_loan_term_months,
        promotional_rate=settings.default_promotional_rate,
        promotional_period_months=settings.default_promotional_months,
    )


def build_investment_parameters(plan: FinancialPlan) -> Optional[InvestmentParameters]:
    """Rental and appreciation assumptions for investment plans, None otherwise."""
    if plan.plan_type != "investment" and not plan.expected_rental_income:
        return None
    return InvestmentParameters(
        purchase_price=float(plan.purchase_price),
        initial_investment=float(Decimal(plan.down_payment) + Decimal(plan.additional_costs or 0)),
        monthly_rental_income=float(plan.expected_rental_income or 0),
        appreciation_rate=float(plan.expected_appreciation_rate or 0),
        horizon_years=plan.investment_horizon_years or 10,
    )


def build_scenario_engine(plan: FinancialPlan) -> ScenarioEngine:
    return ScenarioEngine(
        build_loan_parameters(plan),
        float(plan.monthly_income),
        float(plan.monthly_expenses),
        other_debts=float(plan.other_debts or 0),
        investment=build_investment_parameters(plan),
        property_value=float(plan.purchase_price),
    )


def compute_plan_metrics(plan: FinancialPlan) -> Dict[str, Any]:
    """JSON-ready metrics stored in ``cached_calculations``."""
    params = build_loan_parameters(plan)
    metrics = calculate_financial_metrics(
        params,
        float(plan.monthly_income),
        float(plan.monthly_expenses),
        other_debts=float(plan.other_debts or 0),
        investment=build_investment_parameters(plan),
    )
    result = asdict(metrics)
    result.update(
        {
            "loan_amount": round(params.principal, 2),
            "annual_rate": params.annual_rate,
            "promotional_rate": params.promotional_rate,
            "promotional_period_months": params.promotional_period_months,
            "term_months": params.term_months,
        }
    )
    return result


def is_calculation_stale(plan: FinancialPlan, now: Optional[datetime] = None) -> bool:
    if not plan.cached_calculations or plan.calculations_last_updated is None:
        return True
    now = now or utcnow()
    return now - plan.calculations_last_updated > timedelta(hours=settings.plan_calculation_ttl_hours)


def refresh_calculations(plan: FinancialPlan) -> None:
    plan.cached_calculations = compute_plan_metrics(plan)
    plan.calculations_last_updated = utcnow()


class PlanService:
    """Service for financial plans and their milestones."""

    def __init__(self, db: AsyncSession):
        """Initialize plan service.

        Args:
            db: Database session
        """
        self.db = db

    async def _award(self, user_id: UUID) -> None:
        user = await self.db.get(User, user_id)
        if user is not None:
            await GamificationService(self.db).check_and_award(user)

    async def create_plan(self, user: User, **fields) -> FinancialPlan:
        """Create a draft plan and cache its metrics.

        Raises:
            ValueError: If the inputs are invalid
            LimitExceededError: If the tier's draft plan quota is used up
        """
        unknown = set(fields) - set(PLAN_FIELDS) - {"is_public"}
        if unknown:
            raise ValueError(f"Unknown plan fields: {', '.join(sorted(unknown))}")
        validate_plan_inputs(fields)
        await SubscriptionService(self.db).check_plan_limit(user, "draft")

        plan = FinancialPlan(user_id=user.id, status="draft", **fields)
        refresh_calculations(plan)
        self.db.add(plan)
        await self.db.flush()

        self.db.add(PlanStatusHistory(plan_id=plan.id, previous_status=None, status="draft", changed_by=user.id))
        await GamificationService(self.db).record_activity(
            user.id, "plan", "created", resource_type="financial_plan", resource_id=plan.id
        )
        await self._award(user.id)
        await self.db.refresh(plan)

        logger.info(
            "Financial plan created",
            plan_id=str(plan.id),
            user_id=str(user.id),
            plan_type=plan.plan_type,
            monthly_payment=plan.cached_calculations.get("monthly_payment"),
        )
        return plan

    async def get_plan(self, plan_id: UUID, user_id: UUID) -> Optional[FinancialPlan]:
        """Plan visible to the user: their own, or any public plan."""
        stmt = select(FinancialPlan).where(
            FinancialPlan.id == plan_id,
            or_(FinancialPlan.user_id == user_id, FinancialPlan.is_public.is_(True)),
        )
        result = await self.db.execute(stmt)
        plan = result.scalar_one_or_none()
        if plan is not None and is_calculation_stale(plan):
            refresh_calculations(plan)
            await self.db.flush()
        return plan

    async def _get_owned(self, plan_id: UUID, user_id: UUID) -> FinancialPlan:
        stmt = select(FinancialPlan).where(
            and_(FinancialPlan.id == plan_id, FinancialPlan.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        plan = result.scalar_one_or_none()
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    async def list_plans(
        self,
        user_id: UUID,
        status: Optional[str] = None,
        plan_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[FinancialPlan], int]:
        """List the user's plans and public plans, refreshing stale metrics.

        Returns:
            Tuple of (page of plans, total matching count)
        """
        conditions = [or_(FinancialPlan.user_id == user_id, FinancialPlan.is_public.is_(True))]
        if status:
            conditions.append(FinancialPlan.status == status)
        if plan_type:
            conditions.append(FinancialPlan.plan_type == plan_type)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(FinancialPlan.plan_name.ilike(pattern), FinancialPlan.plan_description.ilike(pattern))
            )

        count = await self.db.execute(select(func.count(FinancialPlan.id)).where(*conditions))
        result = await self.db.execute(
            select(FinancialPlan)
            .where(*conditions)
            .order_by(FinancialPlan.updated_at.desc())
            .limit(limit)
            .offset(offset)
        )
        plans = list(result.scalars().all())

        stale = [plan for plan in plans if is_calculation_stale(plan)]
        for plan in stale:
            refresh_calculations(plan)
        if stale:
            await self.db.flush()
            logger.debug("Refreshed stale plan calculations", count=len(stale))

        return plans, int(count.scalar() or 0)

    async def update_plan(self, plan_id: UUID, user_id: UUID, **updates) -> FinancialPlan:
        """Update plan inputs and recompute metrics when financial inputs change.

        Raises:
            NotFoundError: If the plan is not owned by the user
            ValueError: If the merged inputs are invalid
        """
        plan = await self._get_owned(plan_id, user_id)

        unknown = set(updates) - set(PLAN_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        merged = {name: getattr(plan, name) for name in PLAN_FIELDS}
        merged.update(updates)
        validate_plan_inputs(merged)

        for field_name, value in updates.items():
            setattr(plan, field_name, value)
        if FINANCIAL_FIELDS & set(updates) or is_calculation_stale(plan):
            refresh_calculations(plan)

        await self.db.flush()
        await self.db.refresh(plan)

        logger.info("Financial plan updated", plan_id=str(plan_id), fields=sorted(updates))
        return plan

    async def delete_plan(self, plan_id: UUID, user_id: UUID) -> None:
        plan = await self._get_owned(plan_id, user_id)
        await self.db.delete(plan)
        await self.db.flush()
        logger.info("Financial plan deleted", plan_id=str(plan_id), user_id=str(user_id))

    async def change_status(
        self, plan_id: UUID, user: User, new_status: str, note: Optional[str] = None
    ) -> FinancialPlan:
        """Move a plan through draft → active → completed, with archive/restore.

        Raises:
            NotFoundError: If the plan is not owned by the user
            ValueError: If the transition is not allowed
            LimitExceededError: If activating would exceed the tier's active plan quota
        """
        if new_status not in PLAN_STATUSES:
            raise ValueError(f"Invalid plan status: {new_status}")

        plan = await self._get_owned(plan_id, user.id)
        previous = plan.status
        if new_status not in STATUS_TRANSITIONS.get(previous, ()):
            raise ValueError(f"Cannot transition from {previous} to {new_status}")

        if new_status == "active":
            await SubscriptionService(self.db).check_plan_limit(user, "active")

        plan.status = new_status
        plan.completed_at = utcnow() if new_status == "completed" else None
        self.db.add(
            PlanStatusHistory(
                plan_id=plan.id,
                previous_status=previous,
                status=new_status,
                changed_by=user.id,
                note=note,
            )
        )
        await self.db.flush()

        if new_status == "completed":
            await self._award(user.id)
        await self.db.refresh(plan)

        logger.info(
            "Financial plan status changed",
            plan_id=str(plan_id),
            previous_status=previous,
            status=new_status,
        )
        return plan

    async def get_status_history(self, plan_id: UUID, user_id: UUID) -> List[PlanStatusHistory]:
        await self._get_owned(plan_id, user_id)
        result = await self.db.execute(
            select(PlanStatusHistory)
            .where(PlanStatusHistory.plan_id == plan_id)
            .order_by(PlanStatusHistory.changed_at)
        )
        return list(result.scalars().all())

    async def set_visibility(self, plan_id: UUID, user_id: UUID, is_public: bool) -> FinancialPlan:
        plan = await self._get_owned(plan_id, user_id)
        plan.is_public = is_public
        await self.db.flush()
        await self.db.refresh(plan)
        logger.info("Financial plan visibility changed", plan_id=str(plan_id), is_public=is_public)
        return plan

    async def get_schedule(
        self, plan_id: UUID, user_id: UUID
    ) -> Tuple[float, List[PaymentScheduleItem]]:
        """Loan amount and month-by-month amortisation of the plan's loan.

        Raises:
            NotFoundError: If the plan is not visible to the user
        """
        plan = await self.get_plan(plan_id, user_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        params = build_loan_parameters(plan)
        return round(params.principal, 2), generate_payment_schedule(params)

    async def _get_visible(self, plan_id: UUID, user_id: UUID) -> FinancialPlan:
        plan = await self.get_plan(plan_id, user_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        return plan

    async def run_scenarios(
        self,
        plan_id: UUID,
        user: User,
        scenario_ids: Optional[List[str]] = None,
        custom: Optional[List[ScenarioDefinition]] = None,
    ) -> Tuple[ScenarioResult, List[ScenarioResult]]:
        """Evaluate what-if scenarios for a plan against its baseline.

        Built-in scenarios are selected by id; all of them when neither ids
        nor custom scenarios are given. The number of scenarios requested is
        checked against the caller's tier.

        Returns:
            Tuple of (baseline result, scenario results in request order)

        Raises:
            NotFoundError: If the plan is not visible to the user
            LimitExceededError: If the tier allows fewer scenarios per comparison
            ValueError: If a scenario id is unknown or a scenario is invalid
        """
        plan = await self._get_visible(plan_id, user.id)
        custom = custom or []
        if not scenario_ids and not custom:
            scenario_ids = list(PREDEFINED_SCENARIO_IDS)
        scenario_ids = scenario_ids or []

        SubscriptionService(self.db).check_scenario_limit(user, len(scenario_ids) + len(custom))

        engine = build_scenario_engine(plan)
        results = engine.generate_predefined(scenario_ids) if scenario_ids else []
        results.extend(engine.generate_scenario(definition) for definition in custom)

        logger.info(
            "Plan scenarios generated",
            plan_id=str(plan_id),
            user_id=str(user.id),
            scenarios=[result.scenario.id for result in results],
        )
        return engine.baseline(), results

    async def get_cash_flow(self, plan_id: UUID, user_id: UUID) -> List[CashFlowProjection]:
        """Monthly household cash flow over the plan's loan.

        Raises:
            NotFoundError: If the plan is not visible to the user
        """
        plan = await self._get_visible(plan_id, user_id)
        return calculate_cash_flow_projections(
            build_loan_parameters(plan),
            float(plan.monthly_income),
            float(plan.monthly_expenses),
            other_debts=float(plan.other_debts or 0),
            investment=build_investment_parameters(plan),
            property_value=float(plan.purchase_price),
        )

    async def get_timeline(
        self,
        plan_id: UUID,
        user_id: UUID,
        start_date: Optional[date] = None,
        scenario_id: Optional[str] = None,
    ) -> List[Tuple[TimelineEvent, date]]:
        """Dated loan events for a plan, optionally under a built-in scenario.

        Raises:
            NotFoundError: If the plan is not visible to the user
            ValueError: If the scenario id is unknown
        """
        plan = await self._get_visible(plan_id, user_id)
        start_date = start_date or date.today()

        if scenario_id:
            result = build_scenario_engine(plan).generate_predefined([scenario_id])[0]
            events = timeline_from_scenario(result)
        else:
            params = build_loan_parameters(plan)
            events = generate_loan_timeline(
                params.principal,
                params.term_months,
                params.promotional_period_months if params.has_promotion else 0,
            )

        return [(event, add_months(start_date, event.month)) for event in events]

    async def list_milestones(self, plan_id: UUID, user_id: UUID) -> List[PlanMilestone]:
        await self._get_owned(plan_id, user_id)
        result = await self.db.execute(
            select(PlanMilestone)
            .where(PlanMilestone.plan_id == plan_id)
            .order_by(PlanMilestone.target_date.is_(None), PlanMilestone.target_date, PlanMilestone.created_at)
        )
        return list(result.scalars().all())

    async def create_milestone(
        self,
        plan_id: UUID,
        user_id: UUID,
        title: str,
        category: str,
        description: Optional[str] = None,
        priority: str = "medium",
        required_amount: Optional[Decimal] = None,
        current_amount: Decimal = Decimal(0),
        target_date: Optional[date] = None,
    ) -> PlanMilestone:
        """Add a milestone to one of the user's plans.

        Raises:
            NotFoundError: If the plan is not owned by the user
            ValueError: If the category or priority is unknown
        """
        await self._get_owned(plan_id, user_id)
        if category not in MILESTONE_CATEGORIES:
            raise ValueError(f"Invalid milestone category: {category}")
        if priority not in MILESTONE_PRIORITIES:
            raise ValueError(f"Invalid milestone priority: {priority}")

        milestone = PlanMilestone(
            plan_id=plan_id,
            title=title,
            description=description,
            category=category,
            priority=priority,
            required_amount=required_amount,
            current_amount=current_amount,
            target_date=target_date,
        )
        self.db.add(milestone)
        await self.db.flush()
        await self.db.refresh(milestone)

        logger.info("Milestone created", milestone_id=str(milestone.id), plan_id=str(plan_id))
        return milestone

    async def _get_milestone_for_owner(self, milestone_id: UUID, user_id: UUID) -> PlanMilestone:
        milestone = await self.db.get(PlanMilestone, milestone_id)
        if milestone is None:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        plan = await self.db.get(FinancialPlan, milestone.plan_id)
        if plan is None or plan.user_id != user_id:
            raise PermissionDeniedError("Not allowed to modify this milestone")
        return milestone

    async def update_milestone(self, milestone_id: UUID, user_id: UUID, **updates) -> PlanMilestone:
        """Update a milestone. Completing it stamps ``completed_date``.

        Raises:
            NotFoundError: If the milestone does not exist
            PermissionDeniedError: If the milestone's plan belongs to another user
            ValueError: If an update is invalid
        """
        milestone = await self._get_milestone_for_owner(milestone_id, user_id)

        unknown = set(updates) - MILESTONE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in updates and updates["status"] not in MILESTONE_STATUSES:
            raise ValueError(f"Invalid milestone status: {updates['status']}")
        if "category" in updates and updates["category"] not in MILESTONE_CATEGORIES:
            raise ValueError(f"Invalid milestone category: {updates['category']}")
        if "priority" in updates and updates["priority"] not in MILESTONE_PRIORITIES:
            raise ValueError(f"Invalid milestone priority: {updates['priority']}")

        previous_status = milestone.status
        for field_name, value in updates.items():
            setattr(milestone, field_name, value)

        if milestone.status == "completed" and previous_status != "completed":
            milestone.completed_date = date.today()
        elif milestone.status != "completed":
            milestone.completed_date = None

        await self.db.flush()
        await self.db.refresh(milestone)

        logger.info("Milestone updated", milestone_id=str(milestone_id), fields=sorted(updates))
        return milestone

    async def delete_milestone(self, milestone_id: UUID, user_id: UUID) -> None:
        milestone = await self._get_milestone_for_owner(milestone_id, user_id)
        await self.db.delete(milestone)
        await self.db.flush()
        logger.info("Milestone deleted", milestone_id=str(milestone_id))
