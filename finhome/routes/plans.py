"""Financial plan API endpoints."""

from dataclasses import asdict
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user
from finhome.exceptions import LimitExceededError, NotFoundError
from finhome.financial.scenarios import (
    ScenarioAssumptions,
    ScenarioDefinition,
    ScenarioParameters,
    ScenarioResult,
)
from finhome.financial.timeline import scenario_risk_level
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.plan import (
    CashFlowItemResponse,
    CustomScenario,
    MilestoneCreate,
    MilestoneResponse,
    PaginatedPlanResponse,
    PlanCashFlowResponse,
    PlanCreate,
    PlanResponse,
    PlanScenariosResponse,
    PlanScheduleResponse,
    PlanStatus,
    PlanStatusHistoryResponse,
    PlanStatusUpdate,
    PlanTimelineResponse,
    PlanType,
    PlanUpdate,
    PlanVisibilityUpdate,
    ScenarioComparisonResponse,
    ScenarioId,
    ScenarioMetricsResponse,
    ScenarioRequest,
    ScenarioResultResponse,
    ScheduleItemResponse,
    TimelineEventResponse,
)
from finhome.services.plan_service import PlanService

logger = get_logger(__name__)

router = APIRouter()


async def get_plan_service(db: AsyncSession = Depends(get_db)) -> PlanService:
    """Get plan service instance."""
    return PlanService(db)


@router.post("", response_model=PlanResponse, status_code=201)
async def create_plan(
    plan: PlanCreate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    """Create a draft plan. Loan metrics are calculated and cached on the plan.

    Raises:
        HTTPException: 400 for invalid inputs, 403 when the tier's draft plan limit is reached
    """
    try:
        created = await service.create_plan(current_user, **plan.model_dump())
        return PlanResponse.model_validate(created)
    except LimitExceededError as e:
        raise HTTPException(status_code=403, detail=e.to_detail())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create plan", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create plan")


@router.get("", response_model=PaginatedPlanResponse)
async def list_plans(
    status: Optional[PlanStatus] = None,
    plan_type: Optional[PlanType] = None,
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PaginatedPlanResponse:
    """List the user's plans together with public plans, most recently updated first."""
    try:
        plans, total = await service.list_plans(
            current_user.id,
            status=status,
            plan_type=plan_type,
            search=search,
            limit=limit,
            offset=offset,
        )
        return PaginatedPlanResponse(
            items=[PlanResponse.model_validate(p) for p in plans],
            total=total,
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        logger.error("Failed to list plans", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list plans")


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    """Get a plan owned by the user or shared publicly."""
    try:
        plan = await service.get_plan(plan_id, current_user.id)
        if not plan:
            raise HTTPException(status_code=404, detail=f"Plan {plan_id} not found")
        return PlanResponse.model_validate(plan)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get plan", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get plan")


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: UUID,
    plan_update: PlanUpdate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    """Update plan inputs. Metrics are recalculated when financial inputs change."""
    try:
        updated = await service.update_plan(
            plan_id, current_user.id, **plan_update.model_dump(exclude_unset=True)
        )
        return PlanResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update plan", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update plan")


@router.delete("/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> None:
    """Delete a plan with its milestones and status history."""
    try:
        await service.delete_plan(plan_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete plan", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete plan")


@router.patch("/{plan_id}/status", response_model=PlanResponse)
async def change_plan_status(
    plan_id: UUID,
    status_update: PlanStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    """Move a plan to another status.

    Raises:
        HTTPException: 400 for a disallowed transition, 403 when activating exceeds the tier limit
    """
    try:
        plan = await service.change_status(
            plan_id, current_user, status_update.status, note=status_update.note
        )
        return PlanResponse.model_validate(plan)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LimitExceededError as e:
        raise HTTPException(status_code=403, detail=e.to_detail())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to change plan status", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to change plan status")


@router.patch("/{plan_id}/visibility", response_model=PlanResponse)
async def change_plan_visibility(
    plan_id: UUID,
    visibility: PlanVisibilityUpdate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    try:
        plan = await service.set_visibility(plan_id, current_user.id, visibility.is_public)
        return PlanResponse.model_validate(plan)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to change plan visibility", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to change plan visibility")


@router.get("/{plan_id}/history", response_model=List[PlanStatusHistoryResponse])
async def get_plan_history(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> List[PlanStatusHistoryResponse]:
    """Status changes of the plan, oldest first."""
    try:
        history = await service.get_status_history(plan_id, current_user.id)
        return [PlanStatusHistoryResponse.model_validate(h) for h in history]
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to get plan history", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get plan history")


@router.get("/{plan_id}/schedule", response_model=PlanScheduleResponse)
async def get_plan_schedule(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanScheduleResponse:
    """Month-by-month amortisation schedule for the plan's loan."""
    try:
        loan_amount, schedule = await service.get_schedule(plan_id, current_user.id)
        return PlanScheduleResponse(
            plan_id=plan_id,
            loan_amount=loan_amount,
            schedule=[ScheduleItemResponse.model_validate(item) for item in schedule],
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to build plan schedule", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build plan schedule")


def _scenario_definition(index: int, custom: CustomScenario) -> ScenarioDefinition:
    return ScenarioDefinition(
        id=f"custom-{index}",
        name=custom.name,
        scenario_type=custom.scenario_type,
        description=custom.description,
        parameters=ScenarioParameters(
            loan_amount=custom.loan_amount,
            interest_rate=custom.interest_rate,
            loan_term_years=custom.loan_term_years,
            monthly_income_change=custom.monthly_income_change,
            monthly_expense_change=custom.monthly_expense_change,
            rental_income_change=custom.rental_income_change,
            property_expense_change=custom.property_expense_change,
            appreciation_rate_change=custom.appreciation_rate_change,
            prepayments=dict(custom.prepayments),
        ),
        assumptions=ScenarioAssumptions(property_market_trend=custom.property_market_trend),
    )


def _scenario_response(result: ScenarioResult, include_cash_flow: bool) -> ScenarioResultResponse:
    scenario = result.scenario
    return ScenarioResultResponse(
        id=scenario.id,
        name=scenario.name,
        scenario_type=scenario.scenario_type,
        description=scenario.description,
        risk_level=scenario_risk_level(result),
        metrics=ScenarioMetricsResponse.model_validate(result.metrics),
        key_insights=result.key_insights,
        risk_factors=result.risk_factors,
        opportunities=result.opportunities,
        comparison=(
            ScenarioComparisonResponse.model_validate(result.comparison) if result.comparison else None
        ),
        cash_flow=(
            [CashFlowItemResponse.model_validate(item) for item in result.cash_flow]
            if include_cash_flow
            else None
        ),
    )


@router.post("/{plan_id}/scenarios", response_model=PlanScenariosResponse)
async def run_plan_scenarios(
    plan_id: UUID,
    request: ScenarioRequest,
    include_cash_flow: bool = Query(False),
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanScenariosResponse:
    """Compare what-if scenarios against the plan as entered.

    An empty request runs every built-in scenario.

    Raises:
        HTTPException: 403 when the tier allows fewer scenarios per comparison
    """
    try:
        custom = [_scenario_definition(i, item) for i, item in enumerate(request.custom_scenarios, start=1)]
        baseline, results = await service.run_scenarios(
            plan_id, current_user, scenario_ids=list(request.scenario_ids), custom=custom
        )
        return PlanScenariosResponse(
            plan_id=plan_id,
            baseline=_scenario_response(baseline, include_cash_flow),
            scenarios=[_scenario_response(result, include_cash_flow) for result in results],
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LimitExceededError as e:
        raise HTTPException(status_code=403, detail=e.to_detail())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to run plan scenarios", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to run plan scenarios")


@router.get("/{plan_id}/cash-flow", response_model=PlanCashFlowResponse)
async def get_plan_cash_flow(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanCashFlowResponse:
    """Monthly household cash flow, balance and equity over the loan."""
    try:
        projections = await service.get_cash_flow(plan_id, current_user.id)
        return PlanCashFlowResponse(
            plan_id=plan_id,
            months=[CashFlowItemResponse.model_validate(item) for item in projections],
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to project plan cash flow", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to project plan cash flow")


@router.get("/{plan_id}/timeline", response_model=PlanTimelineResponse)
async def get_plan_timeline(
    plan_id: UUID,
    start_date: Optional[date] = None,
    scenario_id: Optional[ScenarioId] = None,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> PlanTimelineResponse:
    """Dated loan events, starting today unless ``start_date`` is given."""
    try:
        events = await service.get_timeline(
            plan_id, current_user.id, start_date=start_date, scenario_id=scenario_id
        )
        return PlanTimelineResponse(
            plan_id=plan_id,
            scenario_id=scenario_id,
            events=[
                TimelineEventResponse(**asdict(event), scheduled_date=scheduled)
                for event, scheduled in events
            ],
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to build plan timeline", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build plan timeline")


@router.get("/{plan_id}/milestones", response_model=List[MilestoneResponse])
async def list_milestones(
    plan_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> List[MilestoneResponse]:
    """Milestones of the plan, soonest target date first."""
    try:
        milestones = await service.list_milestones(plan_id, current_user.id)
        return [MilestoneResponse.model_validate(m) for m in milestones]
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to list milestones", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list milestones")


@router.post("/{plan_id}/milestones", response_model=MilestoneResponse, status_code=201)
async def create_milestone(
    plan_id: UUID,
    milestone: MilestoneCreate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> MilestoneResponse:
    try:
        created = await service.create_milestone(plan_id, current_user.id, **milestone.model_dump())
        return MilestoneResponse.model_validate(created)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create milestone", plan_id=str(plan_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create milestone")
