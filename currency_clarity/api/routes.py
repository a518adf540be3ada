"""API routes for expenses, labels and the grouped view."""

from datetime import datetime, timezone
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Body, Depends, Request, status
from pydantic import BaseModel, Field

from currency_clarity.models.expense import Expense, ExpenseDraft, ExpenseEdit
from currency_clarity.orchestrator import ExpenseFlow, LabelChangeResult
from currency_clarity.views import ExpenseView, ViewState


router = APIRouter()
logger = structlog.get_logger(__name__)


class LabelRename(BaseModel):
    new_label: str = Field(..., min_length=1, max_length=100)


class CreatedExpense(BaseModel):
    expense: Expense
    warnings: list[str] = Field(default_factory=list)


def get_flow(request: Request) -> ExpenseFlow:
    """Dependency returning the ExpenseFlow built at startup."""
    return request.app.state.flow


FlowDep = Annotated[ExpenseFlow, Depends(get_flow)]


def _label_change_body(result: LabelChangeResult) -> dict[str, Any]:
    body = result.model_dump()
    body["is_noop"] = result.is_noop
    return body


@router.get("/heartbeat", summary="Liveness probe")
async def heartbeat() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/expenses", response_model=list[Expense], summary="List all expenses")
async def list_expenses(flow: FlowDep) -> list[Expense]:
    """Every expense, most recent day first."""
    return await flow.list_expenses()


@router.post(
    "/expenses",
    response_model=CreatedExpense,
    status_code=status.HTTP_201_CREATED,
    summary="Add an expense",
)
async def create_expense(flow: FlowDep, draft: ExpenseDraft) -> CreatedExpense:
    logger.info("create_expense", label=draft.label, currency=draft.currency.value)
    expense, warnings = await flow.add_expense(draft)
    return CreatedExpense(expense=expense, warnings=warnings)


@router.patch("/expenses/{expense_id}", response_model=Expense, summary="Edit an expense")
async def edit_expense(flow: FlowDep, expense_id: UUID, edit: ExpenseEdit) -> Expense:
    """Amounts in the body are in the expense's own entry currency."""
    return await flow.edit_expense(expense_id, edit)


@router.post(
    "/expenses/{expense_id}/clear-balance",
    response_model=Expense,
    summary="Mark a balance as settled",
)
async def clear_balance(flow: FlowDep, expense_id: UUID) -> Expense:
    return await flow.clear_balance(expense_id)


@router.delete("/expenses/{expense_id}", summary="Delete an expense")
async def delete_expense(flow: FlowDep, expense_id: UUID) -> dict[str, bool]:
    """Deleting an expense that is already gone is not an error."""
    return {"deleted": await flow.delete_expense(expense_id)}


@router.get("/labels", response_model=list[str], summary="Distinct labels")
async def list_labels(flow: FlowDep) -> list[str]:
    return await flow.list_labels()


@router.put("/labels/{label}", summary="Rename a label on every expense")
async def rename_label(
    flow: FlowDep,
    label: str,
    body: Annotated[LabelRename, Body(...)],
) -> dict[str, Any]:
    result = await flow.rename_label(label, body.new_label)
    logger.info("rename_label", label=label, new_label=body.new_label, affected=result.affected_count)
    return _label_change_body(result)


@router.delete("/labels/{label}", summary="Delete every expense with a label")
async def delete_label(flow: FlowDep, label: str) -> dict[str, Any]:
    result = await flow.delete_label(label)
    logger.info("delete_label", label=label, affected=result.affected_count)
    return _label_change_body(result)


@router.post("/view", response_model=ExpenseView, summary="Grouped, paginated view")
async def expense_view(flow: FlowDep, state: ViewState) -> ExpenseView:
    """
    Group a fresh snapshot by day and label.

    Send back the `state` of the previous response to keep page
    numbers and open sections.
    """
    return await flow.load_view(state)
