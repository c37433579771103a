"""
API v1 - REST endpoints for the budget approval lifecycle.

- Budget item endpoints (create, save, lifecycle transitions)
- Process endpoints (WBS schedule, rename cascade, progress tracking)
- Transaction endpoints (actual expenses and revenues)
- Report endpoints (department/project summaries, dashboard, Gantt)
"""
from fastapi import APIRouter

from .budget_items import router as budget_items_router
from .processes import router as processes_router
from .reports import router as reports_router
from .transactions import router as transactions_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(budget_items_router, prefix="/budget-items", tags=["Budget Items"])
api_router.include_router(processes_router, tags=["Processes"])
api_router.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(reports_router, prefix="/reports", tags=["Reports"])
