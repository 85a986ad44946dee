"""Read-only views over the data store and the audit trail."""
from fastapi import APIRouter, Depends

from hr_assistant.dependencies import get_audit_log, get_store
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.repositories import HRDataStore
from hr_assistant.schemas import HistoryResponse

router = APIRouter()


@router.get("/")
async def root():
    return {"message": "HR Command Assistant", "status": "running", "version": "1.0.0"}


@router.get("/employees")
async def list_employees(store: HRDataStore = Depends(get_store)):
    return [employee.to_dict() for employee in store.list_employees()]


@router.get("/teams")
async def list_teams(store: HRDataStore = Depends(get_store)):
    return [team.to_dict() for team in store.list_teams()]


@router.get("/countries")
async def list_countries(store: HRDataStore = Depends(get_store)):
    return [country.to_dict() for country in store.list_countries()]


def _history(logs) -> HistoryResponse:
    return HistoryResponse(
        logs=[log.to_dict() for log in logs],
        formatted=[AuditLog.format_log_for_display(log) for log in logs],
    )


@router.get("/history", response_model=HistoryResponse)
async def global_history(audit_log: AuditLog = Depends(get_audit_log)):
    return _history(audit_log.get_all_logs())


@router.get("/history/{session_id}", response_model=HistoryResponse)
async def session_history(session_id: str, audit_log: AuditLog = Depends(get_audit_log)):
    return _history(audit_log.get_session_logs(session_id))
