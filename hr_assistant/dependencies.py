"""Shared FastAPI dependencies.

Routers reach services through app.state so a test app can carry its own
container.
"""
from fastapi import Request

from hr_assistant.application.session_manager import SessionManager
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.repositories import HRDataStore
from hr_assistant.services import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_session_manager(request: Request) -> SessionManager:
    return get_services(request).sessions


def get_store(request: Request) -> HRDataStore:
    return get_services(request).store


def get_audit_log(request: Request) -> AuditLog:
    return get_services(request).audit_log
