from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, JSON, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator, CHAR
import uuid
from datetime import datetime, timezone


class GUID(TypeDecorator):
    """Platform-independent GUID/UUID type.

    Uses PostgreSQL UUID when available; otherwise stores as CHAR(36).
    """
    impl = CHAR(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # pragma: no cover - trivial
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(str(value)))

    def process_result_value(self, value, dialect):  # pragma: no cover - trivial
        if value is None:
            return value
        return uuid.UUID(str(value))


def _utcnow():
    return datetime.now(timezone.utc)


Base = declarative_base()

EMPLOYEE_STATUSES = ("active", "terminated", "on_leave")


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(32), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    department = Column(String(100), nullable=False, default="")
    manager = Column(String(100), nullable=False, default="")

    def to_dict(self):
        return {"id": self.id, "name": self.name, "department": self.department, "manager": self.manager}


class Country(Base):
    __tablename__ = "countries"

    code = Column(String(3), primary_key=True)
    name = Column(String(100), nullable=False)
    supported = Column(Boolean, nullable=False, default=False)
    embargoed = Column(Boolean, nullable=False, default=False)

    @property
    def hireable(self) -> bool:
        return bool(self.supported and not self.embargoed)

    def to_dict(self):
        return {"code": self.code, "name": self.name, "supported": self.supported, "embargoed": self.embargoed}


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    team = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    title = Column(String(200), nullable=False, default="Software Engineer")
    salary = Column(Float, nullable=False, default=80000)
    currency = Column(String(3), nullable=False, default="USD")
    manager = Column(String(100), nullable=False, default="")
    start_date = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default="active")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "team": self.team,
            "country": self.country,
            "title": self.title,
            "salary": self.salary,
            "currency": self.currency,
            "manager": self.manager,
            "startDate": self.start_date,
            "status": self.status,
        }


class ActionLog(Base):
    __tablename__ = "action_logs"

    # seq preserves append order; id is the public identifier
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(GUID(), nullable=False, unique=True, default=uuid.uuid4)
    session_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    action = Column(String(40), nullable=False, index=True)
    details = Column(JSON, default={})
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    success = Column(Boolean, nullable=False)
    error_message = Column(Text)

    def to_dict(self):
        return {
            "id": str(self.id),
            "sessionId": self.session_id,
            "userId": self.user_id,
            "action": self.action,
            "details": dict(self.details or {}),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "success": self.success,
            "errorMessage": self.error_message,
        }
