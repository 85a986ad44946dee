"""Infrastructure layer: HR data store interface and SQLAlchemy implementation."""
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, sessionmaker

from database.models import Country, Employee, Team
from hr_assistant.domain.errors import NotFoundError

logger = logging.getLogger(__name__)

EMPLOYEE_ID_PREFIX = "emp_"
_ID_SUFFIX = re.compile(r"(\d+)$")

# Wire names accepted by update_employee, mapped to column attributes
_EMPLOYEE_FIELDS = {
    "name": "name",
    "team": "team",
    "country": "country",
    "title": "title",
    "salary": "salary",
    "currency": "currency",
    "manager": "manager",
    "startDate": "start_date",
    "start_date": "start_date",
    "status": "status",
}

# emp_NNN ids grow past three digits, so shorter ids sort first
_EMPLOYEE_ORDER = (func.length(Employee.id), Employee.id)


def employee_id_suffix(employee_id: str) -> int:
    match = _ID_SUFFIX.search(employee_id or "")
    return int(match.group(1)) if match else 0


class HRDataStore(ABC):
    """Repository interface for employees, teams and countries."""

    @abstractmethod
    def list_employees(self) -> List[Employee]:
        pass

    @abstractmethod
    def get_employee_by_name(self, name: str) -> Optional[Employee]:
        """Case-insensitive exact-name lookup."""
        pass

    @abstractmethod
    def get_employee_by_id(self, employee_id: str) -> Optional[Employee]:
        pass

    @abstractmethod
    def find_employees_by_partial_name(self, partial_name: str) -> List[Employee]:
        pass

    @abstractmethod
    def generate_employee_id(self) -> str:
        pass

    @abstractmethod
    def add_employee(self, fields: Dict[str, Any]) -> Employee:
        """Insert an employee; assigns a fresh id when none is given."""
        pass

    @abstractmethod
    def update_employee(self, employee_id: str, fields: Dict[str, Any]) -> Employee:
        """Apply a partial update. Raises NotFoundError for unknown ids."""
        pass

    @abstractmethod
    def delete_employee(self, employee_id: str) -> bool:
        pass

    @abstractmethod
    def list_teams(self) -> List[Team]:
        pass

    @abstractmethod
    def get_team_by_name(self, name: str) -> Optional[Team]:
        pass

    @abstractmethod
    def list_countries(self) -> List[Country]:
        pass

    @abstractmethod
    def get_country_by_name(self, name: str) -> Optional[Country]:
        pass

    def is_country_supported(self, name: str) -> bool:
        """A country is hireable iff it is supported and not embargoed."""
        country = self.get_country_by_name(name)
        return bool(country and country.hireable)


class SqlAlchemyHRDataStore(HRDataStore):
    """SQLAlchemy implementation of HRDataStore.

    All writes go through one re-entrant lock so id generation, which reads
    the whole employee table, cannot interleave with another insert.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._id_high_water = 0

    def _session(self) -> Session:
        return self._session_factory()

    # Employees

    def list_employees(self) -> List[Employee]:
        with self._session() as db:
            return db.query(Employee).order_by(*_EMPLOYEE_ORDER).all()

    def get_employee_by_name(self, name: str) -> Optional[Employee]:
        if not name:
            return None
        with self._session() as db:
            return db.query(Employee).filter(func.lower(Employee.name) == name.strip().lower()).first()

    def get_employee_by_id(self, employee_id: str) -> Optional[Employee]:
        with self._session() as db:
            return db.get(Employee, employee_id)

    def find_employees_by_partial_name(self, partial_name: str) -> List[Employee]:
        pattern = f"%{(partial_name or '').strip().lower()}%"
        with self._session() as db:
            return db.query(Employee).filter(func.lower(Employee.name).like(pattern)).order_by(*_EMPLOYEE_ORDER).all()

    def generate_employee_id(self) -> str:
        with self._lock:
            with self._session() as db:
                ids = [row[0] for row in db.query(Employee.id).all()]
            highest = max([employee_id_suffix(i) for i in ids] + [self._id_high_water])
            return f"{EMPLOYEE_ID_PREFIX}{highest + 1:03d}"

    def add_employee(self, fields: Dict[str, Any]) -> Employee:
        with self._lock:
            data = {_EMPLOYEE_FIELDS.get(k, k): v for k, v in fields.items()}
            data.setdefault("id", None)
            if not data["id"]:
                data["id"] = self.generate_employee_id()
            employee = Employee(**data)
            with self._session() as db:
                try:
                    db.add(employee)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
            self._id_high_water = max(self._id_high_water, employee_id_suffix(employee.id))
            logger.info(f"👤 Added employee {employee.id} ({employee.name})")
            return employee

    def update_employee(self, employee_id: str, fields: Dict[str, Any]) -> Employee:
        unknown = [k for k in fields if k not in _EMPLOYEE_FIELDS]
        if unknown:
            raise ValueError(f"Unknown employee fields: {unknown}")
        with self._lock:
            with self._session() as db:
                employee = db.get(Employee, employee_id)
                if employee is None:
                    raise NotFoundError(f"Employee {employee_id} not found", detail={"employeeId": employee_id})
                try:
                    for key, value in fields.items():
                        setattr(employee, _EMPLOYEE_FIELDS[key], value)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
                logger.info(f"✏️ Updated employee {employee_id}: {sorted(fields)}")
                return employee

    def delete_employee(self, employee_id: str) -> bool:
        with self._lock:
            with self._session() as db:
                employee = db.get(Employee, employee_id)
                if employee is None:
                    return False
                db.delete(employee)
                db.commit()
            # Deleted ids are never handed out again
            self._id_high_water = max(self._id_high_water, employee_id_suffix(employee_id))
            logger.info(f"🗑️ Deleted employee {employee_id}")
            return True

    # Teams

    def list_teams(self) -> List[Team]:
        with self._session() as db:
            return db.query(Team).order_by(Team.name).all()

    def get_team_by_name(self, name: str) -> Optional[Team]:
        if not name:
            return None
        with self._session() as db:
            return db.query(Team).filter(func.lower(Team.name) == name.strip().lower()).first()

    # Countries

    def list_countries(self) -> List[Country]:
        with self._session() as db:
            return db.query(Country).order_by(Country.name).all()

    def get_country_by_name(self, name: str) -> Optional[Country]:
        if not name:
            return None
        key = name.strip().lower()
        if key.startswith("the "):
            key = key[4:].strip()
        with self._session() as db:
            return db.query(Country).filter(
                or_(func.lower(Country.name) == key, func.lower(Country.code) == key)
            ).first()
