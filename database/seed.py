"""Bootstrap the employee/team/country tables from the bundled JSON files.

Seed files are read once at process start; later mutations stay in memory
and are never written back.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from .models import Country, Employee, Team

logger = logging.getLogger(__name__)

SEED_DATA_DIR = Path(__file__).resolve().parent / "seed_data"


def load_seed_file(name: str, seed_dir: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    path = Path(seed_dir or SEED_DATA_DIR) / f"{name}.json"
    with path.open(encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError(f"Seed file {path} must contain a JSON list")
    return records


def _employee_from_record(record: Dict[str, Any]) -> Employee:
    return Employee(
        id=record["id"],
        name=record["name"],
        team=record["team"],
        country=record["country"],
        title=record.get("title", "Software Engineer"),
        salary=float(record.get("salary", 80000)),
        currency=record.get("currency", "USD"),
        manager=record.get("manager", ""),
        start_date=record["startDate"],
        status=record.get("status", "active"),
    )


def seed_database(db: Session, seed_dir: Optional[Union[str, Path]] = None) -> Dict[str, int]:
    """Insert every seed record; returns row counts per table."""
    teams = [Team(**record) for record in load_seed_file("teams", seed_dir)]
    countries = [Country(**record) for record in load_seed_file("countries", seed_dir)]
    employees = [_employee_from_record(r) for r in load_seed_file("employees", seed_dir)]

    db.add_all(teams + countries + employees)
    db.commit()

    counts = {"teams": len(teams), "countries": len(countries), "employees": len(employees)}
    logger.info(f"🌱 Seeded data store: {counts}")
    return counts
