"""
Unit tests for the SQLAlchemy-backed HR data store.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from hr_assistant.domain.errors import NotFoundError


def _new_hire(name):
    return {
        "name": name,
        "team": "engineering",
        "country": "Canada",
        "title": "Software Engineer",
        "salary": 80000,
        "currency": "USD",
        "manager": "Sarah Chen",
        "startDate": "2024-09-02",
        "status": "active",
    }


class TestEmployeeLookups:

    def test_seed_data_loaded(self, store):
        employees = store.list_employees()
        assert len(employees) == 8
        assert [e.id for e in employees][:2] == ["emp_001", "emp_002"]

    def test_get_employee_by_name_is_case_insensitive(self, store):
        employee = store.get_employee_by_name("alex KIM")
        assert employee is not None
        assert employee.id == "emp_005"
        assert employee.salary == 100000

    def test_get_employee_by_name_unknown(self, store):
        assert store.get_employee_by_name("Nobody Here") is None
        assert store.get_employee_by_name("") is None

    def test_get_employee_by_id(self, store):
        assert store.get_employee_by_id("emp_003").name == "Maria Lopez"
        assert store.get_employee_by_id("emp_999") is None

    def test_find_employees_by_partial_name(self, store):
        matches = store.find_employees_by_partial_name("kim")
        assert [m.name for m in matches] == ["Alex Kim"]


class TestEmployeeMutations:

    def test_add_employee_assigns_next_id(self, store):
        assert store.generate_employee_id() == "emp_009"
        employee = store.add_employee(_new_hire("Ada Lovelace"))
        assert employee.id == "emp_009"
        assert employee.start_date == "2024-09-02"
        assert store.get_employee_by_name("Ada Lovelace").id == "emp_009"

    def test_ids_are_not_reused_after_delete(self, store):
        first = store.add_employee(_new_hire("Ada Lovelace"))
        assert store.delete_employee(first.id) is True
        second = store.add_employee(_new_hire("Grace Hopper"))
        assert second.id == "emp_010"

    def test_deleting_seeded_highest_id_keeps_ids_monotonic(self, store):
        assert store.delete_employee("emp_008") is True
        assert store.add_employee(_new_hire("Ada Lovelace")).id == "emp_009"

    def test_four_digit_ids_list_after_three_digit_ids(self, store):
        store.add_employee(dict(_new_hire("Hire Two Hundred"), id="emp_200"))
        store.add_employee(dict(_new_hire("Hire One Thousand"), id="emp_1000"))
        assert store.generate_employee_id() == "emp_1001"

        ids = [e.id for e in store.list_employees()]
        assert ids[-2:] == ["emp_200", "emp_1000"]
        matches = store.find_employees_by_partial_name("Hire")
        assert [m.id for m in matches] == ["emp_200", "emp_1000"]

    def test_delete_unknown_employee(self, store):
        assert store.delete_employee("emp_999") is False

    def test_update_employee_persists(self, store):
        updated = store.update_employee("emp_005", {"title": "Staff Engineer"})
        assert updated.title == "Staff Engineer"
        assert store.get_employee_by_id("emp_005").title == "Staff Engineer"

    def test_update_unknown_employee_raises(self, store):
        with pytest.raises(NotFoundError):
            store.update_employee("emp_999", {"title": "Ghost"})

    def test_update_rejects_unknown_fields(self, store):
        with pytest.raises(ValueError):
            store.update_employee("emp_005", {"shoeSize": 42})
        assert store.get_employee_by_id("emp_005").title == "Software Engineer"

    def test_concurrent_adds_get_distinct_ids(self, store):
        names = [f"Parallel Hire {i}" for i in range(10)]
        with ThreadPoolExecutor(max_workers=5) as pool:
            employees = list(pool.map(lambda n: store.add_employee(_new_hire(n)), names))
        ids = [e.id for e in employees]
        assert len(set(ids)) == 10
        assert sorted(ids) == [f"emp_{i:03d}" for i in range(9, 19)]


class TestTeamsAndCountries:

    def test_team_lookup(self, store):
        team = store.get_team_by_name("Engineering")
        assert team is not None
        assert team.manager == "Sarah Chen"
        assert store.get_team_by_name("marketing") is None

    def test_list_teams(self, store):
        assert {t.name for t in store.list_teams()} == {"engineering", "platform", "design", "operations"}

    @pytest.mark.parametrize("country, expected", [
        ("Canada", True),
        ("canada", True),
        ("the United Kingdom", True),
        ("GB", True),
        ("Russia", False),
        ("Japan", False),
        ("North Korea", False),
        ("Atlantis", False),
    ])
    def test_is_country_supported(self, store, country, expected):
        assert store.is_country_supported(country) is expected

    def test_list_countries(self, store):
        countries = store.list_countries()
        assert len(countries) == 13
        assert any(c.code == "RU" and c.embargoed for c in countries)
