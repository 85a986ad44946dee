"""
Unit tests for the append-only audit log.
"""
from hr_assistant.domain.commands import CommandIntent
from hr_assistant.infrastructure.audit_log import AuditLog, extract_action_details


class TestAuditLog:

    def test_append_order_and_session_subset(self, audit_log):
        audit_log.log_action("a", "demo_user", CommandIntent.GIVE_BONUS, {"name": "Alex Kim", "amount": 100}, True)
        audit_log.log_action("b", "demo_user", CommandIntent.GIVE_BONUS, {"name": "Maria Lopez", "amount": 200}, True)
        audit_log.log_action("a", "demo_user", CommandIntent.TERMINATE_EMPLOYEE, {"name": "Alex Kim"}, False,
                             error_message="Alex Kim has already been terminated.")

        everything = audit_log.get_all_logs()
        assert [log.session_id for log in everything] == ["a", "b", "a"]

        session_a = audit_log.get_session_logs("a")
        assert [log.id for log in session_a] == [everything[0].id, everything[2].id]
        assert audit_log.get_session_logs("nobody") == []

    def test_entries_have_ids_and_timestamps(self, audit_log):
        entry = audit_log.log_action("a", "demo_user", CommandIntent.CHANGE_TITLE,
                                     {"name": "Alex Kim", "newTitle": "Staff Engineer"}, True,
                                     result_data={"oldTitle": "Software Engineer"})
        stored = audit_log.get_all_logs()[0]
        assert stored.id == entry.id
        assert stored.timestamp is not None
        assert stored.user_id == "demo_user"
        assert stored.action == "change_title"

    def test_get_action_logs_filters_by_action(self, audit_log):
        audit_log.log_action("a", "demo_user", CommandIntent.GIVE_BONUS, {"name": "Alex Kim", "amount": 100}, True)
        audit_log.log_action("a", "demo_user", CommandIntent.CHANGE_TITLE,
                             {"name": "Alex Kim", "newTitle": "Lead"}, True)
        bonuses = audit_log.get_action_logs(CommandIntent.GIVE_BONUS)
        assert [log.action for log in bonuses] == ["give_bonus"]
        assert len(audit_log.get_action_logs()) == 2

    def test_to_dict_uses_camel_case(self, audit_log):
        audit_log.log_action("a", "demo_user", CommandIntent.GIVE_BONUS, {"name": "Alex Kim", "amount": 100}, False,
                             error_message="boom")
        payload = audit_log.get_all_logs()[0].to_dict()
        assert payload["sessionId"] == "a"
        assert payload["errorMessage"] == "boom"
        assert payload["details"] == {"employeeName": "Alex Kim", "amount": 100}


class TestActionDetails:

    def test_hire_details_include_result(self):
        details = extract_action_details(
            CommandIntent.HIRE_EMPLOYEE,
            {"name": "Ada Lovelace", "team": "engineering", "country": "Canada"},
            {"employeeId": "emp_009", "employee": {"title": "Software Engineer", "salary": 80000}},
        )
        assert details == {
            "employeeName": "Ada Lovelace",
            "team": "engineering",
            "country": "Canada",
            "title": "Software Engineer",
            "salary": 80000,
            "employeeId": "emp_009",
        }

    def test_change_title_records_from_and_to(self):
        details = extract_action_details(
            CommandIntent.CHANGE_TITLE,
            {"name": "Alex Kim", "newTitle": "Staff Engineer"},
            {"oldTitle": "Software Engineer", "effectiveDate": "2024-09-01"},
        )
        assert details["fromValue"] == "Software Engineer"
        assert details["toValue"] == "Staff Engineer"
        assert details["effectiveDate"] == "2024-09-01"

    def test_missing_values_are_dropped(self):
        details = extract_action_details(CommandIntent.TERMINATE_EMPLOYEE, {"name": "Alex Kim"})
        assert details == {"employeeName": "Alex Kim"}


class TestFormatting:

    def test_format_success_entry(self, audit_log):
        entry = audit_log.log_action("a", "demo_user", CommandIntent.HIRE_EMPLOYEE,
                                     {"name": "Ada Lovelace", "team": "engineering", "country": "Canada"}, True)
        line = AuditLog.format_log_for_display(entry)
        assert line.startswith("✅ Hired Ada Lovelace to engineering team in Canada (")

    def test_format_failed_entry(self, audit_log):
        entry = audit_log.log_action("a", "demo_user", CommandIntent.GIVE_BONUS,
                                     {"name": "Nobody", "amount": 5000}, False, error_message="not found")
        line = AuditLog.format_log_for_display(entry)
        assert line.startswith("❌ Gave Nobody a $5,000 bonus (failed: not found)")
