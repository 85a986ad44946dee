"""
Unit tests for sessions and the confirmation protocol.
"""
import pytest

from hr_assistant.application.phrasing import CANCELLED_TEXT, FALLBACK_HELP_TEXT
from hr_assistant.application.session_manager import SessionManager
from hr_assistant.domain.commands import CommandIntent
from hr_assistant.domain.conversation import CommandStatus, MessageType
from hr_assistant.domain.errors import InternalFault, NotFoundError
from hr_assistant.domain.intent_classifier import SlotExtraction
from tests.conftest import make_extraction

ADA = dict(name="Ada Lovelace", team="engineering", country="Canada")


class TestSubmit:

    @pytest.mark.asyncio
    async def test_mutating_intent_creates_pending_command(self, session_manager, stub_extractor):
        stub_extractor.will_return(make_extraction(CommandIntent.HIRE_EMPLOYEE, **ADA))

        outcome = await session_manager.submit("hire Ada")

        assert outcome.needs_confirmation is True
        assert outcome.message.type is MessageType.CONFIRMATION
        assert "Ada Lovelace" in outcome.message.content
        command = outcome.command_execution
        assert command.status is CommandStatus.PENDING_CONFIRMATION
        assert outcome.session.pending_command_id == command.id
        assert [m.role.value for m in outcome.session.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_low_confidence_falls_back_to_help(self, session_manager, stub_extractor):
        stub_extractor.will_return(make_extraction(CommandIntent.HIRE_EMPLOYEE, confidence=0.4, **ADA))

        outcome = await session_manager.submit("maybe hire someone?")

        assert outcome.command_execution is None
        assert outcome.needs_confirmation is False
        assert outcome.message.content == FALLBACK_HELP_TEXT
        assert outcome.session.pending_command_id is None

    @pytest.mark.asyncio
    async def test_unknown_intent_falls_back_to_help(self, session_manager):
        outcome = await session_manager.submit("what's the weather?")
        assert outcome.message.content == FALLBACK_HELP_TEXT
        assert outcome.command_execution is None

    @pytest.mark.asyncio
    async def test_incomplete_asks_for_missing_fields(self, session_manager, stub_extractor):
        stub_extractor.will_return(SlotExtraction(
            intent=CommandIntent.INCOMPLETE,
            slots={"name": "Ada Lovelace", "command": "hire_employee"},
            confidence=0.0,
        ))

        outcome = await session_manager.submit("hire Ada Lovelace")

        assert outcome.command_execution is None
        assert "the team and the country" in outcome.message.content

    @pytest.mark.asyncio
    async def test_read_only_intent_runs_immediately(self, session_manager, stub_extractor):
        stub_extractor.will_return(make_extraction(CommandIntent.VIEW_TEAMS))

        outcome = await session_manager.submit("show teams")

        assert outcome.command_execution is None
        assert outcome.needs_confirmation is False
        assert "engineering" in outcome.message.content

    @pytest.mark.asyncio
    async def test_extractor_sees_prior_history_only(self, session_manager, stub_extractor):
        first = await session_manager.submit("hello")
        await session_manager.submit("again", first.session.id)

        assert stub_extractor.calls[0]["history"] == []
        history = stub_extractor.calls[1]["history"]
        assert [h["content"] for h in history] == ["hello", FALLBACK_HELP_TEXT]

    @pytest.mark.asyncio
    async def test_history_window_is_bounded(self, engine, stub_extractor):
        manager = SessionManager(stub_extractor, engine, history_window=2)
        outcome = await manager.submit("one")
        await manager.submit("two", outcome.session.id)
        assert len(stub_extractor.calls[1]["history"]) == 2

    @pytest.mark.asyncio
    async def test_raising_extractor_is_treated_as_unknown(self, session_manager, stub_extractor, monkeypatch):
        async def explode(message, history=None):
            raise RuntimeError("NLU down")

        monkeypatch.setattr(stub_extractor, "extract", explode)
        outcome = await session_manager.submit("hire Ada")
        assert outcome.message.content == FALLBACK_HELP_TEXT

    @pytest.mark.asyncio
    async def test_unknown_session_id_starts_new_session(self, session_manager):
        outcome = await session_manager.submit("hello", "does-not-exist")
        assert outcome.session.id != "does-not-exist"
        assert session_manager.get_session(outcome.session.id) is outcome.session


class TestConfirm:

    @pytest.mark.asyncio
    async def test_confirm_executes_once(self, session_manager, stub_extractor, store, audit_log):
        stub_extractor.will_return(make_extraction(CommandIntent.HIRE_EMPLOYEE, **ADA))
        submitted = await session_manager.submit("hire Ada")
        command_id = submitted.command_execution.id

        outcome = await session_manager.confirm(command_id, True)

        assert outcome.message.type is MessageType.SUCCESS
        assert "emp_009" in outcome.message.content
        assert outcome.command_execution.status is CommandStatus.COMPLETED
        assert outcome.session.pending_command_id is None
        assert store.get_employee_by_name("Ada Lovelace").status == "active"

        with pytest.raises(NotFoundError):
            await session_manager.confirm(command_id, True)
        assert len(audit_log.get_all_logs()) == 1

    @pytest.mark.asyncio
    async def test_decline_leaves_store_untouched(self, session_manager, stub_extractor, store, audit_log):
        stub_extractor.will_return(make_extraction(CommandIntent.TERMINATE_EMPLOYEE, name="Alex Kim"))
        submitted = await session_manager.submit("fire Alex")

        outcome = await session_manager.confirm(submitted.command_execution.id, False)

        assert outcome.message.content == CANCELLED_TEXT
        assert outcome.command_execution.status is CommandStatus.FAILED
        assert store.get_employee_by_name("Alex Kim").status == "active"
        assert audit_log.get_all_logs() == []

        with pytest.raises(NotFoundError):
            await session_manager.confirm(submitted.command_execution.id, True)

    @pytest.mark.asyncio
    async def test_unknown_command_id(self, session_manager):
        with pytest.raises(NotFoundError):
            await session_manager.confirm("no-such-command", True)

    @pytest.mark.asyncio
    async def test_business_failure_is_reported(self, session_manager, stub_extractor):
        stub_extractor.will_return(make_extraction(
            CommandIntent.HIRE_EMPLOYEE, name="Alex Kim", team="engineering", country="Canada"))
        submitted = await session_manager.submit("hire Alex Kim again")

        outcome = await session_manager.confirm(submitted.command_execution.id, True)

        assert outcome.message.type is MessageType.ERROR
        assert outcome.message.content.startswith("❌ ")
        assert outcome.command_execution.status is CommandStatus.FAILED

    @pytest.mark.asyncio
    async def test_success_message_carries_warning(self, session_manager, stub_extractor):
        stub_extractor.will_return(make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=35000))
        submitted = await session_manager.submit("give Alex a big bonus")

        outcome = await session_manager.confirm(submitted.command_execution.id, True)

        assert "⚠️" in outcome.message.content
        assert "more than 30%" in outcome.message.content

    @pytest.mark.asyncio
    async def test_internal_fault_marks_command_failed(self, session_manager, stub_extractor, engine, monkeypatch):
        async def explode(*args, **kwargs):
            raise InternalFault("boom")

        stub_extractor.will_return(make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=100))
        submitted = await session_manager.submit("bonus")
        monkeypatch.setattr(engine, "execute", explode)

        with pytest.raises(InternalFault):
            await session_manager.confirm(submitted.command_execution.id, True)

        assert submitted.command_execution.status is CommandStatus.FAILED
        session = session_manager.get_session(submitted.session.id)
        assert session.pending_command_id is None
        assert session.messages[-1].type is MessageType.ERROR


class TestPendingCommandPolicy:

    @pytest.mark.asyncio
    async def test_replace_supersedes_previous_command(self, session_manager, stub_extractor):
        stub_extractor.will_return(
            make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=1000),
            make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=2000),
        )
        first = await session_manager.submit("bonus 1000")
        second = await session_manager.submit("actually 2000", first.session.id)

        assert first.command_execution.status is CommandStatus.FAILED
        assert second.command_execution.status is CommandStatus.PENDING_CONFIRMATION
        assert session_manager.pending_for_session(first.session.id) is second.command_execution
        assert "replaced" in second.message.content

        with pytest.raises(NotFoundError):
            await session_manager.confirm(first.command_execution.id, True)

    @pytest.mark.asyncio
    async def test_reject_keeps_existing_command(self, engine, stub_extractor):
        manager = SessionManager(stub_extractor, engine, pending_policy="reject")
        stub_extractor.will_return(
            make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=1000),
            make_extraction(CommandIntent.CHANGE_TITLE, name="Alex Kim", newTitle="Lead"),
        )
        first = await manager.submit("bonus")
        second = await manager.submit("title", first.session.id)

        assert second.command_execution is first.command_execution
        assert first.command_execution.status is CommandStatus.PENDING_CONFIRMATION
        assert "pending give bonus" in second.message.content

    @pytest.mark.asyncio
    async def test_read_only_request_keeps_pending_command(self, session_manager, stub_extractor):
        stub_extractor.will_return(
            make_extraction(CommandIntent.GIVE_BONUS, name="Alex Kim", amount=1000),
            make_extraction(CommandIntent.VIEW_EMPLOYEES),
        )
        first = await session_manager.submit("bonus")
        await session_manager.submit("show employees", first.session.id)

        assert session_manager.pending_for_session(first.session.id) is first.command_execution

    def test_invalid_policy_rejected(self, engine, stub_extractor):
        with pytest.raises(ValueError):
            SessionManager(stub_extractor, engine, pending_policy="queue")


class TestSessions:

    def test_get_unknown_session(self, session_manager):
        with pytest.raises(NotFoundError):
            session_manager.get_session("missing")

    def test_default_user(self, session_manager):
        assert session_manager.create_session().user_id == "demo_user"
