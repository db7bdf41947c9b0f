"""
Tests for the business advisor and the advice flow.

No real API calls: the Gemini model is replaced by small fakes that
expose the same `generate_content_async` coroutine.
"""

import asyncio
from decimal import Decimal
from types import SimpleNamespace

import pytest

from kimbila.agents import FALLBACK_ERROR, FALLBACK_NO_TIPS, BusinessAdvisorAgent
from kimbila.audit import AuditLogger
from kimbila.config import AppSettings, GeminiSettings
from kimbila.models.audit import AuditEventType
from kimbila.models.ledger import AdviceSnapshot, DebtBrief, ProductBrief, SaleBrief
from kimbila.orchestrator import AdviceFlow, create_app_components


class FakeModel:
    """Returns a fixed answer and remembers the prompts it was given."""

    def __init__(self, text="- Restock soap\n- Chase Ana's debt\n- Raise rice price"):
        self.text = text
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        return SimpleNamespace(text=self.text)


class FailingModel:
    async def generate_content_async(self, prompt):
        raise ConnectionError("network unreachable")


class SlowModel:
    async def generate_content_async(self, prompt):
        await asyncio.sleep(5)
        return SimpleNamespace(text="too late")


class GatedModel:
    """Waits until the test releases it."""

    def __init__(self):
        self.calls = 0
        self.release = None

    async def generate_content_async(self, prompt):
        self.calls += 1
        await self.release.wait()
        return SimpleNamespace(text="- Tip")


def make_agent(model, audit_logger=None, timeout=5.0) -> BusinessAdvisorAgent:
    return BusinessAdvisorAgent(
        settings=GeminiSettings(api_key="test-key", timeout_seconds=timeout),
        app_settings=AppSettings(advice_language="Portuguese"),
        model=model,
        audit_logger=audit_logger,
    )


@pytest.fixture
def snapshot():
    return AdviceSnapshot(
        business_name="Banca da Ana",
        products=[ProductBrief(name="Soap", stock=7, price=Decimal("500"))],
        recent_sales=[SaleBrief(product_name="Soap", total=Decimal("1000"))],
        pending_debts=[DebtBrief(customer_name="Ana", amount=Decimal("500"))],
    )


class TestPrompt:
    """Tests for prompt construction."""

    def test_prompt_contains_compact_data(self, snapshot):
        """Test that the snapshot is embedded as short-keyed JSON."""
        prompt = make_agent(FakeModel()).build_prompt(snapshot)
        assert "Banca da Ana" in prompt
        assert '{"n": "Soap", "s": 7, "p": 500.0}' in prompt
        assert '{"n": "Soap", "t": 1000.0}' in prompt
        assert '{"c": "Ana", "v": 500.0}' in prompt

    def test_prompt_asks_for_configured_language(self, snapshot):
        """Test that the answer language comes from settings."""
        prompt = make_agent(FakeModel()).build_prompt(snapshot)
        assert "3 short, practical tips in Portuguese" in prompt


class TestGenerateAdvice:
    """Tests for the advice call and its fallbacks."""

    def test_returns_model_text(self, snapshot):
        """Test the happy path."""
        model = FakeModel()
        audit_logger = AuditLogger()
        advice = asyncio.run(make_agent(model, audit_logger).generate_advice(snapshot))

        assert advice.startswith("- Restock soap")
        assert len(model.prompts) == 1
        assert audit_logger.recent_events[0].event_type == AuditEventType.ADVICE_GENERATED

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_answer(self, snapshot, text):
        """Test that an empty answer becomes the no-tips message."""
        advice = asyncio.run(make_agent(FakeModel(text=text)).generate_advice(snapshot))
        assert advice == FALLBACK_NO_TIPS

    def test_error_becomes_fallback(self, snapshot):
        """Test that a failed call never raises."""
        audit_logger = AuditLogger()
        advice = asyncio.run(make_agent(FailingModel(), audit_logger).generate_advice(snapshot))

        assert advice == FALLBACK_ERROR
        event = audit_logger.recent_events[0]
        assert event.event_type == AuditEventType.ADVICE_FAILED
        assert "network unreachable" in event.error_message

    def test_timeout_becomes_fallback(self, snapshot):
        """Test that a slow call is abandoned."""
        agent = make_agent(SlowModel(), timeout=0.05)
        assert asyncio.run(agent.generate_advice(snapshot)) == FALLBACK_ERROR


class TestAdviceFlow:
    """Tests for the one-request-at-a-time advice flow."""

    def test_get_advice_stores_latest(self, ledger, queries, soap):
        """Test that the finished advice is kept for display."""
        flow = AdviceFlow(make_agent(FakeModel(text="- Sell more")), queries)
        advice = asyncio.run(flow.get_advice())

        assert advice == "- Sell more"
        assert flow.latest_advice == "- Sell more"
        assert not flow.in_flight

    def test_only_one_request_in_flight(self, queries):
        """Test that asking twice while waiting reuses the running request."""
        model = GatedModel()
        flow = AdviceFlow(make_agent(model), queries)

        async def scenario():
            model.release = asyncio.Event()
            first = flow.request_advice()
            await asyncio.sleep(0)
            second = flow.request_advice()
            assert first is second
            assert flow.in_flight

            model.release.set()
            result = await first
            return result, model.calls

        result, calls = asyncio.run(scenario())
        assert result == "- Tip"
        assert calls == 1
        assert flow.latest_advice == "- Tip"

    def test_new_request_after_completion(self, queries):
        """Test that a finished request does not block the next one."""
        model = FakeModel(text="- Tip")
        flow = AdviceFlow(make_agent(model), queries)

        async def scenario():
            await flow.get_advice()
            await flow.get_advice()

        asyncio.run(scenario())
        assert len(model.prompts) == 2

    def test_request_is_audited(self, queries, soap):
        """Test that asking for advice is logged with the business name."""
        audit_logger = AuditLogger()
        flow = AdviceFlow(make_agent(FakeModel()), queries, audit_logger)
        asyncio.run(flow.get_advice("Kiosk"))

        event = audit_logger.recent_events[0]
        assert event.event_type == AuditEventType.ADVICE_REQUESTED
        assert event.details == {"business_name": "Kiosk", "product_count": 1}


    def test_long_business_name_still_gets_advice(self, queries):
        """Test that an oversized business name does not break the request."""
        audit_logger = AuditLogger()
        flow = AdviceFlow(make_agent(FakeModel(text="- Tip")), queries, audit_logger)

        assert asyncio.run(flow.get_advice("B" * 600)) == "- Tip"
        assert audit_logger.recent_events[0].event_type == AuditEventType.ADVICE_REQUESTED

    def test_request_left_on_closed_loop_is_dropped(self, queries):
        """Test that a request abandoned with its event loop does not block new ones."""
        model = GatedModel()
        flow = AdviceFlow(make_agent(model), queries)

        async def start_and_leave():
            model.release = asyncio.Event()
            flow.request_advice()
            await asyncio.sleep(0)

        loop = asyncio.new_event_loop()
        try:
            loop.run_until_complete(start_and_leave())
        finally:
            loop.close()

        assert not flow.in_flight

        async def ask_again():
            model.release = asyncio.Event()
            model.release.set()
            return await flow.get_advice()

        assert asyncio.run(ask_again()) == "- Tip"
        assert model.calls == 2


class TestAuditLoggerSafety:
    """Tests that audit logging never breaks the caller."""

    def test_failed_event_build_is_dropped(self):
        """Test that an event that cannot be built is skipped quietly."""
        audit_logger = AuditLogger()

        def broken_builder():
            raise ValueError("bad event")

        assert audit_logger._emit(broken_builder) is False
        assert audit_logger.recent_events == []


class TestAppComponents:
    """Tests for the component factory."""

    def test_runs_without_gemini(self, tmp_path, monkeypatch):
        """Test that the ledger works when the advisor is not configured."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)

        ledger, queries, advice_flow = create_app_components(data_dir=tmp_path / "data")
        assert advice_flow is None

        ledger.add_product({"name": "Soap", "cost": "300", "price": "500", "stock": "10"})
        assert (tmp_path / "data" / "k_products.json").exists()

        reopened, _, _ = create_app_components(data_dir=tmp_path / "data")
        assert [p.name for p in reopened.state.products] == ["Soap"]

    def test_advisor_configured(self, tmp_path, monkeypatch):
        """Test that a Gemini key enables the advice flow."""
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.chdir(tmp_path)

        _, _, advice_flow = create_app_components(use_storage=False)
        assert isinstance(advice_flow, AdviceFlow)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
