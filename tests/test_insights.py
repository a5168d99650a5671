"""
Tests for the Insights Service

Uses a fake chat-completions client; no network calls are made.
"""

import json
from types import SimpleNamespace

import pytest

from volttrack.insights import CollaboratorError, InsightsService
from volttrack.storage import MemoryStorage
from volttrack.store import RecordStore


INSIGHTS_REPLY = {
    "summary": "Two units tracked. One commissioning is overdue.",
    "risks": ["Metro Expansion commissioning overdue"],
    "opportunities": ["Follow-on order from PowerCorp"],
    "keyMetrics": {
        "totalValueExposure": "40,000 in PBG",
        "mostActiveCustomer": "PowerCorp Ind"
    }
}


class FakeCompletions:
    """Stands in for client.chat.completions."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content=None, error=None):
    completions = FakeCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture
def store():
    return RecordStore.open(MemoryStorage())


class TestGenerateInsights:
    """Tests for the structured summary request."""

    @pytest.mark.asyncio
    async def test_parses_json_reply(self, store):
        """Test a well-formed reply becomes MisInsights."""
        client, completions = fake_client(json.dumps(INSIGHTS_REPLY))
        service = InsightsService(client, deployment="test-deployment")

        insights = await service.generate_insights(store.records)

        assert insights.summary.startswith("Two units")
        assert insights.risks == ["Metro Expansion commissioning overdue"]
        assert insights.keyMetrics.mostActiveCustomer == "PowerCorp Ind"

        call = completions.calls[0]
        assert call["model"] == "test-deployment"
        assert call["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_sends_simplified_projection(self, store):
        """Test only the reduced fields are sent for the summary."""
        client, completions = fake_client(json.dumps(INSIGHTS_REPLY))

        await InsightsService(client).generate_insights(store.records)

        prompt = completions.calls[0]["messages"][-1]["content"]
        assert '"commissioningDue": "2024-02-15"' in prompt
        assert '"warrantyEnd": "2025-07-15"' in prompt
        assert "shippingAddress" not in prompt

    @pytest.mark.asyncio
    async def test_invalid_json(self, store):
        """Test unparsable output is a CollaboratorError."""
        client, _ = fake_client("Here are some insights!")

        with pytest.raises(CollaboratorError):
            await InsightsService(client).generate_insights(store.records)

    @pytest.mark.asyncio
    async def test_wrong_shape(self, store):
        """Test JSON without a summary is rejected, not partially returned."""
        client, _ = fake_client(json.dumps({"risks": ["x"]}))

        with pytest.raises(CollaboratorError):
            await InsightsService(client).generate_insights(store.records)

    @pytest.mark.asyncio
    async def test_transport_failure(self, store):
        """Test transport errors are wrapped and chained."""
        client, _ = fake_client(error=ConnectionError("network down"))

        with pytest.raises(CollaboratorError) as exc_info:
            await InsightsService(client).generate_insights(store.records)

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_not_configured(self, store):
        service = InsightsService(None)

        assert service.configured is False
        with pytest.raises(CollaboratorError):
            await service.generate_insights(store.records)

    @pytest.mark.asyncio
    async def test_failure_leaves_records_untouched(self, store):
        """Test a failed request does not change record state."""
        before = store.to_storage()
        client, _ = fake_client(error=RuntimeError("boom"))

        with pytest.raises(CollaboratorError):
            await InsightsService(client).generate_insights(store.records)

        assert store.to_storage() == before


class TestAsk:
    """Tests for free-form questions."""

    @pytest.mark.asyncio
    async def test_returns_answer(self, store):
        client, completions = fake_client("  PowerCorp Ind has one unit.  ")

        answer = await InsightsService(client).ask("Who has the most units?", store.records)

        assert answer == "PowerCorp Ind has one unit."
        prompt = completions.calls[0]["messages"][-1]["content"]
        assert "User Question: Who has the most units?" in prompt
        assert "shippingAddress" in prompt
        assert "response_format" not in completions.calls[0]

    @pytest.mark.asyncio
    async def test_empty_question(self, store):
        client, completions = fake_client("unused")

        with pytest.raises(ValueError):
            await InsightsService(client).ask("   ", store.records)
        assert completions.calls == []

    @pytest.mark.asyncio
    async def test_empty_reply(self, store):
        client, _ = fake_client("")

        with pytest.raises(CollaboratorError):
            await InsightsService(client).ask("Anything overdue?", store.records)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
