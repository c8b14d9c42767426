"""
Tests for send coordination.

WHAT: Test input validation and the refetch-after-send sequence
WHY: Blank input must never reach the network, and a successful send must
     pull both the list and the thread
HOW: FakeMarketplaceClient plus recording refresh callbacks
"""

import pytest

from barter_inbox.marketplace.types import MarketplaceUnavailableError
from barter_inbox.services.send_coordinator import SendCoordinator
from barter_inbox.utils.exceptions import MessageValidationException
from tests.fixtures.fake_marketplace import FakeMarketplaceClient


class RefreshRecorder:
    """Records refresh callbacks in call order."""

    def __init__(self):
        self.events = []

    async def conversations(self):
        self.events.append("conversations")

    async def thread(self, conversation_id):
        self.events.append(("thread", conversation_id))


@pytest.fixture
def client():
    return FakeMarketplaceClient()


@pytest.fixture
def recorder():
    return RefreshRecorder()


@pytest.fixture
def coordinator(client, recorder):
    return SendCoordinator(client, recorder.conversations, recorder.thread)


@pytest.mark.unit
class TestValidate:

    def test_trims(self):
        assert SendCoordinator.validate("t1", "  hello \n") == "hello"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
    def test_blank_rejected(self, content):
        with pytest.raises(MessageValidationException) as exc_info:
            SendCoordinator.validate("t1", content)
        assert exc_info.value.field == "content"

    @pytest.mark.parametrize("conversation_id", ["", None])
    def test_missing_conversation_rejected(self, conversation_id):
        with pytest.raises(MessageValidationException) as exc_info:
            SendCoordinator.validate(conversation_id, "hello")
        assert exc_info.value.field == "conversation_id"


@pytest.mark.unit
class TestSend:

    @pytest.mark.asyncio
    async def test_blank_makes_no_calls(self, coordinator, client, recorder):
        with pytest.raises(MessageValidationException):
            await coordinator.send("t1", "   ")

        assert client.calls == []
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_no_conversation_makes_no_calls(self, coordinator, client, recorder):
        with pytest.raises(MessageValidationException):
            await coordinator.send(None, "hello")

        assert client.calls == []
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_sends_trimmed_content(self, coordinator, client):
        ack = await coordinator.send("t1", "  hello  ")

        assert client.sent == [("t1", "hello")]
        assert ack.transaction_id == "t1"
        assert ack.message_id == "sent-1"

    @pytest.mark.asyncio
    async def test_refreshes_list_and_thread_after_send(self, coordinator, client, recorder):
        await coordinator.send("t1", "hello")

        assert client.call_names() == ["send_message"]
        assert sorted(recorder.events, key=str) == sorted(["conversations", ("thread", "t1")], key=str)

    @pytest.mark.asyncio
    async def test_send_failure_skips_refresh(self, coordinator, client, recorder):
        client.fail_send = MarketplaceUnavailableError("down")

        with pytest.raises(MarketplaceUnavailableError):
            await coordinator.send("t1", "hello")

        assert client.sent == []
        assert recorder.events == []
