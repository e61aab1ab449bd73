"""
Unit tests for command dispatch and outcome recording.
"""

import asyncio

import pytest

from atp_explorer.catalog import CommandCatalog, CommandSpec
from atp_explorer.dispatcher import Dispatcher
from atp_explorer.errors import CommandNotFoundError, DispatchInProgressError, ProtocolError
from atp_explorer.history import Failure, HistoryStore, Success


class TestDispatcher:
    """Test execute() outcomes and history side effects."""

    def test_success_recorded(self, catalog, client):
        """Successful dispatch returns Success and records it."""
        history = HistoryStore(10)
        dispatcher = Dispatcher(client, history, catalog)

        outcome = asyncio.run(dispatcher.execute("getProfile", {"handle": "alice.test"}))

        assert isinstance(outcome, Success)
        assert outcome.payload == {"handle": "alice.test", "displayName": "Alice"}
        assert outcome.summary == "{handle, displayName}"
        assert len(history) == 1
        entry = history.get(0)
        assert entry.command == "getProfile"
        assert dict(entry.params) == {"handle": "alice.test"}
        assert entry.outcome == outcome
        assert client.calls == [("getProfile", {"handle": "alice.test"})]

    def test_failure_recorded(self, catalog, client):
        """Protocol errors become Failure and are recorded too."""
        history = HistoryStore(10)
        dispatcher = Dispatcher(client, history, catalog)

        outcome = asyncio.run(dispatcher.execute("getPost", {"uri": "at://x/y"}))

        assert isinstance(outcome, Failure)
        assert outcome.message == "Request failed: timed out after 10.0s"
        assert history.get(0).outcome == outcome
        assert history.get(0).succeeded is False

    def test_no_retry(self, catalog, client):
        """A failed dispatch calls the client exactly once."""
        dispatcher = Dispatcher(client, HistoryStore(10), catalog)
        asyncio.run(dispatcher.execute("getPost", {}))
        assert len(client.calls) == 1

    def test_unknown_command(self, catalog, client):
        """Unknown commands are rejected before any call and not recorded."""
        history = HistoryStore(10)
        dispatcher = Dispatcher(client, history, catalog)
        with pytest.raises(CommandNotFoundError):
            asyncio.run(dispatcher.execute("nope", {}))
        assert client.calls == []
        assert len(history) == 0

    def test_stats(self, catalog, client):
        dispatcher = Dispatcher(client, HistoryStore(10), catalog)

        async def run():
            await dispatcher.execute("getProfile", {"handle": "a.test"})
            await dispatcher.execute("getPost", {})

        asyncio.run(run())
        assert dispatcher.stats == {"dispatched": 2, "succeeded": 1, "failed": 1}

    def test_one_in_flight(self, catalog):
        """A second concurrent dispatch is refused."""
        release = None

        class SlowClient:
            async def invoke(self, command_id, params, accept="application/json"):
                await release.wait()
                return {}

        history = HistoryStore(10)
        dispatcher = Dispatcher(SlowClient(), history, catalog)

        async def run():
            nonlocal release
            release = asyncio.Event()
            first = asyncio.create_task(dispatcher.execute("describeServer", {}))
            await asyncio.sleep(0)
            assert dispatcher.busy
            with pytest.raises(DispatchInProgressError):
                await dispatcher.execute("getProfile", {"handle": "a.test"})
            release.set()
            await first

        asyncio.run(run())
        assert not dispatcher.busy
        assert len(history) == 1

    def test_not_busy_after_failure(self, catalog):
        """The in-flight guard is released when the client fails."""

        class FailingClient:
            async def invoke(self, command_id, params, accept="application/json"):
                raise ProtocolError("Request failed (500): oops", status=500)

        dispatcher = Dispatcher(FailingClient(), HistoryStore(10), catalog)
        asyncio.run(dispatcher.execute("describeServer", {}))
        assert not dispatcher.busy

    def test_unexpected_error_recorded(self, catalog):
        """Errors outside ProtocolError still yield a recorded Failure."""

        class BrokenClient:
            async def invoke(self, command_id, params, accept="application/json"):
                raise RuntimeError("connection reset mid-body")

        history = HistoryStore(10)
        dispatcher = Dispatcher(BrokenClient(), history, catalog)

        outcome = asyncio.run(dispatcher.execute("describeServer", {}))

        assert isinstance(outcome, Failure)
        assert outcome.message == "Unexpected error: connection reset mid-body"
        assert len(history) == 1
        assert history.get(0).outcome == outcome
        assert not dispatcher.busy
        assert dispatcher.stats["failed"] == 1

    def test_encoding_passed_to_client(self, client):
        """The command's response encoding is handed to the client."""
        catalog = CommandCatalog(
            [
                CommandSpec("describeServer", "Describe"),
                CommandSpec("getBlob", "Fetch a blob", encoding="*/*"),
            ]
        )
        dispatcher = Dispatcher(client, HistoryStore(10), catalog)

        async def run():
            await dispatcher.execute("describeServer", {})
            await dispatcher.execute("getBlob", {})

        asyncio.run(run())
        assert client.accepts == ["application/json", "*/*"]
