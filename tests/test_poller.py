"""
Tests for the commit change detection loop.
"""
import asyncio

import httpx
import pytest

from diversion_notifier.core.errors import DeliveryError
from diversion_notifier.core.poller import CommitPoller, LastSeenState, PollOutcome

from .conftest import FakeDispatcher


COMMITS = [
    {"id": "c2", "author": "A", "message": "fix"},
    {"id": "c1", "author": "B", "message": "init"},
]


@pytest.mark.asyncio
async def test_new_commit_notifies_once_and_updates_state(json_connector, dispatcher):
    poller = CommitPoller(json_connector(COMMITS), dispatcher)

    outcome = await poller.poll_once()

    assert outcome == PollOutcome.NOTIFIED
    assert poller.state.commit_id == "c2"
    assert len(dispatcher.sent) == 1
    assert "`c2`" in dispatcher.sent[0]
    assert "Author: **A**" in dispatcher.sent[0]
    assert "Message: fix" in dispatcher.sent[0]


@pytest.mark.asyncio
async def test_known_commit_is_not_announced_again(json_connector, dispatcher):
    state = LastSeenState(commit_id="c2")
    poller = CommitPoller(json_connector(COMMITS), dispatcher, state)

    outcome = await poller.poll_once()

    assert outcome == PollOutcome.UNCHANGED
    assert state.commit_id == "c2"
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_repeated_polls_notify_only_once(json_connector, dispatcher):
    poller = CommitPoller(json_connector(COMMITS), dispatcher)

    first = await poller.poll_once()
    second = await poller.poll_once()

    assert (first, second) == (PollOutcome.NOTIFIED, PollOutcome.UNCHANGED)
    assert len(dispatcher.sent) == 1


@pytest.mark.asyncio
async def test_changed_head_notifies_again(make_connector, dispatcher):
    responses = iter([COMMITS, [{"id": "c3", "author": "C", "message": "feat"}] + COMMITS])

    def handler(request):
        return httpx.Response(200, json=next(responses))

    poller = CommitPoller(make_connector(handler), dispatcher)

    await poller.poll_once()
    outcome = await poller.poll_once()

    assert outcome == PollOutcome.NOTIFIED
    assert poller.state.commit_id == "c3"
    assert len(dispatcher.sent) == 2


@pytest.mark.asyncio
async def test_wrapped_empty_list_is_a_no_op(json_connector, dispatcher):
    state = LastSeenState(commit_id="c1")
    poller = CommitPoller(json_connector({"commits": []}), dispatcher, state)

    outcome = await poller.poll_once()

    assert outcome == PollOutcome.EMPTY
    assert state.commit_id == "c1"
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_wrapped_commit_list_is_supported(json_connector, dispatcher):
    poller = CommitPoller(json_connector({"commits": COMMITS}), dispatcher)

    assert await poller.poll_once() == PollOutcome.NOTIFIED
    assert poller.state.commit_id == "c2"


@pytest.mark.asyncio
async def test_server_error_is_recovered(make_connector, dispatcher):
    def handler(request):
        return httpx.Response(500, text="internal error")

    state = LastSeenState(commit_id="c1")
    poller = CommitPoller(make_connector(handler), dispatcher, state)

    outcome = await poller.poll_once()

    assert outcome == PollOutcome.FETCH_FAILED
    assert state.commit_id == "c1"
    assert dispatcher.sent == []
    assert poller.last_outcome == PollOutcome.FETCH_FAILED


@pytest.mark.asyncio
async def test_network_error_is_recovered(make_connector, dispatcher):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    poller = CommitPoller(make_connector(handler), dispatcher)

    assert await poller.poll_once() == PollOutcome.FETCH_FAILED
    assert poller.state.commit_id is None
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_invalid_json_is_recovered(make_connector, dispatcher):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    poller = CommitPoller(make_connector(handler), dispatcher)

    assert await poller.poll_once() == PollOutcome.PARSE_FAILED
    assert poller.state.commit_id is None
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_unexpected_shape_is_recovered(json_connector, dispatcher):
    poller = CommitPoller(json_connector("ok"), dispatcher)

    assert await poller.poll_once() == PollOutcome.PARSE_FAILED
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_delivery_failure_is_logged_and_dropped(json_connector):
    dispatcher = FakeDispatcher(error=DeliveryError("Missing Permissions"))
    poller = CommitPoller(json_connector(COMMITS), dispatcher)

    first = await poller.poll_once()
    second = await poller.poll_once()

    assert first == PollOutcome.DELIVERY_FAILED
    # The failed message is not retried on the next tick
    assert second == PollOutcome.UNCHANGED
    assert poller.state.commit_id == "c2"


@pytest.mark.asyncio
async def test_unexpected_source_error_is_swallowed(dispatcher):
    class BrokenSource:
        async def get_latest_commit(self):
            raise RuntimeError("boom")

    poller = CommitPoller(BrokenSource(), dispatcher)

    assert await poller.poll_once() == PollOutcome.ERROR
    assert poller.state.commit_id is None


@pytest.mark.asyncio
async def test_sends_auth_and_accept_headers(json_connector, dispatcher):
    connector = json_connector(COMMITS)
    poller = CommitPoller(connector, dispatcher)

    await poller.poll_once()

    request = connector.calls[0]
    assert request.method == "GET"
    assert str(request.url) == "https://api.diversion.dev/v1/repos/dv.repo.test/commits"
    assert request.headers["Authorization"] == "Bearer diversion-test-token-9876543210"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped(dispatcher):
    release = asyncio.Event()

    class SlowSource:
        async def get_latest_commit(self):
            await release.wait()
            return None

    poller = CommitPoller(SlowSource(), dispatcher)

    first = asyncio.create_task(poller.poll_once())
    await asyncio.sleep(0)
    second = await poller.poll_once()
    release.set()

    assert second == PollOutcome.SKIPPED
    assert await first == PollOutcome.EMPTY
