"""
Unit tests for the notification dispatcher.

WHAT: Tests for NotificationDispatcher.dispatch.

WHY: Verifies that:
1. Invalid addresses are skipped without a send attempt
2. One failing recipient never aborts the rest
3. Every recipient gets exactly one result and at most one send
4. Counts do not depend on concurrency

HOW: Renderer and transport are mocks; no database needed.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.audience import Employee
from app.services.dispatcher import NotificationDispatcher, RecipientOutcome
from app.services.email import EmailResult


FAILING_ADDRESS = "broken@example.com"


def _announcement():
    return SimpleNamespace(id=42, title="Fire drill", is_company_wide=True)


def _renderer():
    renderer = MagicMock()
    renderer.render.side_effect = lambda announcement, recipient, context=None: (
        f"Subject {announcement.title}",
        f"<p>Hello {recipient.name}</p>",
    )
    return renderer


def _transport(fail_with=None):
    """Transport that succeeds except for FAILING_ADDRESS."""

    async def send(to_email, to_name, subject, html_body):
        if to_email == FAILING_ADDRESS:
            if fail_with is not None:
                raise fail_with
            return EmailResult(success=False, error="mailbox unavailable", provider="mock")
        return EmailResult(success=True, message_id=f"id-{to_email}", provider="mock")

    transport = SimpleNamespace()
    transport.send = AsyncMock(side_effect=send)
    return transport


def _audience():
    """10 recipients: 3 malformed addresses, 1 that the transport rejects."""
    valid = [
        Employee(id=i, name=f"Employee {i}", email=f"employee{i}@example.com")
        for i in range(1, 7)
    ]
    invalid = [
        Employee(id=7, name="No Mail", email=""),
        Employee(id=8, name="Bad Mail", email="not-an-email"),
        Employee(id=9, name="Half Mail", email="half@"),
    ]
    failing = [Employee(id=10, name="Broken", email=FAILING_ADDRESS)]
    return frozenset(valid + invalid + failing)


class TestDispatchReport:
    """Tests for the aggregated report."""

    @pytest.mark.asyncio
    async def test_mixed_audience_counts(self):
        """attempted 10, skipped 3, sent 6, failed 1."""
        transport = _transport()

        report = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), _renderer(), transport
        )

        assert report.announcement_id == 42
        assert report.attempted == 10
        assert report.skipped_invalid_email == 3
        assert report.sent == 6
        assert report.failed == 1
        assert report.sent + report.failed + report.skipped_invalid_email == report.attempted

    @pytest.mark.asyncio
    async def test_no_recipient_is_sent_twice(self):
        """Each valid address is handed to the transport exactly once."""
        transport = _transport()

        await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), _renderer(), transport
        )

        addresses = [call.args[0] for call in transport.send.await_args_list]
        assert len(addresses) == 7
        assert len(set(addresses)) == 7

    @pytest.mark.asyncio
    async def test_invalid_addresses_are_never_sent(self):
        """Skipped recipients produce no render and no send."""
        renderer = _renderer()
        transport = _transport()

        report = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), renderer, transport
        )

        skipped = {
            r.employee_id
            for r in report.results
            if r.outcome == RecipientOutcome.SKIPPED_INVALID_EMAIL
        }
        rendered = {call.args[1].id for call in renderer.render.call_args_list}
        assert skipped == {7, 8, 9}
        assert rendered.isdisjoint(skipped)

    @pytest.mark.asyncio
    async def test_one_result_per_recipient_in_id_order(self):
        """Results are explicit, ordered by employee id."""
        report = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), _renderer(), _transport()
        )

        assert [r.employee_id for r in report.results] == list(range(1, 11))
        failed = [r for r in report.results if r.outcome == RecipientOutcome.FAILED]
        assert len(failed) == 1
        assert failed[0].email == FAILING_ADDRESS
        assert failed[0].error == "mailbox unavailable"

    @pytest.mark.asyncio
    async def test_transport_exception_is_contained(self):
        """A transport that raises marks the recipient failed and carries on."""
        transport = _transport(fail_with=ConnectionError("relay down"))

        report = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), _renderer(), transport
        )

        assert report.sent == 6
        assert report.failed == 1
        failed = next(r for r in report.results if r.outcome == RecipientOutcome.FAILED)
        assert "relay down" in failed.error

    @pytest.mark.asyncio
    async def test_renderer_exception_is_contained(self):
        """A render failure for one recipient does not stop the others."""
        renderer = _renderer()
        original = renderer.render.side_effect

        def render(announcement, recipient, context=None):
            if recipient.id == 1:
                raise ValueError("template exploded")
            return original(announcement, recipient, context)

        renderer.render.side_effect = render

        report = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), renderer, _transport()
        )

        assert report.failed == 2
        assert report.sent == 5

    @pytest.mark.asyncio
    async def test_empty_audience(self):
        """An empty audience is a successful no-op."""
        transport = _transport()

        report = await NotificationDispatcher().dispatch(
            _announcement(), frozenset(), _renderer(), transport
        )

        assert report.attempted == 0
        assert report.results == []
        transport.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_sent_once(self):
        """Two entries for the same employee id produce one send."""
        audience = [
            Employee(id=1, name="Jane", email="jane@example.com"),
            Employee(id=1, name="Jane D.", email="jane@example.com"),
        ]
        transport = _transport()

        report = await NotificationDispatcher().dispatch(
            _announcement(), audience, _renderer(), transport
        )

        assert report.attempted == 1
        assert transport.send.await_count == 1


class TestConcurrentDispatch:
    """Bounded concurrency gives the same answer as sequential dispatch."""

    @pytest.mark.asyncio
    async def test_counts_are_order_independent(self):
        """max_concurrency > 1 yields the same counts and results."""
        sequential = await NotificationDispatcher(max_concurrency=1).dispatch(
            _announcement(), _audience(), _renderer(), _transport()
        )
        concurrent = await NotificationDispatcher(max_concurrency=4).dispatch(
            _announcement(), _audience(), _renderer(), _transport()
        )

        assert (concurrent.attempted, concurrent.sent, concurrent.failed) == (
            sequential.attempted,
            sequential.sent,
            sequential.failed,
        )
        assert concurrent.skipped_invalid_email == sequential.skipped_invalid_email
        assert [r.outcome for r in concurrent.results] == [r.outcome for r in sequential.results]

    def test_concurrency_defaults_to_setting(self, monkeypatch):
        """Without an explicit bound the DISPATCH_MAX_CONCURRENCY setting is used."""
        from app.core import config

        monkeypatch.setattr(config.settings, "DISPATCH_MAX_CONCURRENCY", 3)

        assert NotificationDispatcher().max_concurrency == 3
