"""
End-to-end runs of InsiderRelay against a local screener page and a recording webhook.
"""

import pytest

from insider_relay.exceptions import NetworkError, SinkError
from insider_relay.main import InsiderRelay
from insider_relay.notifiers.webhook_client import DiscordWebhookClient
from conftest import NOW, FakeResponse, FakeWebhookSession, page_html, row_html

WEBHOOK = "https://discord.example/api/webhooks/1/abc"


@pytest.fixture
def screener_page(tmp_path):
    rows = [
        row_html(ticker="NEW", trade="2024-05-08"),
        row_html(ticker="GIFT", trade_type="G - Gift"),
        row_html(ticker="OLD", trade="2024-05-01"),
        row_html(ticker="PENNY", price="$0.50"),
        row_html(ticker="MID", trade="2024-05-03", trade_type="P - Purchase"),
        row_html(ticker="STALE", filing="2024-04-01 09:00:00"),
    ]
    path = tmp_path / "screener.html"
    path.write_text(page_html(rows), encoding="utf-8")
    return path


@pytest.fixture
def make_relay(settings_factory, screener_page, sleeper):
    created = []

    def factory(responses=None, sink=None, filters=None):
        settings = settings_factory(sink=sink, filters=filters, source={"local_html": str(screener_page)})
        session = FakeWebhookSession(responses)
        relay = InsiderRelay(
            settings,
            client=DiscordWebhookClient(WEBHOOK, session=session),
            sleep=sleeper,
            now=NOW,
        )
        created.append(relay)
        return relay, session

    yield factory
    for relay in created:
        relay.close()


def sent_tickers(session):
    return [embed["description"].split("\n")[1].split()[0] for post in session.posts for embed in post["embeds"]]


class TestInsiderRelay:

    def test_run_sends_filtered_records_oldest_first(self, make_relay, tmp_path):
        relay, session = make_relay()

        summary = relay.run_once()

        assert summary.parsed == 6
        assert summary.filtered == 3
        assert summary.sent == 3
        assert sent_tickers(session) == ["**$OLD", "**$MID", "**$NEW"]
        assert len((tmp_path / "sent.log").read_text(encoding="utf-8").splitlines()) == 3
        assert summary.source_hash

    def test_second_run_sends_nothing(self, make_relay):
        first, _ = make_relay()
        first.run_once()

        second, session = make_relay()
        summary = second.run_once()

        assert summary.already_sent == 3
        assert summary.sent == 0
        assert session.posts == []

    def test_max_per_run_defers_the_newest(self, make_relay):
        relay, session = make_relay(sink={"max_per_run": 2})
        assert relay.run_once().sent == 2
        assert sent_tickers(session) == ["**$OLD", "**$MID"]

        follow_up, session = make_relay(sink={"max_per_run": 2})
        assert follow_up.run_once().sent == 1
        assert sent_tickers(session) == ["**$NEW"]

    def test_dry_run_posts_and_records_nothing(self, make_relay, tmp_path):
        relay, session = make_relay()

        summary = relay.run_once(dry_run=True)

        assert summary.pending == 3
        assert summary.sent == 0
        assert "(dry run)" in summary.log_line()
        assert session.posts == []
        assert not (tmp_path / "sent.log").exists()

    def test_sink_rejection_keeps_earlier_batches(self, make_relay):
        relay, _ = make_relay(responses=[FakeResponse(204), FakeResponse(400, text="bad")],
                              sink={"batch_size": 1})

        with pytest.raises(SinkError):
            relay.run_once()

        retry, session = make_relay()
        assert retry.run_once().sent == 2
        assert sent_tickers(session) == ["**$MID", "**$NEW"]

    def test_unreadable_source_aborts_before_sending(self, settings_factory, tmp_path, sleeper):
        settings = settings_factory(source={"local_html": str(tmp_path / "missing.html")})
        session = FakeWebhookSession()
        relay = InsiderRelay(settings, client=DiscordWebhookClient(WEBHOOK, session=session), sleep=sleeper, now=NOW)

        with pytest.raises(NetworkError):
            relay.run_once()
        relay.close()

        assert session.posts == []
        assert not (tmp_path / "sent.log").exists()

    def test_log_line_reports_counts_and_filters(self, make_relay):
        relay, _ = make_relay(filters={"min_price": 5.5})

        line = relay.run_once().log_line()

        assert line.startswith("parsed=6, sent=3")
        assert "types=P+S" in line
        assert "minPrice=5.5" in line
