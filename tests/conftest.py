"""
Shared fixtures: screener page builders, a recording webhook session and settings.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from insider_relay.config import build_settings
from insider_relay.types import TransactionRecord

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)

HEADER = (
    "<thead><tr><th>X</th><th>Filing\xa0Date</th><th>Trade\xa0Date</th><th>Ticker</th>"
    "<th>Company Name</th><th>Insider Name</th><th>Title</th><th>Trade\xa0Type</th>"
    "<th>Price</th><th>Qty</th><th>Owned</th><th>ΔOwn</th><th>Value</th>"
    "<th>1d</th><th>1w</th><th>1m</th><th>6m</th></tr></thead>"
)


def row_html(filing="2024-05-09 16:05:11", trade="2024-05-07", ticker="NVDA",
             company="NVIDIA Corp", insider="Doe Jane", title="CFO",
             trade_type="S - Sale+OE", price="$299.42", qty="-14,000",
             owned="120,000", delta="-12%", value="-$4,191,935",
             link="http://www.sec.gov/Archives/edgar/data/1045810/000104581024000101/xslF345X05/wk-form4.xml",
             perf_cells=4, cells: Optional[int] = None) -> str:
    tds = [
        "<td>D</td>",
        f'<td><div><a href="{link}" title="SEC Form 4">{filing}</a></div></td>',
        f"<td><div>{trade}</div></td>",
        f'<td><b><a href="/{ticker}">{ticker}</a></b></td>',
        f'<td><a href="/{ticker}">{company}</a></td>',
        f'<td><a href="/insider/x">{insider}</a></td>',
        f"<td>{title}</td>",
        f"<td>{trade_type}</td>",
        f'<td align="right">{price}</td>',
        f'<td align="right">{qty}</td>',
        f'<td align="right">{owned}</td>',
        f'<td align="right">{delta}</td>',
        f'<td align="right">{value}</td>',
    ] + ["<td></td>"] * perf_cells
    if cells is not None:
        tds = tds[:cells]
    return "<tr>" + "".join(tds) + "</tr>"


def page_html(rows: List[str]) -> str:
    legend = (
        '<table class="tinytable"><tbody><tr><td>P - Purchase</td></tr>'
        "<tr><td>S - Sale</td></tr></tbody></table>"
    )
    return (
        "<html><body><h1>Screener</h1>"
        f'<table width="100%" class="tinytable">{HEADER}<tbody>{"".join(rows)}</tbody></table>'
        f"{legend}</body></html>"
    )


def make_record(**overrides) -> TransactionRecord:
    data: Dict[str, Any] = dict(
        filing_datetime="2024-05-09 16:05:11",
        filing_url="http://www.sec.gov/form4.xml",
        trade_date="2024-05-07",
        ticker="NVDA",
        company_name="NVIDIA Corp",
        insider_name="Doe Jane",
        title="CFO",
        trade_type_label="S - Sale+OE",
        trade_code="S",
        price=299.42,
        quantity=-14000.0,
        delta_own=-12.0,
        value=-4191935.0,
        price_text="$299.42",
        quantity_text="-14,000",
        owned_text="120,000",
        delta_own_text="-12%",
        value_text="-$4,191,935",
    )
    data.update(overrides)
    return TransactionRecord(**data)


class FakeResponse:
    def __init__(self, status_code=204, json_data=None, headers=None, text=""):
        self.status_code = status_code
        self._json_data = json_data
        self.headers = headers or {}
        self.text = text

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data


class FakeWebhookSession:
    """Stands in for requests.Session; replays queued responses, then 204s."""

    def __init__(self, responses: Optional[List[FakeResponse]] = None):
        self.responses = list(responses or [])
        self.posts: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url, json=None, timeout=None):
        self.posts.append(json)
        if self.responses:
            return self.responses.pop(0)
        return FakeResponse(204)

    def close(self):
        self.closed = True


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def settings_factory(tmp_path):
    def factory(sink=None, filters=None, ledger=None, source=None):
        data = {
            "sink": {"webhook_url": "https://discord.example/api/webhooks/1/abc", **(sink or {})},
            "filters": filters or {},
            "ledger": {"path": str(tmp_path / "sent.log"), **(ledger or {})},
            "source": source or {},
        }
        return build_settings(data)
    return factory
