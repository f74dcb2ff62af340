# src/insider_relay/types.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .utils.hash import make_record_key

# Identity of a delivered record as stored in the ledger
RecordKey = str


class TransactionRecord(BaseModel):
    """One insider transaction row. Unparseable numbers are NaN, never zero."""
    model_config = ConfigDict(frozen=True)

    filing_datetime: str = Field(..., description="Filing timestamp, 'YYYY-MM-DD[ HH:MM:SS]'")
    filing_url: str = Field("", description="Link to the SEC Form 4 filing")
    trade_date: str = Field("", description="Trade date, 'YYYY-MM-DD'")
    ticker: str = Field(..., description="Stock ticker symbol")
    company_name: str = Field("", description="Company name")
    insider_name: str = Field(..., description="Insider name")
    title: str = Field("", description="Insider's title")
    trade_type_label: str = Field("", description="Raw trade type, e.g. 'S - Sale+OE'")
    trade_code: str = Field(..., description="Leading code of the trade type label, e.g. 'S'")
    price: float = Field(float("nan"), description="Share price")
    quantity: float = Field(float("nan"), description="Signed number of shares traded")
    delta_own: float = Field(float("nan"), description="Change in ownership, in percent")
    value: float = Field(float("nan"), description="Signed transaction value")

    # Cell text as displayed on the source page
    price_text: str = ""
    quantity_text: str = ""
    owned_text: str = ""
    delta_own_text: str = ""
    value_text: str = ""

    @property
    def key(self) -> RecordKey:
        return make_record_key(self.model_dump())


ParsedRecords = List[TransactionRecord]
Batch = List[TransactionRecord]


class RunSummary(BaseModel):
    """Counters reported at the end of one pipeline pass."""
    parsed: int = 0
    filtered: int = 0
    already_sent: int = 0
    pending: int = 0
    sent: int = 0
    dry_run: bool = False
    source_hash: Optional[str] = None
    trade_types: List[str] = Field(default_factory=list)
    min_price: float = 0
    min_value_k: float = 0
    max_days_filed: float = 0
    max_days_trade: float = 0

    def log_line(self) -> str:
        mode = " (dry run)" if self.dry_run else ""
        return (
            f"parsed={self.parsed}, sent={self.sent}{mode}, "
            f"filters: types={'+'.join(self.trade_types)}, minPrice={self.min_price:g}, "
            f"minValueK={self.min_value_k:g}, maxDaysFiled={self.max_days_filed:g}, "
            f"maxDaysTrade={self.max_days_trade:g}"
        )
