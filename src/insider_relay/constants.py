# src/insider_relay/constants.py
from enum import Enum

DEFAULT_USER_AGENT = "Mozilla/5.0"

# HTTP Headers for the source page
COMMON_HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

DEFAULT_SOURCE_URL = (
    "http://openinsider.com/screener?s=&o=&pl=&ph=&ll=&lh=&fd=730&fdr=&td=0&tdr=&fdlyl=&fdlyh="
    "&daysago=&xp=1&xs=1&vl=&vh=&ocl=&och=&sic1=-1&sicl=100&sich=9999&grp=0&nfl=&nfh=&nil=&nih="
    "&nol=&noh=&v2l=&v2h=&oc2l=&oc2h=&sortcol=0&cnt=500&page=1"
)
DEFAULT_BASE_URL = "http://openinsider.com"

# OpenInsider result table
INSIDER_TABLE_CLASS = "tinytable"
INSIDER_TABLE_ID = "insidertrades"
MIN_CELLS_PER_ROW = 13

# Positional cell layout of a screener row (cells past VALUE are performance columns)
COLUMN_INDEX = {
    "delete_marker": 0,
    "filing_datetime": 1,
    "trade_date": 2,
    "ticker": 3,
    "company_name": 4,
    "insider_name": 5,
    "title": 6,
    "trade_type_label": 7,
    "price": 8,
    "quantity": 9,
    "owned": 10,
    "delta_own": 11,
    "value": 12,
}

# Header texts used to recognise the data table among several 'tinytable's
EXPECTED_HEADER_SUBSET = {"filing date", "ticker", "insider name", "trade type"}

# Discord webhook limits
SINK_MAX_EMBEDS_PER_REQUEST = 10
DEFAULT_RETRY_AFTER_SECONDS = 2.0
MIN_RETRY_WAIT_SECONDS = 1.0
DEFAULT_MAX_SEND_ATTEMPTS = 5

BIG_TRADE_THRESHOLD = 10_000_000
BIG_TRADE_MENTION = "@insider_trade"


class TradeType(Enum):
    PURCHASE = "P"
    SALE = "S"
    GIFT = "G"
    AWARD = "A"
    OTHER = "O"
    UNKNOWN = "UNK"

    @staticmethod
    def from_code(code: str) -> 'TradeType':
        try:
            return TradeType(code.upper())
        except ValueError:
            return TradeType.UNKNOWN

    @property
    def color(self) -> int:
        """Embed colour shown by the sink for this trade type."""
        if self is TradeType.PURCHASE:
            return 0x2ECC71
        if self is TradeType.SALE:
            return 0xE74C3C
        return 0x95A5A6
