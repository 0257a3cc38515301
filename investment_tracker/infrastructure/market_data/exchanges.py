"""
MARKET DATA: EXCHANGE REGISTRY

Maps exchange names used by the UI to Yahoo symbol suffixes and
Yahoo exchange codes. Used to filter and display search results.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Exchange:
    code: str
    suffix: Optional[str] = None
    yahoo_codes: Tuple[str, ...] = ()
    # NSE listings also show up without a suffix under the NSI code
    codes_need_plain_symbol: bool = False

    def matches(self, symbol: str, yahoo_exchange: Optional[str]) -> bool:
        if self.suffix and symbol.endswith(self.suffix):
            return True
        if yahoo_exchange and yahoo_exchange in self.yahoo_codes:
            return not self.codes_need_plain_symbol or "." not in symbol
        return False

    def display_symbol(self, symbol: str) -> str:
        if self.suffix and symbol.endswith(self.suffix):
            return symbol[: -len(self.suffix)]
        return symbol


EXCHANGES: Dict[str, Exchange] = {
    "NSE": Exchange("NSE", ".NS", ("NSI",), codes_need_plain_symbol=True),
    "BSE": Exchange("BSE", ".BO", ("BSE",)),
    "NASDAQ": Exchange("NASDAQ", None, ("NMS", "NGM")),
    "NYSE": Exchange("NYSE", None, ("NYQ",)),
    "LSE": Exchange("LSE", ".L", ("LSE",)),
    "TSE": Exchange("TSE", ".T", ("TYO",)),
    "SSE": Exchange("SSE", ".SS"),
    "ASX": Exchange("ASX", ".AX"),
    "TSX": Exchange("TSX", ".TO"),
}


def get_exchange(code: Optional[str]) -> Optional[Exchange]:
    if not code:
        return None
    return EXCHANGES.get(code.upper())
