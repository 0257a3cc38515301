from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _RequestModel(BaseModel):
    # Numeric fields stay loosely typed: the normalizer decides what is usable
    model_config = ConfigDict(populate_by_name=True)


class StockCreate(_RequestModel):
    symbol: str = Field(min_length=1)
    original_symbol: Optional[str] = Field(default=None, alias="originalSymbol")
    exchange: Optional[str] = None
    quantity: Any = None
    purchase_price: Any = Field(default=None, alias="purchasePrice")
    purchase_date: Optional[str] = Field(default=None, alias="purchaseDate")


class StockUpdate(_RequestModel):
    symbol: Optional[str] = None
    original_symbol: Optional[str] = Field(default=None, alias="originalSymbol")
    exchange: Optional[str] = None
    quantity: Any = None
    purchase_price: Any = Field(default=None, alias="purchasePrice")
    purchase_date: Optional[str] = Field(default=None, alias="purchaseDate")


class MutualFundCreate(_RequestModel):
    scheme: str = Field(min_length=1)
    units: Any = None
    purchase_nav: Any = Field(default=None, alias="purchaseNAV")
    invested_amount: Any = Field(default=None, alias="investedAmount")
    purchase_date: Optional[str] = Field(default=None, alias="purchaseDate")


class MutualFundUpdate(_RequestModel):
    scheme: Optional[str] = None
    units: Any = None
    purchase_nav: Any = Field(default=None, alias="purchaseNAV")
    invested_amount: Any = Field(default=None, alias="investedAmount")
    purchase_date: Optional[str] = Field(default=None, alias="purchaseDate")


class MessageResponse(BaseModel):
    message: str


class StockAddedResponse(MessageResponse):
    stock: Dict[str, Any]


class MutualFundAddedResponse(MessageResponse):
    model_config = ConfigDict(populate_by_name=True)

    mutual_fund: Dict[str, Any] = Field(alias="mutualFund")


class RefreshResponse(MessageResponse):
    model_config = ConfigDict(populate_by_name=True)

    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")
    errors: Dict[str, int]


class StockSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    name: str
    full_symbol: str = Field(alias="fullSymbol")
    exchange: Optional[str] = None


class FundSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scheme_code: str = Field(alias="schemeCode")
    scheme_name: str = Field(alias="schemeName")
    fund_house: Optional[str] = Field(default=None, alias="fundHouse")
    scheme_type: Optional[str] = Field(default=None, alias="schemeType")


class ConsolidatedPortfolioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stocks: List[Dict[str, Any]]
    mutual_funds: List[Dict[str, Any]] = Field(alias="mutualFunds")
