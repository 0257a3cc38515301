"""
Unit Tests for Market-Data Reconciler
All collaborators are in-memory stubs; no network.
"""

import asyncio

import pytest

from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import FundSearchResult, NavEntry, PortfolioAggregate, Quote
from investment_tracker.domain.services.reconciliation_engine import MarketDataReconciler, reconcile
from investment_tracker.infrastructure.market_data.provider_chain import MarketDataGateway


class TestStockReconciliation:

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_one_holding(self, reconciler, stub_quotes, stock_factory):
        stub_quotes.prices["INFY.NS"] = MarketDataError("connection reset")
        portfolio = PortfolioAggregate(stocks=[
            stock_factory("1", "RELIANCE", 10, 2500),
            stock_factory("2", "INFY", 5, 1500, current=1550, change=50, change_percent=3.33,
                          total_value=7750, total_gain=250, gain_percent=3.33, as_of="2026-10-01"),
            stock_factory("3", "TCS", 2, 3500),
        ])
        failed_before = portfolio.stocks[1].to_dict()

        await reconciler.reconcile(portfolio)

        reliance, infy, tcs = portfolio.stocks
        assert reliance.current_price == 2600.0
        assert reliance.error_flag is False
        assert tcs.current_price == 3900.5
        assert tcs.error_flag is False

        assert infy.error_flag is True
        after = infy.to_dict()
        after.pop("priceError")
        assert after == failed_before
        assert stub_quotes.calls == ["RELIANCE.NS", "INFY.NS", "TCS.NS"]

    @pytest.mark.asyncio
    async def test_success_recomputes_valuation(self, reconciler, stock_factory):
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "RELIANCE", 10, 2500)])

        await reconciler.reconcile(portfolio)

        stock = portfolio.stocks[0]
        assert stock.current_price == 2600.0
        assert stock.change == pytest.approx(100.0)
        assert stock.change_percent == pytest.approx(4.0)
        assert stock.total_value == pytest.approx(26000.0)
        assert stock.total_gain == pytest.approx(1000.0)
        assert stock.gain_percent == pytest.approx(4.0)
        assert stock.as_of is not None
        assert portfolio.last_updated.endswith("Z")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [0.0, -12.5, 0.004])
    async def test_non_positive_price_is_a_failure(self, reconciler, stub_quotes, stock_factory, price):
        stub_quotes.prices["RELIANCE.NS"] = price
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "RELIANCE", 10, 2500, current=2550)])

        await reconciler.reconcile(portfolio)

        assert portfolio.stocks[0].error_flag is True
        assert portfolio.stocks[0].current_price == 2550

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure_not_an_abort(self, gateway, stub_funds, stub_quotes, stock_factory):
        stub_quotes.delays["RELIANCE.NS"] = 1.0
        reconciler = MarketDataReconciler(gateway, stub_funds, quote_timeout=0.05)
        portfolio = PortfolioAggregate(stocks=[
            stock_factory("1", "RELIANCE", 10, 2500),
            stock_factory("2", "TCS", 1, 3500),
        ])

        await reconciler.reconcile(portfolio)

        assert portfolio.stocks[0].error_flag is True
        assert portfolio.stocks[1].current_price == 3900.5

    @pytest.mark.asyncio
    async def test_price_rounded_to_two_decimals(self, reconciler, stub_quotes, stock_factory):
        stub_quotes.prices["RELIANCE.NS"] = 2600.4567
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "RELIANCE", 1, 2500)])

        await reconciler.reconcile(portfolio)
        assert portfolio.stocks[0].current_price == 2600.46

    @pytest.mark.asyncio
    async def test_previous_error_cleared_on_success(self, reconciler, stock_factory):
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "RELIANCE", 1, 2500, error_flag=True)])
        await reconciler.reconcile(portfolio)
        assert portfolio.stocks[0].error_flag is False

    @pytest.mark.asyncio
    async def test_zero_cost_basis_gives_zero_percent(self, reconciler, stock_factory):
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "RELIANCE", 1, 0)])
        await reconciler.reconcile(portfolio)
        stock = portfolio.stocks[0]
        assert stock.change_percent == 0.0
        assert stock.gain_percent == 0.0

    @pytest.mark.asyncio
    async def test_every_failure_still_stamps_last_updated(self, reconciler, stub_quotes, stock_factory):
        stub_quotes.prices.clear()
        portfolio = PortfolioAggregate(stocks=[stock_factory("1", "A", 1, 1), stock_factory("2", "B", 1, 1)])

        await reconciler.reconcile(portfolio)

        assert portfolio.error_counts() == {"stocks": 2, "mutualFunds": 0}
        assert portfolio.last_updated is not None


    @pytest.mark.asyncio
    async def test_numeric_symbol_in_document_fails_only_itself(self, reconciler, stub_quotes):
        portfolio = PortfolioAggregate.from_dict({
            "stocks": [
                {"id": 1, "symbol": "RELIANCE", "quantity": 10, "purchasePrice": 2500},
                {"id": 2, "symbol": 500325, "quantity": 1, "purchasePrice": 2400, "currentPrice": 2450},
                {"id": 3, "symbol": "TCS", "quantity": 2, "purchasePrice": 3500},
            ],
            "mutualFunds": [],
        })

        await reconciler.reconcile(portfolio)

        reliance, bse_code, tcs = portfolio.stocks
        assert reliance.current_price == 2600.0
        assert tcs.current_price == 3900.5
        assert bse_code.error_flag is True
        assert bse_code.current_price == 2450
        assert stub_quotes.calls == ["RELIANCE.NS", "500325.NS", "TCS.NS"]
        assert portfolio.last_updated is not None

    @pytest.mark.asyncio
    async def test_unexpected_symbol_error_fails_only_itself(self, stub_quotes, stub_funds, stock_factory):
        class PickyGateway(MarketDataGateway):
            def market_symbol(self, symbol):
                if symbol == "BROKEN":
                    raise ValueError("unusable symbol")
                return super().market_symbol(symbol)

        gateway = PickyGateway(quotes=stub_quotes, funds=stub_funds, default_suffix=".NS")
        reconciler = MarketDataReconciler(gateway, stub_funds)
        portfolio = PortfolioAggregate(stocks=[
            stock_factory("1", "BROKEN", 1, 10),
            stock_factory("2", "RELIANCE", 1, 2500),
        ])

        await reconciler.reconcile(portfolio)

        assert [s.error_flag for s in portfolio.stocks] == [True, False]
        assert portfolio.stocks[1].current_price == 2600.0

class TestFundReconciliation:

    @pytest.mark.asyncio
    async def test_resolves_and_memoizes_scheme_code(self, reconciler, stub_funds, fund_factory):
        portfolio = PortfolioAggregate(mutual_funds=[
            fund_factory("1", "axis bluechip fund - direct plan - growth", 100, 50, invested_amount=5000),
        ])

        await reconciler.reconcile(portfolio)
        fund = portfolio.mutual_funds[0]
        assert fund.scheme_code == "120503"
        assert fund.current_price == 61.23
        assert fund.as_of == "16-10-2026"
        assert fund.error_flag is False
        assert fund.total_value == pytest.approx(6123.0)
        assert fund.total_gain == pytest.approx(1123.0)

        await reconciler.reconcile(portfolio)
        assert stub_funds.search_calls == ["axis bluechip fund - direct plan - growth"]
        assert stub_funds.nav_calls == ["120503", "120503"]

    @pytest.mark.asyncio
    async def test_partial_name_match_is_not_used(self, reconciler, stub_funds, fund_factory):
        portfolio = PortfolioAggregate(mutual_funds=[fund_factory("1", "Axis Bluechip", 100, 50)])

        await reconciler.reconcile(portfolio)

        fund = portfolio.mutual_funds[0]
        assert fund.error_flag is True
        assert fund.scheme_code is None
        assert stub_funds.nav_calls == []

    @pytest.mark.asyncio
    async def test_code_memoized_even_when_nav_fetch_fails(self, reconciler, stub_funds, fund_factory):
        stub_funds.navs["120503"] = MarketDataError("MFAPI 500")
        portfolio = PortfolioAggregate(mutual_funds=[
            fund_factory("1", "Axis Bluechip Fund - Direct Plan - Growth", 100, 50, current=55),
        ])

        await reconciler.reconcile(portfolio)

        fund = portfolio.mutual_funds[0]
        assert fund.error_flag is True
        assert fund.scheme_code == "120503"
        assert fund.current_price == 55

    @pytest.mark.asyncio
    async def test_non_positive_nav_and_empty_history_fail(self, reconciler, stub_funds, fund_factory):
        stub_funds.navs["1"] = [NavEntry(nav=0.0, date="16-10-2026")]
        stub_funds.navs["2"] = []
        portfolio = PortfolioAggregate(mutual_funds=[
            fund_factory("a", "Zero NAV Fund", 1, 10, scheme_code="1"),
            fund_factory("b", "Empty Fund", 1, 10, scheme_code="2"),
        ])

        await reconciler.reconcile(portfolio)

        assert [f.error_flag for f in portfolio.mutual_funds] == [True, True]
        assert [f.current_price for f in portfolio.mutual_funds] == [10, 10]

    @pytest.mark.asyncio
    async def test_resolver_error_marks_fund_only(self, gateway, stock_factory, fund_factory):
        class BrokenResolver:
            async def search(self, query):
                raise MarketDataError("search down")

        reconciler = MarketDataReconciler(gateway, BrokenResolver())
        portfolio = PortfolioAggregate(
            stocks=[stock_factory("1", "RELIANCE", 1, 2500)],
            mutual_funds=[fund_factory("2", "Unknown Fund", 1, 10)],
        )

        await reconciler.reconcile(portfolio)

        assert portfolio.stocks[0].error_flag is False
        assert portfolio.mutual_funds[0].error_flag is True


    @pytest.mark.asyncio
    async def test_malformed_search_results_fail_only_that_fund(self, gateway, stub_funds, fund_factory):
        class OddResolver:
            async def search(self, query):
                return [object()]

        reconciler = MarketDataReconciler(gateway, OddResolver())
        portfolio = PortfolioAggregate(mutual_funds=[
            fund_factory("1", "Mystery Fund", 1, 10),
            fund_factory("2", "Axis Bluechip Fund - Direct Plan - Growth", 100, 50, scheme_code="120503"),
        ])

        await reconciler.reconcile(portfolio)

        assert [f.error_flag for f in portfolio.mutual_funds] == [True, False]
        assert portfolio.mutual_funds[1].current_price == 61.23

class TestConcurrentReconciliation:

    @pytest.mark.asyncio
    async def test_results_applied_in_document_order(self, stub_funds):
        class SlowFirstQuotes:
            def __init__(self):
                self.completed = []

            async def get_quote(self, symbol):
                await asyncio.sleep(0.05 if symbol == "A.NS" else 0.0)
                self.completed.append(symbol)
                return Quote(symbol=symbol, price={"A.NS": 10.0, "B.NS": 20.0, "C.NS": 30.0}[symbol])

        quotes = SlowFirstQuotes()
        gateway = MarketDataGateway(quotes=quotes, funds=stub_funds)
        portfolio = PortfolioAggregate.from_dict({
            "stocks": [
                {"id": "1", "symbol": "A", "quantity": 1, "purchasePrice": 5},
                {"id": "2", "symbol": "B", "quantity": 1, "purchasePrice": 5},
                {"id": "3", "symbol": "C", "quantity": 1, "purchasePrice": 5},
            ]
        })

        await reconcile(portfolio, gateway, stub_funds, concurrency=3)

        assert quotes.completed[-1] == "A.NS"
        assert [s.id for s in portfolio.stocks] == ["1", "2", "3"]
        assert [s.current_price for s in portfolio.stocks] == [10.0, 20.0, 30.0]

    @pytest.mark.asyncio
    async def test_concurrency_bound_respected(self, stub_funds):
        class CountingQuotes:
            def __init__(self):
                self.in_flight = 0
                self.peak = 0

            async def get_quote(self, symbol):
                self.in_flight += 1
                self.peak = max(self.peak, self.in_flight)
                await asyncio.sleep(0.01)
                self.in_flight -= 1
                return Quote(symbol=symbol, price=1.0)

        quotes = CountingQuotes()
        gateway = MarketDataGateway(quotes=quotes, funds=stub_funds)
        portfolio = PortfolioAggregate.from_dict({
            "stocks": [{"id": str(i), "symbol": f"S{i}", "quantity": 1, "purchasePrice": 1} for i in range(6)]
        })

        await reconcile(portfolio, gateway, stub_funds, concurrency=2)

        assert quotes.peak == 2
        assert portfolio.error_counts()["stocks"] == 0


@pytest.mark.asyncio
async def test_empty_portfolio(reconciler):
    portfolio = PortfolioAggregate()
    result = await reconciler.reconcile(portfolio)
    assert result is portfolio
    assert portfolio.last_updated is not None


@pytest.mark.asyncio
async def test_fund_code_resolution_matches_case_insensitively(stub_funds, gateway):
    stub_funds.catalog.append(FundSearchResult(code="999", name="HDFC Index Fund"))
    stub_funds.navs["999"] = [NavEntry(nav=200.0, date="16-10-2026")]
    reconciler = MarketDataReconciler(gateway, stub_funds)
    portfolio = PortfolioAggregate.from_dict({
        "mutualFunds": [{"id": "1", "scheme": "HDFC INDEX FUND", "units": 1, "purchaseNAV": 100}]
    })

    await reconciler.reconcile(portfolio)

    assert portfolio.mutual_funds[0].scheme_code == "999"
    assert portfolio.mutual_funds[0].current_price == 200.0
