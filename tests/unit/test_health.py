"""Unit tests for borrower health calculations — pure functions, no I/O."""
from __future__ import annotations

import math

import pytest

from comet_monitor.models import AssetCatalog, Borrower
from comet_monitor.services.health import (
    calc_liquidation_price,
    calc_percent_to_liquidation,
    compute_all,
    compute_health,
    round_half_up,
)


class TestRoundHalfUp:
    def test_rounds_half_up(self) -> None:
        assert round_half_up(58.5) == 59
        assert round_half_up(2.5) == 3

    def test_rounds_down(self) -> None:
        assert round_half_up(58.49) == 58

    def test_infinity_passthrough(self) -> None:
        assert round_half_up(math.inf) == math.inf


class TestCalcPercentToLiquidation:
    def test_basic(self) -> None:
        assert calc_percent_to_liquidation(1000.0, 1700.0) == 59

    def test_no_liquidation_capacity_is_infinite(self) -> None:
        assert calc_percent_to_liquidation(1000.0, 0.0) == math.inf


class TestCalcLiquidationPrice:
    def test_basic(self) -> None:
        assert calc_liquidation_price(1000.0, 1.0, 0.85) == pytest.approx(1176.4706, rel=1e-6)

    def test_zero_amount_is_infinite(self) -> None:
        assert calc_liquidation_price(1000.0, 0.0, 0.85) == math.inf


class TestComputeHealth:
    def test_single_collateral_scenario(
        self, sample_catalog: AssetCatalog, sample_borrower: Borrower
    ) -> None:
        b = compute_health(sample_catalog, sample_borrower)
        assert b.borrow_limit == pytest.approx(1600.0)
        assert b.liquidation_limit == pytest.approx(1700.0)
        assert b.percent_to_liquidation == 59
        assert b.liquidation_price == pytest.approx(1176.47, abs=0.01)

    def test_raw_fields_untouched(
        self, sample_catalog: AssetCatalog, sample_borrower: Borrower
    ) -> None:
        b = compute_health(sample_catalog, sample_borrower)
        assert b.account == sample_borrower.account
        assert b.borrow_balance == 1000.0
        assert b.collaterals == {"WETH": 1.0}
        assert sample_borrower.borrow_limit == 0.0

    def test_multiple_collaterals_have_no_liquidation_price(
        self, sample_catalog: AssetCatalog
    ) -> None:
        borrower = Borrower(
            account="0xC", borrow_balance=500.0, collaterals={"WETH": 0.1, "WBTC": 0.01}
        )
        b = compute_health(sample_catalog, borrower)
        # 0.1*0.8*2000 + 0.01*0.7*30000 = 160 + 210
        assert b.borrow_limit == pytest.approx(370.0)
        # 0.1*0.85*2000 + 0.01*0.75*30000 = 170 + 225
        assert b.liquidation_limit == pytest.approx(395.0)
        assert b.percent_to_liquidation == 127
        assert b.liquidation_price is None

    def test_no_collateral_is_degenerate_not_an_error(
        self, sample_catalog: AssetCatalog
    ) -> None:
        b = compute_health(sample_catalog, Borrower(account="0xD", borrow_balance=5.0))
        assert b.borrow_limit == 0.0
        assert b.liquidation_limit == 0.0
        assert b.percent_to_liquidation == math.inf
        assert b.liquidation_price is None

    def test_limits_expressed_in_base_units(self, sample_catalog: AssetCatalog) -> None:
        catalog = sample_catalog.with_prices({"USDC": 0.5})
        borrower = Borrower(account="0xA", borrow_balance=1000.0, collaterals={"WETH": 1.0})
        b = compute_health(catalog, borrower)
        assert b.borrow_limit == pytest.approx(3200.0)
        assert b.liquidation_limit == pytest.approx(3400.0)
        # 1000*0.5 / 1700 * 100
        assert b.percent_to_liquidation == 29
        assert b.liquidation_price == pytest.approx(500.0 / 0.85)

    def test_deterministic(
        self, sample_catalog: AssetCatalog, sample_borrower: Borrower
    ) -> None:
        assert compute_health(sample_catalog, sample_borrower) == compute_health(
            sample_catalog, sample_borrower
        )

    def test_unpriced_base_raises(self, sample_catalog: AssetCatalog, sample_borrower: Borrower) -> None:
        catalog = sample_catalog.with_prices({"USDC": None})  # type: ignore[dict-item]
        with pytest.raises(ValueError, match="USDC"):
            compute_health(catalog, sample_borrower)


class TestComputeAll:
    def test_keeps_accounts(self, sample_catalog: AssetCatalog, sample_borrower: Borrower) -> None:
        other = Borrower(account="0xD", borrow_balance=5.0)
        out = compute_all(sample_catalog, {"0xAlice": sample_borrower, "0xD": other})
        assert list(out) == ["0xAlice", "0xD"]
        assert out["0xAlice"].percent_to_liquidation == 59
