"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from comet_monitor.config import (
    AppConfig,
    BaseAssetConfig,
    ChainConfig,
    InstanceConfig,
    MonitorConfig,
    ServerConfig,
)
from comet_monitor.models import AccountBasic, Asset, AssetCatalog, Borrower, WithdrawEvent
from tests.fakes import (
    ALICE,
    BOB,
    CAROL,
    PROXY,
    USDC,
    USDC_FEED,
    WBTC,
    WBTC_FEED,
    WETH,
    WETH_FEED,
    FakeGateway,
)

# ---------------------------------------------------------------------------
# Fake ledger
# ---------------------------------------------------------------------------


@pytest.fixture()
def gateway() -> FakeGateway:
    """USDC-based instance with WETH and WBTC collateral.

    Alice borrows 1000 USDC against 1 WETH; Bob is a net lender who once
    withdrew; Carol borrows 500 USDC against WETH and WBTC.
    """
    gw = FakeGateway()
    gw.add_asset("WETH", WETH, WETH_FEED, 18, 0.8, 0.85)
    gw.add_asset("WBTC", WBTC, WBTC_FEED, 8, 0.7, 0.75)
    gw.prices = {
        USDC_FEED: 1 * 10**8,
        WETH_FEED: 2000 * 10**8,
        WBTC_FEED: 30000 * 10**8,
    }
    gw.events = [
        WithdrawEvent(src=ALICE, to=ALICE, amount=1000 * 10**6, block_number=10),
        WithdrawEvent(src=BOB, to=BOB, amount=5 * 10**6, block_number=20),
        WithdrawEvent(src=CAROL, to=CAROL, amount=500 * 10**6, block_number=30),
    ]
    gw.users = {
        ALICE: AccountBasic(principal=-1000 * 10**6, assets_in=0b01),
        BOB: AccountBasic(principal=50 * 10**6, assets_in=0),
        CAROL: AccountBasic(principal=-500 * 10**6, assets_in=0b11),
    }
    gw.borrow_balances = {ALICE: 1000 * 10**6, CAROL: 500 * 10**6}
    gw.collateral_balances = {
        (ALICE, WETH): 1 * 10**18,
        (CAROL, WETH): 10**17,
        (CAROL, WBTC): 10**6,
    }
    return gw


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_base_asset() -> BaseAssetConfig:
    return BaseAssetConfig(symbol="USDC", address=USDC, decimals=6, price_feed=USDC_FEED)


@pytest.fixture()
def sample_instance(sample_base_asset: BaseAssetConfig) -> InstanceConfig:
    return InstanceConfig(
        instance_id="1_USDC_test",
        chain="mainnet",
        proxy=PROXY,
        debounce_seconds=90.0,
        start_block=0,
        base_asset=sample_base_asset,
    )


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig, sample_instance: InstanceConfig
) -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(sync_interval_minutes=5, max_concurrent_lookups=4),
        server=ServerConfig(host="127.0.0.1", port=3000),
        chains={"mainnet": sample_chain_config},
        instances=(sample_instance,),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_catalog() -> AssetCatalog:
    return AssetCatalog(
        base=Asset(symbol="USDC", address=USDC, decimals=6, price_feed=USDC_FEED, price=1.0),
        collaterals=(
            Asset(
                symbol="WETH",
                address=WETH,
                decimals=18,
                price_feed=WETH_FEED,
                collateral_factor=0.8,
                liquidation_factor=0.85,
                price=2000.0,
            ),
            Asset(
                symbol="WBTC",
                address=WBTC,
                decimals=8,
                price_feed=WBTC_FEED,
                collateral_factor=0.7,
                liquidation_factor=0.75,
                price=30000.0,
            ),
        ),
    )


@pytest.fixture()
def sample_borrower() -> Borrower:
    return Borrower(account=ALICE, borrow_balance=1000.0, collaterals={"WETH": 1.0})


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    monitor:
      sync_interval_minutes: 30
      max_concurrent_lookups: 4
    server:
      host: 127.0.0.1
      port: 8080
    chains:
      mainnet:
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
    instances:
      1_USDC_test:
        chain: mainnet
        proxy: "0xc3d688B66703497DAA19211EEdff47f25384cdc3"
        debounce_seconds: 90
        start_block: 15331586
        log_chunk_size: 50000
        base_asset:
          symbol: USDC
          address: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
          decimals: 6
          price_feed: "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
