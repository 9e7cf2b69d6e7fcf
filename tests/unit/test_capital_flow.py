"""Unit tests for push / pull."""
from __future__ import annotations

from decimal import Decimal

import pytest

from treasury_yield.errors import CloseToLiquidation, InsufficientBalance, UnknownAsset
from treasury_yield.services import TreasuryEngine
from treasury_yield.venues import VariableRatePool
from treasury_yield.wallet import Wallet

GOVERNOR = "governor"


class TestPush:
    def test_push_supplies_treasury_capital(
        self, engine: TreasuryEngine, venue: VariableRatePool, treasury: Wallet, wallet: Wallet
    ) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        assert treasury.balance_of("USDC") == Decimal(9900)
        assert wallet.balance_of("USDC") == 0
        assert venue.valuation_of_supplied("USDC") == Decimal(100)
        position = engine.registry.position("USDC")
        assert position.last_balance == Decimal(100)
        assert position.net_gain == 0

    def test_zero_push_reconciles_accrued_interest(
        self, engine: TreasuryEngine, venue: VariableRatePool
    ) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        venue.accrue_interest("USDC", Decimal(10))
        engine.push(GOVERNOR, "USDC", 0)
        position = engine.registry.position("USDC")
        assert position.net_gain == Decimal(10)
        assert position.last_balance == Decimal(110)

    def test_gain_booked_before_new_capital(
        self, engine: TreasuryEngine, venue: VariableRatePool
    ) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        venue.accrue_interest("USDC", Decimal(10))
        engine.push(GOVERNOR, "USDC", 50)
        position = engine.registry.position("USDC")
        assert position.net_gain == Decimal(10)
        assert position.last_balance == Decimal(160)

    def test_treasury_short(self, engine: TreasuryEngine, venue: VariableRatePool) -> None:
        with pytest.raises(InsufficientBalance):
            engine.push(GOVERNOR, "USDC", 10001)
        assert venue.valuation_of_supplied("USDC") == 0
        assert engine.registry.position("USDC").last_balance == 0

    def test_unregistered_asset(self, engine: TreasuryEngine) -> None:
        with pytest.raises(UnknownAsset):
            engine.push(GOVERNOR, "WETH", 1)


class TestPull:
    def test_round_trip_without_yield(self, engine: TreasuryEngine, treasury: Wallet) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        assert engine.pull(GOVERNOR, "USDC", 100) == Decimal(100)
        position = engine.registry.position("USDC")
        assert position.net_gain == 0
        assert position.net_debt == 0
        assert position.last_balance == 0
        assert treasury.balance_of("USDC") == Decimal(10000)

    def test_pull_keeps_realized_gain(
        self, engine: TreasuryEngine, venue: VariableRatePool
    ) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        venue.accrue_interest("USDC", Decimal(10))
        engine.pull(GOVERNOR, "USDC", 110)
        position = engine.registry.position("USDC")
        assert position.net_gain == Decimal(10)
        assert position.last_balance == 0

    def test_liquidity_bounded(
        self, engine: TreasuryEngine, venue: VariableRatePool, treasury: Wallet
    ) -> None:
        engine.push(GOVERNOR, "USDC", 1000)
        venue.set_liquidity("USDC", Decimal(400))

        sent = engine.pull(GOVERNOR, "USDC", 1000)

        assert sent == Decimal(400)
        assert engine.registry.position("USDC").last_balance == Decimal(600)
        assert venue.valuation_of_supplied("USDC") == Decimal(600)
        assert engine.total_managed_value("USDC") == Decimal(600)
        assert treasury.balance_of("USDC") == Decimal(9400)

    def test_idle_balance_used_first(
        self, engine: TreasuryEngine, venue: VariableRatePool, wallet: Wallet
    ) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        wallet.credit("USDC", Decimal(30))

        assert engine.pull(GOVERNOR, "USDC", 50) == Decimal(50)

        assert wallet.balance_of("USDC") == 0
        assert venue.valuation_of_supplied("USDC") == Decimal(80)

    def test_liquidation_check_blocks_risky_pull(
        self, engine: TreasuryEngine, venue: VariableRatePool
    ) -> None:
        engine.push(GOVERNOR, "USDC", 1000)
        engine.fold(GOVERNOR, "USDC", 3000)
        engine.toggle_liquidation_check(GOVERNOR)
        engine.set_liquidation_warning_threshold(GOVERNOR, "0.7")

        with pytest.raises(CloseToLiquidation):
            engine.pull(GOVERNOR, "USDC", 10)

        assert venue.valuation_of_supplied("USDC") == Decimal(4000)
        assert engine.registry.position("USDC").last_balance == Decimal(1000)

    def test_pull_unchecked_when_toggle_off(
        self, engine: TreasuryEngine, venue: VariableRatePool
    ) -> None:
        engine.push(GOVERNOR, "USDC", 1000)
        engine.fold(GOVERNOR, "USDC", 3000)
        engine.set_liquidation_warning_threshold(GOVERNOR, "0.7")

        assert engine.pull(GOVERNOR, "USDC", 10) == Decimal(10)
        assert venue.valuation_of_supplied("USDC") == Decimal(3990)

    def test_unlevered_pull_ignores_check(self, engine: TreasuryEngine) -> None:
        engine.push(GOVERNOR, "USDC", 100)
        engine.toggle_liquidation_check(GOVERNOR)
        assert engine.pull(GOVERNOR, "USDC", 100) == Decimal(100)
