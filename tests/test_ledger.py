"""Tests for the BettingPoolLedger operation set."""

from __future__ import annotations

import threading
from unittest.mock import Mock

import pytest

from parimutuel.config import LedgerConfig
from parimutuel.errors import (
    AlreadyClaimed,
    BetNotFound,
    DuplicateBet,
    DuplicatePool,
    InsufficientEscrow,
    InvalidAmount,
    InvalidSide,
    NotWinner,
    NoWinningStake,
    PoolAlreadyResolved,
    PoolNotFound,
    PoolNotResolved,
    TransferFailed,
    Unauthorized,
)
from parimutuel.escrow.wallets import WalletLedger
from parimutuel.events.sinks import InMemoryEventSink, LoggingEventSink
from parimutuel.ledger import BettingPoolLedger
from parimutuel.storage.memory_stores import InMemoryRecordStore
from parimutuel.types import MAX_AMOUNT, Resolution, Side

from conftest import FEE_RECIPIENT, OWNER, STARTING_BALANCE


def _escrow_matches_records(ledger: BettingPoolLedger, pool_id: int) -> bool:
    pool = ledger.pools.get(pool_id)
    return ledger.get_contract_balance(pool_id) == pool.total_amount


class TestInitializePool:
    """Tests for initialize_pool."""

    def test_creates_pending_pool(self, ledger: BettingPoolLedger, event_sink: InMemoryEventSink) -> None:
        pool = ledger.initialize_pool(1, FEE_RECIPIENT, OWNER)

        info = ledger.get_pool_info(1)
        assert pool.owner == OWNER
        assert info.fee_recipient == FEE_RECIPIENT
        assert info.resolution is Resolution.PENDING
        assert info.resolved is False
        assert info.total_amount_a == info.total_amount_b == 0
        assert ledger.get_contract_balance(1) == 0
        assert event_sink.get_events("pool_initialized")[0].context["owner"] == OWNER

    def test_duplicate_pool_keeps_original_owner(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        with pytest.raises(DuplicatePool):
            ledger.initialize_pool(pool_id, "mallory", "mallory")

        assert ledger.get_pool_info(pool_id).owner == OWNER

    def test_unknown_pool(self, ledger: BettingPoolLedger) -> None:
        with pytest.raises(PoolNotFound):
            ledger.get_pool_info(404)


class TestPlaceBet:
    """Tests for place_bet."""

    def test_bet_updates_totals_and_escrow(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.place_bet(pool_id, Side.B, 250, "bob")

        info = ledger.get_pool_info(pool_id)
        assert (info.total_amount_a, info.total_amount_b) == (100, 250)
        counts = ledger.get_bettors_count(pool_id)
        assert (counts.count_a, counts.count_b) == (1, 1)
        assert ledger.get_contract_balance(pool_id) == 350
        assert wallets.get_available("alice") == STARTING_BALANCE - 100
        assert ledger.get_bet_info(pool_id, "bob").side is Side.B

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, ledger: BettingPoolLedger, pool_id: int, amount: int) -> None:
        with pytest.raises(InvalidAmount):
            ledger.place_bet(pool_id, "A", amount, "alice")
        assert ledger.get_pool_info(pool_id).total_bets_a == 0

    def test_second_bet_rejected(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")

        with pytest.raises(DuplicateBet):
            ledger.place_bet(pool_id, "B", 100, "alice")

        assert ledger.get_pool_info(pool_id).total_amount_b == 0
        assert wallets.get_available("alice") == STARTING_BALANCE - 100

    def test_missing_pool(self, ledger: BettingPoolLedger) -> None:
        with pytest.raises(PoolNotFound):
            ledger.place_bet(9, "A", 100, "alice")

    def test_unknown_side_rejected(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        with pytest.raises(InvalidSide):
            ledger.place_bet(pool_id, "C", 100, "alice")

        info = ledger.get_pool_info(pool_id)
        assert info.total_bets_a == info.total_bets_b == 0
        assert wallets.get_available("alice") == STARTING_BALANCE

    def test_resolved_pool_rejects_bets(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.resolve_pool(pool_id, "A", OWNER)

        with pytest.raises(PoolAlreadyResolved):
            ledger.place_bet(pool_id, "B", 100, "bob")
        assert ledger.get_pool_info(pool_id).total_amount_b == 0

    def test_failed_transfer_changes_nothing(
        self,
        ledger: BettingPoolLedger,
        pool_id: int,
        wallets: WalletLedger,
        event_sink: InMemoryEventSink,
    ) -> None:
        with pytest.raises(TransferFailed):
            ledger.place_bet(pool_id, "A", STARTING_BALANCE + 1, "alice")

        info = ledger.get_pool_info(pool_id)
        assert info.total_amount_a == 0
        assert info.total_bets_a == 0
        assert ledger.get_contract_balance(pool_id) == 0
        assert wallets.get_available("alice") == STARTING_BALANCE
        with pytest.raises(BetNotFound):
            ledger.get_bet_info(pool_id, "alice")
        assert event_sink.get_events("bet_placed") == []

        # the bettor can retry once funded
        wallets.fund("alice", 1)
        ledger.place_bet(pool_id, "A", STARTING_BALANCE + 1, "alice")
        assert ledger.get_contract_balance(pool_id) == STARTING_BALANCE + 1

    def test_side_total_overflow_rejected(self, store: InMemoryRecordStore, pool_id: int) -> None:
        rich = WalletLedger({"whale": MAX_AMOUNT, "minnow": 10})
        ledger = BettingPoolLedger(store=store, transfer=rich)
        ledger.place_bet(pool_id, "A", MAX_AMOUNT, "whale")

        with pytest.raises(InvalidAmount, match="overflow"):
            ledger.place_bet(pool_id, "A", 1, "minnow")
        assert ledger.get_pool_info(pool_id).total_amount_a == MAX_AMOUNT

    def test_concurrent_bets_are_all_counted(self, store: InMemoryRecordStore, pool_id: int) -> None:
        bettors = [f"bettor-{i}" for i in range(40)]
        wallets = WalletLedger({name: 100 for name in bettors})
        ledger = BettingPoolLedger(store=store, transfer=wallets)
        errors: list[Exception] = []

        def bet(name: str, index: int) -> None:
            try:
                ledger.place_bet(pool_id, "A" if index % 2 else "B", 10, name)
            except Exception as exc:  # pragma: no cover - surfaced by assertion
                errors.append(exc)

        threads = [threading.Thread(target=bet, args=(name, i)) for i, name in enumerate(bettors)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        info = ledger.get_pool_info(pool_id)
        assert info.total_bets_a + info.total_bets_b == 40
        assert info.total_amount_a + info.total_amount_b == 400
        assert _escrow_matches_records(ledger, pool_id)


class TestResolveAndClaim:
    """Tests for resolve_pool and claim_winnings."""

    def test_full_lifecycle_with_rounding_dust(
        self,
        ledger: BettingPoolLedger,
        pool_id: int,
        wallets: WalletLedger,
    ) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.place_bet(pool_id, "A", 200, "bob")
        ledger.place_bet(pool_id, "B", 100, "carol")

        ledger.resolve_pool(pool_id, "A", OWNER)
        assert wallets.get_available(FEE_RECIPIENT) == 20
        assert ledger.get_contract_balance(pool_id) == 380

        assert ledger.claim_winnings(pool_id, "alice") == 126
        assert ledger.claim_winnings(pool_id, "bob") == 253
        assert ledger.get_contract_balance(pool_id) == 1
        assert wallets.get_available("alice") == STARTING_BALANCE + 26
        assert wallets.get_available("bob") == STARTING_BALANCE + 53

        with pytest.raises(NotWinner):
            ledger.claim_winnings(pool_id, "carol")
        assert ledger.get_bet_info(pool_id, "carol").claimed is False

    def test_claim_is_paid_once(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.place_bet(pool_id, "B", 300, "bob")
        ledger.resolve_pool(pool_id, "A", OWNER)

        assert ledger.claim_winnings(pool_id, "alice") == 380
        assert ledger.get_contract_balance(pool_id) == 0
        with pytest.raises(AlreadyClaimed):
            ledger.claim_winnings(pool_id, "alice")

        assert wallets.get_available("alice") == STARTING_BALANCE + 280
        assert ledger.get_bet_info(pool_id, "alice").claimed is True

    def test_claim_before_resolution(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")

        with pytest.raises(PoolNotResolved):
            ledger.claim_winnings(pool_id, "alice")

    def test_claim_without_bet(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.resolve_pool(pool_id, "A", OWNER)

        with pytest.raises(BetNotFound):
            ledger.claim_winnings(pool_id, "alice")

    def test_no_stake_on_winning_side(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "B", 500, "bob")
        ledger.place_bet(pool_id, "B", 100, "carol")
        ledger.resolve_pool(pool_id, "A", OWNER)

        for bettor in ("bob", "carol"):
            with pytest.raises(NoWinningStake):
                ledger.claim_winnings(pool_id, bettor)
        # fee was still taken, the rest stays in escrow
        assert ledger.get_contract_balance(pool_id) == 570

    def test_non_owner_cannot_resolve(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        with pytest.raises(Unauthorized):
            ledger.resolve_pool(pool_id, "A", "alice")
        assert ledger.get_pool_info(pool_id).resolved is False

    def test_sum_of_claims_never_exceeds_distributable(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 333, "alice")
        ledger.place_bet(pool_id, "A", 667, "bob")
        ledger.place_bet(pool_id, "B", 1001, "carol")
        ledger.resolve_pool(pool_id, "A", OWNER)

        paid = ledger.claim_winnings(pool_id, "alice") + ledger.claim_winnings(pool_id, "bob")

        distributable = 2001 - 2001 * 5 // 100
        assert paid <= distributable
        assert ledger.get_contract_balance(pool_id) == distributable - paid

    def test_estimate_winnings(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.place_bet(pool_id, "B", 300, "bob")

        assert ledger.estimate_winnings(pool_id, "alice", "A").winnings == 380
        assert ledger.estimate_winnings(pool_id, "alice", "B").profit == -100
        with pytest.raises(PoolNotResolved):
            ledger.estimate_winnings(pool_id, "alice")
        with pytest.raises(InvalidSide):
            ledger.estimate_winnings(pool_id, "alice", "draw")


class TestAdminOperations:
    """Tests for update_fee_recipient and emergency_withdraw."""

    def test_update_fee_recipient(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.update_fee_recipient(pool_id, "new-treasury", OWNER)
        ledger.resolve_pool(pool_id, "A", OWNER)

        assert ledger.get_pool_info(pool_id).fee_recipient == "new-treasury"
        assert wallets.get_available("new-treasury") == 5
        assert wallets.get_available(FEE_RECIPIENT) == 0

    def test_update_fee_recipient_requires_owner(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        with pytest.raises(Unauthorized):
            ledger.update_fee_recipient(pool_id, "mallory", "mallory")
        assert ledger.get_pool_info(pool_id).fee_recipient == FEE_RECIPIENT

    def test_emergency_withdraw(self, ledger: BettingPoolLedger, pool_id: int, wallets: WalletLedger) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.place_bet(pool_id, "B", 50, "bob")

        assert ledger.emergency_withdraw(pool_id, OWNER) == 150
        assert ledger.get_contract_balance(pool_id) == 0
        assert wallets.get_available(OWNER) == 150
        # bets are left untouched
        assert ledger.get_bet_info(pool_id, "alice").claimed is False

    def test_emergency_withdraw_requires_owner(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")

        with pytest.raises(Unauthorized):
            ledger.emergency_withdraw(pool_id, "alice")
        assert ledger.get_contract_balance(pool_id) == 100

    def test_claim_after_emergency_withdraw_fails(self, ledger: BettingPoolLedger, pool_id: int) -> None:
        ledger.place_bet(pool_id, "A", 100, "alice")
        ledger.resolve_pool(pool_id, "A", OWNER)
        ledger.emergency_withdraw(pool_id, OWNER)

        with pytest.raises(InsufficientEscrow):
            ledger.claim_winnings(pool_id, "alice")
        assert ledger.get_bet_info(pool_id, "alice").claimed is False


class TestEvents:
    """Tests for event publication."""

    def test_events_follow_operation_order(self, ledger: BettingPoolLedger, event_sink: InMemoryEventSink) -> None:
        ledger.initialize_pool(1, FEE_RECIPIENT, OWNER)
        ledger.place_bet(1, "A", 100, "alice")
        ledger.place_bet(1, "B", 100, "bob")
        ledger.resolve_pool(1, "A", OWNER)
        ledger.claim_winnings(1, "alice")

        assert [e.event_type for e in event_sink.get_events(pool_id=1)] == [
            "pool_initialized",
            "bet_placed",
            "bet_placed",
            "fee_collected",
            "pool_resolved",
            "winnings_claimed",
        ]
        claimed = event_sink.get_events("winnings_claimed")[0]
        assert claimed.context == {"bettor": "alice", "amount": 190}

    def test_rejected_operation_emits_nothing(
        self, ledger: BettingPoolLedger, pool_id: int, event_sink: InMemoryEventSink
    ) -> None:
        event_sink.clear()

        with pytest.raises(Unauthorized):
            ledger.resolve_pool(pool_id, "A", "alice")
        assert event_sink.events == []

    def test_failing_sink_does_not_fail_operation(self, store: InMemoryRecordStore, wallets: WalletLedger) -> None:
        broken = Mock()
        broken.emit.side_effect = RuntimeError("sink down")
        recorder = InMemoryEventSink()
        ledger = BettingPoolLedger(store=store, transfer=wallets, sinks=[broken, recorder])

        ledger.initialize_pool(1, FEE_RECIPIENT, OWNER)
        ledger.place_bet(1, "A", 100, "alice")

        assert ledger.get_pool_info(1).total_amount_a == 100
        assert broken.emit.call_count == 2
        assert len(recorder.events) == 2


class TestFromConfig:
    """Tests for BettingPoolLedger.from_config."""

    def test_in_memory_by_default(self) -> None:
        ledger = BettingPoolLedger.from_config(LedgerConfig(fee_percent=2))

        assert isinstance(ledger.store, InMemoryRecordStore)
        assert any(isinstance(s, LoggingEventSink) for s in ledger.events.sinks)
        assert ledger.initialize_pool(1, FEE_RECIPIENT, OWNER).fee_percent == 2

    def test_extra_sinks_and_transfer(self) -> None:
        sink = InMemoryEventSink()
        wallets = WalletLedger({"alice": 50})
        ledger = BettingPoolLedger.from_config(LedgerConfig(), transfer=wallets, sinks=[sink])

        ledger.initialize_pool(1, FEE_RECIPIENT, OWNER)
        ledger.place_bet(1, "A", 50, "alice")

        assert wallets.get_available("alice") == 0
        assert len(sink.events) == 2
