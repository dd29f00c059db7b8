"""
Property-based conservation checks.

Random sequences of mints, transfers, deposits and clock advances are
applied to a fresh ledger; every elapsed period and every holder is then
settled and the conservation laws are checked against the result.
"""

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from dividend_kernel.domain.clock import DeterministicClock
from dividend_kernel.services.ledger_service import LedgerService
from tests.conftest import ADMIN, LEDGER_EPOCH

PERIOD = 3600
HOLDERS = ("0xa", "0xb", "0xc", "0xd")

holder_idx = st.integers(min_value=0, max_value=len(HOLDERS) - 1)

operation = st.one_of(
    st.tuples(st.just("mint"), holder_idx, st.integers(min_value=1, max_value=1_000)),
    st.tuples(st.just("deposit"), st.integers(min_value=1, max_value=10**30)),
    st.tuples(st.just("transfer"), holder_idx, holder_idx, st.integers(min_value=1, max_value=500)),
    st.tuples(st.just("advance"), st.integers(min_value=1, max_value=2 * PERIOD)),
)

FUZZ_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)


def _apply(ledger: LedgerService, clock: DeterministicClock, ops) -> None:
    for op in ops:
        kind = op[0]
        if kind == "mint":
            ledger.mint(ADMIN, HOLDERS[op[1]], op[2])
        elif kind == "deposit":
            ledger.deposit("0xpayer", op[1])
        elif kind == "transfer":
            sender, recipient, amount = HOLDERS[op[1]], HOLDERS[op[2]], op[3]
            if ledger.balance_of(sender) >= amount:
                ledger.transfer(sender, recipient, amount)
        else:
            clock.advance(op[1])


def _fresh_ledger(session) -> tuple[LedgerService, DeterministicClock]:
    clock = DeterministicClock(LEDGER_EPOCH)
    ledger = LedgerService.create(session, admin=ADMIN, period_seconds=PERIOD, clock=clock)
    return ledger, clock


class TestValueConservation:
    """No value is created or destroyed by settlement."""

    @FUZZ_SETTINGS
    @given(ops=st.lists(operation, max_size=25))
    def test_rewards_plus_outstanding_equal_deposits(self, session, ops):
        ledger, clock = _fresh_ledger(session)
        _apply(ledger, clock, ops)
        clock.advance(PERIOD)

        ledger.settle_elapsed_periods()
        through = ledger.get_ledger().settled_through
        for holder in HOLDERS:
            ledger.settle_holder_through(holder, through)

        rewarded = sum(h.unpaid_amount for h in ledger.selector.list_holders())
        open_logs = [log for log in ledger.selector.list_period_logs() if not log.settled]
        outstanding = sum(log.received_amount for log in open_logs)
        outstanding += ledger.get_period_log(through + 1).carried_amount
        assert rewarded + outstanding == ledger.selector.total_deposited()

    @FUZZ_SETTINGS
    @given(ops=st.lists(operation, max_size=25))
    def test_each_period_splits_its_pool_exactly(self, session, ops):
        ledger, clock = _fresh_ledger(session)
        _apply(ledger, clock, ops)
        clock.advance(PERIOD)

        for log in ledger.settle_elapsed_periods():
            carried_out = ledger.get_period_log(log.period_index + 1).carried_amount
            assert log.per_share_amount * log.total_shares_snapshot + carried_out == log.pool
            if log.total_shares_snapshot:
                assert carried_out < log.total_shares_snapshot


class TestShareConservation:
    @FUZZ_SETTINGS
    @given(ops=st.lists(operation, max_size=25))
    def test_total_equals_sum_of_balances(self, session, ops):
        ledger, clock = _fresh_ledger(session)
        _apply(ledger, clock, ops)

        balances = sum(h.current_shares for h in ledger.selector.list_holders())
        assert ledger.get_shares() == balances

    @FUZZ_SETTINGS
    @given(ops=st.lists(operation, max_size=25))
    def test_total_equals_snapshot_plus_unsettled_deltas(self, session, ops):
        ledger, clock = _fresh_ledger(session)
        _apply(ledger, clock, ops)

        ledger.settle_elapsed_periods()
        through = ledger.get_ledger().settled_through
        snapshot = ledger.get_period_log(through).total_shares_snapshot if through >= 0 else 0
        unsettled = sum(
            log.shares_delta
            for log in ledger.selector.list_period_logs()
            if log.period_index > through
        )
        assert ledger.get_shares() == snapshot + unsettled

    @FUZZ_SETTINGS
    @given(ops=st.lists(operation, max_size=25))
    def test_holder_snapshots_match_balances(self, session, ops):
        ledger, clock = _fresh_ledger(session)
        _apply(ledger, clock, ops)
        clock.advance(PERIOD)
        ledger.settle_elapsed_periods()
        through = ledger.get_ledger().settled_through

        # Nothing has happened in the running period, so the last snapshot
        # is the live balance.
        for holder in HOLDERS:
            ledger.settle_holder_through(holder, through)
            log = ledger.get_holder_log(holder, through)
            assert log.total_shares_snapshot == ledger.balance_of(holder)
