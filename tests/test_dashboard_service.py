from decimal import Decimal

from app.schemas.balances import SimplifiedTransaction
from app.services.balance_service import GlobalScope, GroupScope
from app.services.dashboard_service import (
    get_dashboard,
    get_group_balances,
    get_group_simplified_debts,
    summarize,
)

from factories import D, make_expense, make_settlement

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4


def edges(transactions):
    return [(t.from_user_id, t.to_user_id, t.amount) for t in transactions]


class TestSummarize:
    def test_totals_only_count_own_edges(self):
        transactions = [
            SimplifiedTransaction(from_user_id=BOB, to_user_id=ALICE, amount=D("10.00")),
            SimplifiedTransaction(from_user_id=ALICE, to_user_id=CAROL, amount=D("4.50")),
            SimplifiedTransaction(from_user_id=DAVE, to_user_id=CAROL, amount=D("99.00")),
        ]

        result = summarize(ALICE, transactions)

        assert result.you_owe == D("4.50")
        assert result.you_are_owed == D("10.00")
        assert edges(result.transactions) == [(BOB, ALICE, D("10.00")), (ALICE, CAROL, D("4.50"))]

    def test_no_edges(self):
        result = summarize(ALICE, [])

        assert result.you_owe == Decimal("0")
        assert result.you_are_owed == Decimal("0")
        assert result.transactions == []


class TestDashboard:
    async def test_creditor_view(self, ledger, rates):
        ledger.add(make_expense(1, {ALICE: 300}, {ALICE: 100, BOB: 100, CAROL: 100}))

        result = await get_dashboard(ledger, rates, ALICE, GlobalScope())

        assert result.you_owe == D(0)
        assert result.you_are_owed == D(200)
        assert edges(result.transactions) == [(BOB, ALICE, D(100)), (CAROL, ALICE, D(100))]

    async def test_debtor_view_hides_other_edges(self, ledger, rates):
        ledger.add(make_expense(1, {ALICE: 300}, {ALICE: 100, BOB: 100, CAROL: 100}))

        result = await get_dashboard(ledger, rates, BOB, GlobalScope())

        assert result.you_owe == D(100)
        assert result.you_are_owed == D(0)
        assert edges(result.transactions) == [(BOB, ALICE, D(100))]

    async def test_debt_chain_is_simplified(self, ledger, rates):
        # Alice owes Bob 10, Bob owes Carol 10 -> Alice pays Carol directly
        ledger.add(
            make_expense(1, {BOB: 10}, {ALICE: 10}),
            make_expense(2, {CAROL: 10}, {BOB: 10}),
        )

        result = await get_dashboard(ledger, rates, BOB, GlobalScope())

        assert result.transactions == []
        assert result.you_owe == D(0)

    async def test_settled_user_sees_nothing(self, ledger, rates):
        ledger.add(
            make_expense(1, {ALICE: 100}, {ALICE: 50, BOB: 50}),
            make_settlement(1, BOB, ALICE, 50),
        )

        result = await get_dashboard(ledger, rates, BOB, GlobalScope())

        assert result.you_owe == D(0)
        assert result.transactions == []

    async def test_group_dashboard_is_independent_of_global(self, ledger, rates):
        ledger.add(
            make_expense(1, {ALICE: 100}, {ALICE: 50, BOB: 50}, group_id=10),
            make_expense(2, {BOB: 80}, {ALICE: 40, BOB: 40}, group_id=20),
        )

        global_view = await get_dashboard(ledger, rates, BOB, GlobalScope())
        group_view = await get_dashboard(ledger, rates, BOB, GroupScope(10))

        assert edges(global_view.transactions) == [(BOB, ALICE, D(10))]
        assert edges(group_view.transactions) == [(BOB, ALICE, D(50))]

    async def test_unbalanced_input_is_logged_not_raised(self, ledger, rates, caplog):
        ledger.add(make_expense(1, {ALICE: 100}, {BOB: 10}))

        with caplog.at_level("WARNING"):
            result = await get_dashboard(ledger, rates, ALICE, GlobalScope())

        assert "do not sum to zero" in caplog.text
        assert result.you_are_owed == D(10)


class TestGroupViews:
    async def test_simplified_debts_are_not_filtered(self, ledger, rates):
        ledger.add(make_expense(1, {ALICE: 90}, {ALICE: 30, BOB: 30, CAROL: 30}, group_id=10))

        result = await get_group_simplified_debts(ledger, rates, DAVE, 10)

        assert edges(result) == [(BOB, ALICE, D(30)), (CAROL, ALICE, D(30))]

    async def test_group_balances(self, ledger, rates):
        ledger.add(
            make_expense(1, {ALICE: 90}, {ALICE: 30, BOB: 30, CAROL: 30}, group_id=10),
            make_settlement(1, BOB, ALICE, 30, group_id=10),
        )

        result = await get_group_balances(ledger, rates, ALICE, 10)

        assert result.net == {ALICE: 30.0, CAROL: -30.0}
        assert edges(result.settlements) == [(CAROL, ALICE, D(30))]
        assert result.is_settled is False

    async def test_settled_group(self, ledger, rates):
        ledger.add(
            make_expense(1, {ALICE: 60}, {ALICE: 30, BOB: 30}, group_id=10),
            make_settlement(1, BOB, ALICE, 30, group_id=10),
        )

        result = await get_group_balances(ledger, rates, ALICE, 10)

        assert result.net == {}
        assert result.settlements == []
        assert result.is_settled is True
