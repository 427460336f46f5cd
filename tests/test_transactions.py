"""Tests for the transaction recorder."""

from datetime import date
from decimal import Decimal

import pytest

from propcommand.domain.entities import (
    EntryLine,
    NormalBalance,
    RelatedEntityType,
    SourceType,
)
from propcommand.domain.errors import (
    ConflictError,
    NotFoundError,
    UnbalancedTransactionError,
    ValidationError,
)


def _balance(registry, number):
    return registry.get_account_by_number(number).current_balance


def test_record_transaction_creates_balanced_pair(chart, recorder, registry):
    debit, credit = recorder.record_transaction(
        date=date(2025, 3, 1),
        description="March rent - A1",
        debit_account_id=chart["1000"].id,
        credit_account_id=chart["4000"].id,
        amount=Decimal("1500000"),
        property_id="prop-1",
        related_entity_type=RelatedEntityType.TENANT,
        related_entity_id="tenant-1",
    )

    assert debit.debit == Decimal("1500000") and debit.credit == Decimal("0")
    assert credit.credit == Decimal("1500000") and credit.debit == Decimal("0")
    assert debit.transaction_id == credit.transaction_id
    assert debit.date == credit.date == date(2025, 3, 1)
    assert credit.related_entity_id == "tenant-1"
    assert debit.source_type == SourceType.MANUAL
    assert _balance(registry, "1000") == Decimal("1500000")
    assert _balance(registry, "4000") == Decimal("1500000")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-100"), "0"])
def test_non_positive_amount_rejected(chart, recorder, ledger, amount):
    with pytest.raises(UnbalancedTransactionError, match="greater than zero"):
        recorder.record_transaction(date(2025, 3, 1), "Bad", chart["1000"].id, chart["4000"].id, amount)

    assert ledger.list_entries() == []


def test_unknown_account_persists_nothing(chart, recorder, ledger):
    with pytest.raises(NotFoundError):
        recorder.record_transaction(date(2025, 3, 1), "Bad", chart["1000"].id, "acc-missing", Decimal("10"))

    assert ledger.list_entries() == []
    assert chart["1000"].current_balance == Decimal("0")


def test_same_account_on_both_sides_rejected(chart, recorder):
    with pytest.raises(ValidationError, match="must differ"):
        recorder.record_transaction(date(2025, 3, 1), "Bad", chart["1000"].id, chart["1000"].id, Decimal("10"))


def test_record_compound(chart, recorder, registry):
    entries = recorder.record_compound(
        date(2025, 3, 3),
        "Rent with late fee",
        [
            EntryLine(account_id=chart["1000"].id, debit=Decimal("1550000")),
            EntryLine(account_id=chart["4000"].id, credit=Decimal("1500000")),
            EntryLine(account_id=chart["4100"].id, credit=Decimal("50000")),
        ],
    )

    assert len({e.transaction_id for e in entries}) == 1
    assert _balance(registry, "1000") == Decimal("1550000")
    assert _balance(registry, "4100") == Decimal("50000")


def test_record_compound_unbalanced(chart, recorder, ledger):
    with pytest.raises(UnbalancedTransactionError):
        recorder.record_compound(
            date(2025, 3, 3),
            "Short",
            [
                EntryLine(account_id=chart["1000"].id, debit=Decimal("100")),
                EntryLine(account_id=chart["4000"].id, credit=Decimal("90")),
            ],
        )
    assert ledger.list_entries() == []


def test_rent_payment_posts_cash_and_income(chart, recorder):
    debit, credit = recorder.record_rent_payment(
        tenant_id="tenant-1", amount=Decimal("800000"), payment_date=date(2025, 3, 5), payment_id="pay-1"
    )

    assert debit.account_id == chart["1000"].id
    assert credit.account_id == chart["4000"].id
    assert debit.source_type == SourceType.PAYMENT
    assert debit.source_id == "pay-1"
    assert debit.related_entity_type == RelatedEntityType.TENANT


def test_maintenance_cost_posts_expense_and_cash(chart, recorder, registry):
    debit, credit = recorder.record_maintenance_cost(
        request_id="maint-1", amount=Decimal("250000"), cost_date=date(2025, 3, 7), description="Burst pipe"
    )

    assert debit.account_id == chart["5000"].id
    assert credit.account_id == chart["1000"].id
    assert debit.description == "Maintenance: Burst pipe"
    assert _balance(registry, "5000") == Decimal("250000")
    assert _balance(registry, "1000") == Decimal("-250000")


def test_designated_accounts_must_exist(registry, recorder):
    with pytest.raises(NotFoundError, match="'1000'"):
        recorder.record_rent_payment(tenant_id="t", amount=Decimal("1"), payment_date=date(2025, 3, 1))


class TestReversal:
    def test_reversal_restores_balances(self, chart, recorder, registry):
        recorder.record_transaction(date(2025, 2, 1), "Opening", chart["1000"].id, chart["3000"].id, Decimal("5000000"))
        debit, _ = recorder.record_transaction(
            date(2025, 3, 1), "Typo", chart["5100"].id, chart["1000"].id, Decimal("999999")
        )

        recorder.reverse_transaction(debit.transaction_id, reason="wrong amount")

        assert _balance(registry, "1000") == Decimal("5000000")
        assert _balance(registry, "5100") == Decimal("0")

    def test_offsets_are_dated_at_reversal_and_linked(self, chart, recorder, ledger, clock):
        debit, credit = recorder.record_transaction(
            date(2025, 1, 10), "Insurance", chart["5300"].id, chart["1000"].id, Decimal("600000")
        )

        offsets = recorder.reverse_transaction(debit.id)

        assert {o.date for o in offsets} == {clock().date()}
        assert {o.reference for o in offsets} == {debit.transaction_id}
        assert all(o.source_type == SourceType.ADJUSTMENT for o in offsets)
        offset_for_debit = next(o for o in offsets if o.account_id == debit.account_id)
        assert offset_for_debit.credit == Decimal("600000")
        assert offset_for_debit.reversal_entry_id == debit.id
        assert ledger.get_entry(debit.id).reversal_entry_id == offset_for_debit.id
        assert ledger.get_entry(credit.id).is_reversed

    def test_reversed_rows_remain_for_audit(self, chart, recorder, ledger):
        debit, _ = recorder.record_transaction(date(2025, 3, 1), "Rent", chart["1000"].id, chart["4000"].id, Decimal("100"))

        recorder.reverse_transaction(debit.transaction_id)

        all_entries = ledger.list_entries()
        assert len(all_entries) == 4
        assert all(e.is_reversed for e in all_entries)
        assert ledger.by_account(chart["1000"].id) == []

    def test_double_reversal_rejected(self, chart, recorder):
        debit, _ = recorder.record_transaction(date(2025, 3, 1), "Rent", chart["1000"].id, chart["4000"].id, Decimal("100"))
        offsets = recorder.reverse_transaction(debit.transaction_id)

        with pytest.raises(ConflictError):
            recorder.reverse_transaction(debit.transaction_id)
        with pytest.raises(ConflictError):
            recorder.reverse_transaction(offsets[0].id)

    def test_unknown_transaction(self, chart, recorder):
        with pytest.raises(NotFoundError):
            recorder.reverse_transaction("txn-missing")


def test_debit_and_credit_normal_balances_stay_equal(chart, recorder, registry):
    """Every posting is balanced, so debit-normal and credit-normal totals agree."""
    cash, bank2 = chart["1000"].id, chart["1000.01"].id
    postings = [
        (chart["1000"].id, chart["3000"].id, "20000000"),
        (chart["1500"].id, chart["1000"].id, "15000000"),
        (cash, chart["4000"].id, "3000000"),
        (chart["5400"].id, cash, "300000"),
        (bank2, cash, "1000000"),
        (chart["5000.01"].id, chart["2000"].id, "120000"),
    ]
    for index, (debit_id, credit_id, amount) in enumerate(postings):
        recorder.record_transaction(date(2025, 3, index + 1), f"Posting {index}", debit_id, credit_id, Decimal(amount))
    debit, _ = recorder.record_transaction(date(2025, 3, 10), "Mistake", chart["5500"].id, cash, Decimal("77"))
    recorder.reverse_transaction(debit.id)

    accounts = registry.list_accounts()
    debit_side = sum(a.current_balance for a in accounts if a.normal_balance == NormalBalance.DEBIT)
    credit_side = sum(a.current_balance for a in accounts if a.normal_balance == NormalBalance.CREDIT)

    assert debit_side == credit_side == Decimal("23120000")
