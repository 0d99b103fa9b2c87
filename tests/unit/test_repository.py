"""Unit tests for the ledger repository."""

from datetime import date

import pytest

from milk_ledger.domain.errors import DuplicatePhoneError
from milk_ledger.domain.models import (
    CustomerPatch,
    DayEntry,
    MonthTotals,
    OtherItem,
    PaymentMethod,
    PaymentStatus,
)
from milk_ledger.domain.repository import LedgerRepository

pytestmark = pytest.mark.unit


@pytest.fixture
def asha(repo):
    """Customer from the worked billing example."""
    return repo.create_customer("Asha", "919900000001", 40)


class TestCustomers:
    """Customer CRUD."""

    def test_create_and_get(self, repo):
        cid = repo.create_customer("Asha", "919900000001", 40)
        customer = repo.get_customer(cid)
        assert customer.id == cid
        assert customer.name == "Asha"
        assert customer.phone == "919900000001"
        assert customer.milk_price == 40

    def test_create_trims_name_and_phone(self, repo):
        cid = repo.create_customer("  Asha ", " 919900000001 ", 40)
        customer = repo.get_customer(cid)
        assert customer.name == "Asha"
        assert customer.phone == "919900000001"

    def test_ids_come_from_factory(self, store):
        ids = iter(["id-1", "id-2"])
        repo = LedgerRepository(store, id_factory=lambda: next(ids))
        assert repo.create_customer("A", "1", 40) == "id-1"
        assert repo.create_customer("B", "2", 40) == "id-2"

    def test_list_sorted_by_name(self, repo):
        repo.create_customer("chetan", "3", 40)
        repo.create_customer("Asha", "1", 40)
        repo.create_customer("bina", "2", 40)
        assert [c.name for c in repo.list_customers()] == ["Asha", "bina", "chetan"]

    def test_accented_names_sort_with_base_letter(self, repo):
        repo.create_customer("Zed", "1", 40)
        repo.create_customer("Émile", "2", 40)
        repo.create_customer("eshan", "3", 40)
        repo.create_customer("Dev", "4", 40)
        names = [c.name for c in repo.list_customers()]
        assert names == ["Dev", "Émile", "eshan", "Zed"]

    def test_get_unknown_is_none(self, repo):
        assert repo.get_customer("missing") is None

    def test_update_merges_fields(self, repo, asha):
        repo.update_customer(asha, CustomerPatch(milk_price=45))
        customer = repo.get_customer(asha)
        assert customer.milk_price == 45
        assert customer.name == "Asha"

    def test_update_with_keywords(self, repo, asha):
        repo.update_customer(asha, name="Asha Devi")
        assert repo.get_customer(asha).name == "Asha Devi"

    def test_update_unknown_is_noop(self, repo, store):
        repo.update_customer("missing", name="Ghost")
        assert store.raw() is None
        assert repo.list_customers() == []

    def test_delete(self, repo, asha):
        repo.delete_customer(asha)
        assert repo.get_customer(asha) is None

    def test_find_by_phone(self, repo, asha):
        assert repo.find_customer_by_phone("919900000001").id == asha

    def test_find_by_phone_is_exact(self, repo, asha):
        assert repo.find_customer_by_phone(" 919900000001 ") is None
        assert repo.find_customer_by_phone("9199") is None

    def test_find_by_unknown_phone_is_none(self, repo, asha):
        assert repo.find_customer_by_phone("910000000000") is None


class TestPhoneUniqueness:
    """Phone numbers identify customers, so duplicates are refused."""

    def test_create_duplicate_raises(self, repo, asha):
        with pytest.raises(DuplicatePhoneError) as exc_info:
            repo.create_customer("Other", "919900000001", 40)
        assert exc_info.value.existing_id == asha
        assert len(repo.list_customers()) == 1

    def test_update_to_taken_phone_raises(self, repo, asha):
        other = repo.create_customer("Bina", "919900000002", 40)
        with pytest.raises(DuplicatePhoneError):
            repo.update_customer(other, phone="919900000001")
        assert repo.get_customer(other).phone == "919900000002"

    def test_update_keeping_own_phone_is_fine(self, repo, asha):
        repo.update_customer(asha, phone="919900000001", name="Asha D")
        assert repo.get_customer(asha).name == "Asha D"


class TestDayEntries:
    """Upsert, ordering and item removal."""

    def test_empty_month(self, repo, asha):
        assert repo.get_month_entries(asha, "2024-03") == []

    def test_upsert_appends_and_sorts(self, repo, asha):
        for day in ["2024-03-20", "2024-03-05", "2024-03-12"]:
            repo.upsert_day_entry(asha, DayEntry(date=day, am_qty=1))
        dates = [e.date for e in repo.get_month_entries(asha, "2024-03")]
        assert dates == ["2024-03-05", "2024-03-12", "2024-03-20"]

    def test_upsert_replaces_same_date(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-05", am_qty=1))
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-05", am_qty=2, note="extra"))
        entries = repo.get_month_entries(asha, "2024-03")
        assert len(entries) == 1
        assert entries[0].am_qty == 2
        assert entries[0].note == "extra"

    def test_upsert_is_idempotent(self, repo, asha):
        entry = DayEntry(date="2024-03-05", am_qty=1, pm_qty=0.5)
        repo.upsert_day_entry(asha, entry)
        repo.upsert_day_entry(asha, entry)
        assert repo.get_month_entries(asha, "2024-03") == [entry]

    def test_entries_are_bucketed_by_month(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-31", am_qty=1))
        repo.upsert_day_entry(asha, DayEntry(date="2024-04-01", am_qty=1))
        assert [e.date for e in repo.get_month_entries(asha, "2024-03")] == ["2024-03-31"]
        assert [e.date for e in repo.get_month_entries(asha, date(2024, 4, 15))] == ["2024-04-01"]

    def test_upsert_for_unknown_customer_is_noop(self, repo):
        repo.upsert_day_entry("missing", DayEntry(date="2024-03-05", am_qty=1))
        assert repo.get_month_entries("missing", "2024-03") == []

    def test_upsert_rejects_malformed_date(self, repo, asha):
        with pytest.raises(ValueError):
            repo.upsert_day_entry(asha, DayEntry(date="05/03/2024"))

    def test_mark_no_delivery(self, repo, asha):
        repo.upsert_day_entry(
            asha,
            DayEntry(date="2024-03-05", am_qty=1, other_items=(OtherItem("i1", "Bread", 35),)),
        )
        repo.mark_no_delivery(asha, "2024-03-05", note="On leave")
        [entry] = repo.get_month_entries(asha, "2024-03")
        assert entry == DayEntry(date="2024-03-05", note="On leave")

    def test_remove_other_item(self, repo, asha):
        repo.upsert_day_entry(
            asha,
            DayEntry(
                date="2024-03-05",
                other_items=(OtherItem("i1", "Bread", 35), OtherItem("i2", "Curd", 20)),
            ),
        )
        repo.remove_other_item(asha, "2024-03-05", "i1")
        [entry] = repo.get_month_entries(asha, "2024-03")
        assert [i.name for i in entry.other_items] == ["Curd"]

    def test_remove_other_item_missing_day_is_noop(self, repo, asha, store):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-05"))
        before = store.raw()
        repo.remove_other_item(asha, "2024-03-06", "i1")
        repo.remove_other_item(asha, "2024-04-06", "i1")
        repo.remove_other_item("missing", "2024-03-05", "i1")
        assert store.raw() == before


class TestTotals:
    """Month totals."""

    def test_worked_example(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-05", am_qty=1, pm_qty=0.5))
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals == MonthTotals(
            total_milk_liters=1.5, milk_amount=60, other_amount=0, grand_total=60
        )

    def test_worked_example_with_bread(self, repo, asha):
        repo.upsert_day_entry(
            asha,
            DayEntry(
                date="2024-03-05",
                am_qty=1,
                pm_qty=0.5,
                other_items=(OtherItem("i1", "Bread", 35),),
            ),
        )
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals.other_amount == 35
        assert totals.grand_total == 95

    def test_sums_across_days(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-01", am_qty=1, pm_qty=1))
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-02", am_qty=0.5))
        repo.upsert_day_entry(asha, DayEntry(date="2024-04-01", am_qty=10))
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals.total_milk_liters == 2.5
        assert totals.milk_amount == 100

    def test_rounding_happens_per_figure(self, repo, asha):
        repo.update_customer(asha, milk_price=100)
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-01", am_qty=1.005))
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        # liters rounds down while the amount, computed from raw liters, rounds up
        assert totals.total_milk_liters == 1.0
        assert totals.milk_amount == 100.5

    def test_float_noise_is_rounded(self, repo, asha):
        repo.update_customer(asha, milk_price=10)
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-01", am_qty=0.1, pm_qty=0.2))
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals.total_milk_liters == 0.3
        assert totals.milk_amount == 3.0

    def test_half_cent_ties_round_up(self, repo):
        cid = repo.create_customer("Ravi", "2", 12.5)
        repo.upsert_day_entry(cid, DayEntry(date="2024-03-01", am_qty=0.25))
        totals = repo.compute_totals(repo.get_customer(cid), "2024-03")
        assert totals.total_milk_liters == 0.25
        assert totals.milk_amount == 3.13
        assert totals.grand_total == 3.13

    def test_other_amount_ties_round_up(self, repo, asha):
        repo.upsert_day_entry(
            asha,
            DayEntry(date="2024-03-01", other_items=(OtherItem("i1", "Curd", 0.125),)),
        )
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals.other_amount == 0.13

    def test_empty_month_totals_are_floats(self, repo, asha):
        totals = repo.compute_totals(repo.get_customer(asha), "2024-05")
        assert totals == MonthTotals(0.0, 0.0, 0.0, 0.0)
        assert all(
            isinstance(v, float)
            for v in (
                totals.total_milk_liters,
                totals.milk_amount,
                totals.other_amount,
                totals.grand_total,
            )
        )

    def test_price_change_applies_retroactively(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-01-10", am_qty=2))
        repo.update_customer(asha, milk_price=50)
        totals = repo.compute_totals(repo.get_customer(asha), "2024-01")
        assert totals.milk_amount == 100

    def test_empty_month(self, repo, asha):
        totals = repo.compute_totals(repo.get_customer(asha), "2024-03")
        assert totals == MonthTotals(0, 0, 0, 0)


class TestPayments:
    """Payment status get/set."""

    def test_default_is_unpaid(self, repo, asha):
        assert repo.get_payment_status(asha, "2024-03") == PaymentStatus.unpaid("2024-03")

    def test_set_cash(self, repo, asha):
        repo.set_payment_status(asha, "2024-03", paid=True, method="cash")
        status = repo.get_payment_status(asha, "2024-03")
        assert status.to_dict() == {"yearMonth": "2024-03", "paid": True, "method": "cash"}
        assert status.reference is None

    def test_merge_keeps_previous_fields(self, repo, asha):
        repo.set_payment_status(asha, "2024-03", paid=True, method="online")
        repo.set_payment_status(asha, "2024-03", reference="UTR42")
        status = repo.get_payment_status(asha, date(2024, 3, 1))
        assert status.paid is True
        assert status.method is PaymentMethod.ONLINE
        assert status.reference == "UTR42"

    def test_months_are_independent(self, repo, asha):
        repo.mark_paid(asha, "2024-03", "cash")
        assert repo.get_payment_status(asha, "2024-04").paid is False

    def test_mark_paid_online_then_unpaid(self, repo, asha):
        repo.mark_paid(asha, "2024-03", PaymentMethod.ONLINE, reference="UTR42")
        repo.mark_unpaid(asha, "2024-03")
        assert repo.get_payment_status(asha, "2024-03") == PaymentStatus.unpaid("2024-03")

    def test_set_for_unknown_customer_is_noop(self, repo):
        repo.set_payment_status("missing", "2024-03", paid=True)
        assert repo.get_payment_status("missing", "2024-03").paid is False


class TestCascadingDelete:
    """Deleting a customer leaves nothing behind."""

    def test_entries_and_payments_removed(self, repo, asha):
        repo.upsert_day_entry(asha, DayEntry(date="2024-03-05", am_qty=1))
        repo.upsert_day_entry(asha, DayEntry(date="2024-04-05", am_qty=1))
        repo.mark_paid(asha, "2024-03", "cash")

        repo.delete_customer(asha)

        for month in ["2024-03", "2024-04", "2025-01"]:
            assert repo.get_month_entries(asha, month) == []
            assert repo.get_payment_status(asha, month) == PaymentStatus.unpaid(month)

    def test_other_customers_untouched(self, repo, asha):
        bina = repo.create_customer("Bina", "919900000002", 40)
        repo.upsert_day_entry(bina, DayEntry(date="2024-03-05", am_qty=1))
        repo.delete_customer(asha)
        assert len(repo.get_month_entries(bina, "2024-03")) == 1


class TestStatelessRepository:
    """Every call goes back to the store."""

    def test_two_repositories_share_state(self, store):
        writer = LedgerRepository(store)
        reader = LedgerRepository(store)
        cid = writer.create_customer("Asha", "919900000001", 40)
        writer.upsert_day_entry(cid, DayEntry(date="2024-03-05", am_qty=1))
        assert len(reader.get_month_entries(cid, "2024-03")) == 1
