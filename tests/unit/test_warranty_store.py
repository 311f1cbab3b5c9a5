"""WarrantyStore のユニットテスト

インメモリの FakeWarrantyRepository を使い、所有者スコープと検証を確認する。
"""

import dataclasses
import datetime

import pytest
from ewarrants.domain.errors import NotFoundError, ValidationError
from ewarrants.domain.models import WarrantyDraft
from ewarrants.services.warranty_store import sort_by_purchase_date


def _draft(name="Laptop", purchase=datetime.date(2024, 6, 1), months=12, **kw):
    return WarrantyDraft(
        product_name=name, purchase_date=purchase, warranty_length_months=months, **kw
    )


class TestCreate:
    def test_assigns_id_owner_and_timestamps(self, store, sample_draft):
        w = store.create("user-a", sample_draft)

        assert w.id
        assert w.owner == "user-a"
        assert w.created_at == w.updated_at
        assert w.created_at.tzinfo is not None
        assert store.get("user-a", w.id) == w

    def test_ids_are_unique(self, store, sample_draft):
        a = store.create("user-a", sample_draft)
        b = store.create("user-a", sample_draft)
        assert a.id != b.id

    def test_missing_fields_reported_per_field(self, store):
        draft = WarrantyDraft(product_name="  ", purchase_date=None, warranty_length_months=None)

        with pytest.raises(ValidationError) as exc_info:
            store.create("user-a", draft)

        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"product_name", "purchase_date", "warranty_length_months"}

    def test_negative_length_rejected(self, store):
        with pytest.raises(ValidationError):
            store.create("user-a", _draft(months=-1))

    def test_zero_length_allowed(self, store):
        w = store.create("user-a", _draft(months=0))
        assert w.warranty_length_months == 0

    def test_bool_length_rejected(self, store):
        with pytest.raises(ValidationError):
            store.create("user-a", _draft(months=True))


class TestOwnership:
    def test_other_owner_get_is_not_found(self, store, sample_draft):
        w = store.create("user-a", sample_draft)

        with pytest.raises(NotFoundError):
            store.get("user-b", w.id)

    def test_other_owner_error_matches_missing_id(self, store, sample_draft):
        """他人のレコードと存在しない ID は区別できない"""
        w = store.create("user-a", sample_draft)

        with pytest.raises(NotFoundError) as foreign:
            store.get("user-b", w.id)
        with pytest.raises(NotFoundError) as missing:
            store.get("user-b", "no-such-id")

        assert type(foreign.value) is type(missing.value)

    def test_other_owner_cannot_update_or_delete(self, store, sample_draft):
        w = store.create("user-a", sample_draft)

        with pytest.raises(NotFoundError):
            store.update("user-b", w.id, _draft(name="Stolen"))
        with pytest.raises(NotFoundError):
            store.delete("user-b", w.id)
        assert store.get("user-a", w.id).product_name == "Laptop"

    def test_repository_row_with_foreign_owner_is_hidden(self, store, fake_repo, sample_warranty):
        """リポジトリが誤って他人の行を返しても見せない"""
        fake_repo.save("user-b", sample_warranty)  # owner は user-a

        with pytest.raises(NotFoundError):
            store.get("user-b", sample_warranty.id)
        assert store.list_by_owner("user-b") == []


class TestUpdateDelete:
    def test_update_preserves_identity_and_bumps_updated_at(self, store, sample_draft):
        w = store.create("user-a", sample_draft)

        updated = store.update("user-a", w.id, _draft(name="Laptop Pro", months=24))

        assert updated.id == w.id
        assert updated.owner == "user-a"
        assert updated.created_at == w.created_at
        assert updated.updated_at > w.updated_at
        assert updated.product_name == "Laptop Pro"
        assert updated.warranty_length_months == 24

    def test_update_validates_fields(self, store, sample_draft):
        w = store.create("user-a", sample_draft)
        with pytest.raises(ValidationError):
            store.update("user-a", w.id, _draft(purchase=None))

    def test_delete_then_get_is_not_found(self, store, sample_draft):
        w = store.create("user-a", sample_draft)
        store.delete("user-a", w.id)

        with pytest.raises(NotFoundError):
            store.get("user-a", w.id)

    def test_delete_missing_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.delete("user-a", "missing")


class TestListing:
    def test_sorted_by_purchase_date_desc(self, store):
        store.create("user-a", _draft(name="Old", purchase=datetime.date(2020, 1, 1)))
        store.create("user-a", _draft(name="New", purchase=datetime.date(2024, 1, 1)))
        store.create("user-a", _draft(name="Mid", purchase=datetime.date(2022, 1, 1)))

        names = [w.product_name for w in store.list_by_owner("user-a")]
        assert names == ["New", "Mid", "Old"]

    def test_only_owner_records(self, store, sample_draft):
        store.create("user-a", sample_draft)
        store.create("user-b", sample_draft)

        assert {w.owner for w in store.list_by_owner("user-a")} == {"user-a"}

    def test_updated_after_returns_only_newer(self, store, sample_draft):
        first = store.create("user-a", sample_draft)
        second = store.create("user-a", _draft(name="Phone"))

        changed = store.list_by_owner("user-a", updated_after=first.updated_at)

        assert [w.id for w in changed] == [second.id]

    def test_sort_tie_broken_by_id(self, sample_warranty):
        a = dataclasses.replace(sample_warranty, id="b")
        b = dataclasses.replace(sample_warranty, id="a")
        assert [w.id for w in sort_by_purchase_date([a, b])] == ["a", "b"]


class TestExpiringQueries:
    def test_within_window_inclusive(self, store):
        # 期限: 2024-07-01, 2024-07-10, 2024-07-11
        a = store.create("user-a", _draft(name="A", purchase=datetime.date(2023, 7, 1)))
        b = store.create("user-a", _draft(name="B", purchase=datetime.date(2023, 7, 10)))
        store.create("user-a", _draft(name="C", purchase=datetime.date(2023, 7, 11)))

        hits = store.find_expiring_within(
            "user-a", datetime.date(2024, 7, 1), datetime.date(2024, 7, 10)
        )

        assert {w.id for w in hits} == {a.id, b.id}

    def test_expiring_on_exact_day(self, store):
        hit = store.create("user-a", _draft(purchase=datetime.date(2023, 7, 1)))
        store.create("user-a", _draft(purchase=datetime.date(2023, 7, 2)))

        assert [w.id for w in store.find_expiring_on("user-a", datetime.date(2024, 7, 1))] == [
            hit.id
        ]

    def test_expiring_is_owner_scoped(self, store):
        store.create("user-b", _draft(purchase=datetime.date(2023, 7, 1)))
        assert store.find_expiring_on("user-a", datetime.date(2024, 7, 1)) == []

    def test_delete_all_for_owner(self, store, sample_draft):
        store.create("user-a", sample_draft)
        store.create("user-a", sample_draft)
        store.create("user-b", sample_draft)

        assert store.delete_all_for_owner("user-a") == 2
        assert store.list_by_owner("user-a") == []
        assert len(store.list_by_owner("user-b")) == 1
