from datetime import datetime, timezone

from sheetsync.schemas import ImportMode, PersistedRow, Record
from sheetsync.services.reconciler import reconcile

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
EARLIER = datetime(2024, 2, 1, tzinfo=timezone.utc)


def row(position, record_id, name="old", type_="Planet"):
    return PersistedRow(row=position, timestamp=EARLIER, id=record_id, name=name, type=type_)


def rec(record_id, name="new", type_="Planet"):
    return Record(id=record_id, name=name, type=type_)


def test_upsert_into_empty_store_inserts_everything():
    to_append, to_update, result = reconcile([], [rec("1"), rec("2")], ImportMode.UPSERT, NOW)

    assert [r.id for r in to_append] == ["1", "2"]
    assert to_update == []
    assert result.model_dump() == {"inserted": 2, "updated": 0, "skipped": 0, "total_fetched": 2}


def test_upsert_updates_existing_rows_in_place():
    existing = [row(1, "1"), row(2, "2")]
    to_append, to_update, result = reconcile(
        existing, [rec("2", name="Renamed"), rec("3")], ImportMode.UPSERT, NOW
    )

    assert [r.id for r in to_append] == ["3"]
    assert len(to_update) == 1
    position, values = to_update[0]
    assert position == 2
    assert values.name == "Renamed"
    assert values.timestamp == NOW
    assert (result.inserted, result.updated) == (1, 1)


def test_upsert_is_idempotent_on_second_run():
    records = [rec("1"), rec("2")]
    existing = [row(1, "1"), row(2, "2")]
    to_append, _, result = reconcile(existing, records, ImportMode.UPSERT, NOW)

    assert to_append == []
    assert result.inserted == 0
    assert result.updated == result.total_fetched - result.skipped == 2


def test_duplicate_existing_ids_resolve_to_last_row():
    existing = [row(1, "7"), row(2, "8"), row(3, "7")]
    _, to_update, _ = reconcile(existing, [rec("7")], ImportMode.UPSERT, NOW)

    assert [pos for pos, _ in to_update] == [3]


def test_repeated_id_in_batch_is_written_once():
    to_append, _, result = reconcile(
        [], [rec("1", name="first"), rec("1", name="second")], ImportMode.UPSERT, NOW
    )

    assert [r.name for r in to_append] == ["second"]
    assert (result.inserted, result.updated, result.total_fetched) == (1, 1, 2)


def test_append_mode_never_updates():
    existing = [row(1, "1")]
    to_append, to_update, result = reconcile(existing, [rec("1"), rec("1")], ImportMode.APPEND, NOW)

    assert len(to_append) == 2
    assert to_update == []
    assert result.updated == 0
    assert result.inserted == 2


def test_empty_ids_are_skipped_but_counted_as_fetched():
    to_append, _, result = reconcile([], [rec(""), rec("1")], ImportMode.UPSERT, NOW)

    assert [r.id for r in to_append] == ["1"]
    assert result.skipped == 1
    assert result.total_fetched == 2


def test_all_rows_share_the_run_timestamp():
    to_append, to_update, _ = reconcile(
        [row(1, "1")], [rec("1"), rec("2"), rec("3")], ImportMode.UPSERT, NOW
    )
    stamps = {r.timestamp for r in to_append} | {v.timestamp for _, v in to_update}
    assert stamps == {NOW}
