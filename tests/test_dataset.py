import json

from storage.dataset import DatasetStore, replace_partition, upsert, upsert_many

KEYS = ("snapshotDate", "version", "chain")


def rec(date, chain="core", version="v1", stakers=1):
    return {"snapshotDate": date, "chain": chain, "version": version, "stakerNumber": stakers}


def test_load_missing_file_is_empty(tmp_path):
    assert DatasetStore(tmp_path / "nope.json").load() == []


def backups(directory):
    return sorted(p for p in directory.iterdir() if ".corrupt." in p.name)


def test_load_corrupt_file_is_empty_and_backed_up(tmp_path):
    path = tmp_path / "poolStats.json"
    path.write_text("[{ not json", encoding="utf-8")

    assert DatasetStore(path).load() == []
    [backup] = backups(tmp_path)
    assert backup.name.startswith("poolStats.json.corrupt.")
    assert backup.read_text(encoding="utf-8") == "[{ not json"


def test_repeated_corruption_keeps_every_backup(tmp_path):
    path = tmp_path / "poolStats.json"
    store = DatasetStore(path)

    path.write_text("[{ first", encoding="utf-8")
    assert store.load() == []
    store.save([rec("20250101")])
    path.write_text("[{ second", encoding="utf-8")
    assert store.load() == []

    contents = sorted(p.read_text(encoding="utf-8") for p in backups(tmp_path))
    assert contents == ["[{ first", "[{ second"]


def test_load_without_quarantine_leaves_directory_untouched(tmp_path):
    path = tmp_path / "poolStats.json"
    path.write_text("[{ not json", encoding="utf-8")

    assert DatasetStore(path).load(quarantine=False) == []
    assert [p.name for p in tmp_path.iterdir()] == ["poolStats.json"]


def test_load_non_array_is_empty(tmp_path):
    path = tmp_path / "poolStats.json"
    path.write_text('{"a": 1}', encoding="utf-8")
    assert DatasetStore(path).load() == []


def test_save_then_load_round_trips(tmp_path):
    store = DatasetStore(tmp_path / "nested" / "dir" / "poolStats.json")
    records = [rec("20250101"), rec("20250111", "espace", "v2", 9)]

    store.save(records)

    assert store.load() == records
    text = store.path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    assert [p.name for p in store.path.parent.iterdir()] == ["poolStats.json"]


def test_upsert_is_idempotent_and_keeps_latest_value():
    records = [rec("20250101", stakers=1)]
    upsert(records, rec("20250111", stakers=2), KEYS)
    upsert(records, rec("20250111", stakers=3), KEYS)
    upsert(records, rec("20250111", stakers=3), KEYS)

    matching = [r for r in records if r["snapshotDate"] == "20250111"]
    assert matching == [rec("20250111", stakers=3)]
    assert records[0] == rec("20250101", stakers=1)


def test_upsert_replaces_in_place_and_appends_new_keys():
    records = [rec("20250101"), rec("20250101", "espace"), rec("20250111")]
    upsert_many(records, [rec("20250101", "espace", stakers=5), rec("20250121")], KEYS)

    assert [(r["snapshotDate"], r["chain"]) for r in records] == [
        ("20250101", "core"),
        ("20250101", "espace"),
        ("20250111", "core"),
        ("20250121", "core"),
    ]
    assert records[1]["stakerNumber"] == 5


def test_replace_partition_drops_stale_entries_of_same_date_only():
    keys = ("snapshotDate", "espaceAddr")
    records = [
        {"snapshotDate": "20250209", "espaceAddr": "0xA", "vote": 1},
        {"snapshotDate": "20250224", "espaceAddr": "0xA", "vote": 1},
        {"snapshotDate": "20250224", "espaceAddr": "0xGONE", "vote": 1},
    ]
    new = [
        {"snapshotDate": "20250224", "espaceAddr": "0xA", "vote": 2},
        {"snapshotDate": "20250224", "espaceAddr": "0xB", "vote": 3},
    ]

    replace_partition(records, new, "snapshotDate", keys)

    assert records == [
        {"snapshotDate": "20250209", "espaceAddr": "0xA", "vote": 1},
        {"snapshotDate": "20250224", "espaceAddr": "0xA", "vote": 2},
        {"snapshotDate": "20250224", "espaceAddr": "0xB", "vote": 3},
    ]


def test_save_overwrites_previous_content(tmp_path):
    store = DatasetStore(tmp_path / "d.json")
    store.save([rec("20250101")] * 3)
    store.save([rec("20250111")])
    assert json.loads(store.path.read_text(encoding="utf-8")) == [rec("20250111")]
