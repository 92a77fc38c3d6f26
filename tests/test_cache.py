from threading import Thread

from tagsmith.engine import ExpansionCache, FailureRecord, ListValue, Scalar, serialize_props


def test_failure_summary_keeps_first_file_and_totals() -> None:
    record = FailureRecord()
    record.record("ghost", "a.html")
    record.record("ghost", "b.html")
    record.record("ghost", "a.html")
    record.record("phantom", "c.html")

    rows = record.summary()

    assert [(row.component, row.first_file, row.occurrences) for row in rows] == [
        ("ghost", "a.html", 3),
        ("phantom", "c.html", 1),
    ]

    record.reset()
    assert record.summary() == []
    assert not record


def test_put_keeps_first_fragment() -> None:
    cache = ExpansionCache()

    assert cache.put("k", "first") == "first"
    assert cache.put("k", "second") == "first"
    assert cache.get("k") == "first"
    assert cache.get("other") is None
    assert (cache.hits, cache.misses) == (1, 1)


def test_concurrent_writers_do_not_corrupt_entries() -> None:
    cache = ExpansionCache()
    record = FailureRecord()

    def worker(index: int) -> None:
        for n in range(200):
            cache.put(f"key-{n % 10}", f"value-{n % 10}")
            record.record("missing", f"doc-{index}.html")

    threads = [Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 10
    assert cache.get("key-3") == "value-3"
    assert sum(row.occurrences for row in record.summary()) == 1600


def test_serialized_keys_follow_insertion_order_and_kind() -> None:
    ab = serialize_props("card", {"a": Scalar("1"), "b": Scalar("2")})
    ba = serialize_props("card", {"b": Scalar("2"), "a": Scalar("1")})

    assert ab != ba
    assert ab == serialize_props("card", {"a": Scalar("1"), "b": Scalar("2")})
    assert serialize_props("card", {"a": Scalar("x,y")}) != serialize_props("card", {"a": ListValue(("x", "y"))})
    assert serialize_props("card", {}) != serialize_props("panel", {})


def test_missing_components_are_kept_with_first_entry() -> None:
    cache = ExpansionCache()

    cache.put("k", "<div></div>", ("ghost",))
    cache.put("k", "<div></div>", ("other",))

    assert cache.missing("k") == ("ghost",)
    assert cache.missing("unknown") == ()

    cache.clear()
    assert cache.missing("k") == ()
