import pytest

from listing import ListConfig, ListService, ListSorting, SnapshotFeed, SortOrder
from tests.factories import make_players, number_range


def test_create_without_page_size_shows_everything(service, received):
    data = number_range(1, 10)
    service.create(data=data)

    r = received[-1]
    assert r.sorting == ListSorting(key=None, order=SortOrder.ASC)
    assert list(r.page) == data
    assert r.pagination.list_size == 10
    assert r.pagination.page.current == 1
    assert r.pagination.page.total == 1
    assert r.pagination.page.size == 10
    assert r.pagination.pages == (1,)
    assert r.pagination.disabled.prev is True
    assert r.pagination.disabled.next is True


def test_page_navigation(service, received):
    service.create(data=number_range(1, 10), page_size=2)
    first = received[-1]
    assert list(first.page) == [1, 2]
    assert first.pagination.page.total == 5
    assert first.pagination.pages == (1, 2, 3, 4, 5)
    assert first.pagination.disabled.prev is True
    assert first.pagination.disabled.next is False

    service.next_page()
    r = received[-1]
    assert list(r.page) == [3, 4]
    assert r.pagination.page.current == 2
    assert r.pagination.disabled.prev is False
    assert r.pagination.disabled.next is False

    service.go_to_page(5)
    r = received[-1]
    assert list(r.page) == [9, 10]
    assert r.pagination.page.current == 5
    assert r.pagination.disabled.next is True
    assert r.pagination.disabled.prev is False

    service.prev_page()
    assert list(received[-1].page) == [7, 8]


@pytest.mark.parametrize("page", [-5, 0, 1, 3, 5, 6, 100])
def test_go_to_page_is_clamped(service, page):
    service.create(data=number_range(1, 10), page_size=2)
    service.go_to_page(page)
    current = service.latest.pagination.page.current
    assert 1 <= current <= service.latest.pagination.page.total


def test_relative_moves_stay_in_bounds(service, received):
    service.create(data=number_range(1, 4), page_size=2)
    for _ in range(5):
        service.next_page()
    assert received[-1].pagination.page.current == 2
    # the request sits at index 5; one step back is still past the last page
    service.prev_page()
    assert received[-1].pagination.page.current == 2
    for _ in range(3):
        service.prev_page()
    assert received[-1].pagination.page.current == 2
    service.prev_page()
    assert received[-1].pagination.page.current == 1
    for _ in range(3):
        service.prev_page()
    assert received[-1].pagination.page.current == 1
    assert list(received[-1].page) == [1, 2]


def test_filter_uses_configured_function(service, received):
    service.create(data=number_range(1, 10), page_size=4, filter_function=lambda i: i > 5)
    service.filter()

    r = received[-1]
    assert list(r.page) == [6, 7, 8, 9]
    assert r.pagination.list_size == 5
    assert r.pagination.page.total == 2
    assert r.pagination.page.size == 4
    assert r.pagination.disabled.prev is True
    assert r.pagination.disabled.next is False

    service.next_page()
    r = received[-1]
    assert list(r.page) == [10]
    assert r.pagination.page.current == 2
    assert r.pagination.page.size == 1
    assert r.pagination.disabled.next is True


def test_filter_override_and_reset_to_first_page(service, received):
    service.create(data=number_range(1, 10), page_size=2)
    service.go_to_page(3)
    service.filter(lambda i: i % 2 == 0)
    r = received[-1]
    assert r.pagination.page.current == 1
    assert list(r.page) == [2, 4]
    assert r.pagination.list_size == 5
    assert r.pagination.page.total == 3


def test_filter_without_any_function_clears_filtering(service, received):
    service.create(data=number_range(1, 6))
    service.filter(lambda i: i < 3)
    assert list(received[-1].page) == [1, 2]
    service.filter()
    assert list(received[-1].page) == number_range(1, 6)


def test_sort_toggles_order(service, received):
    service.create(data=[{"id": 3}, {"id": 1}, {"id": 0}, {"id": 2}])
    service.sort("id")
    r = received[-1]
    assert [row["id"] for row in r.page] == [0, 1, 2, 3]
    assert r.sorting == ListSorting("id", SortOrder.ASC)

    service.sort("id")
    r = received[-1]
    assert [row["id"] for row in r.page] == [3, 2, 1, 0]
    assert r.sorting.key == "id"
    assert r.sorting.order == "desc"


def test_sort_on_new_key_starts_ascending(service, received):
    rows = [{"a": 2, "b": "y"}, {"a": 1, "b": "z"}, {"a": 3, "b": "x"}]
    service.create(data=rows, sort={"key": "a", "order": "desc"})
    assert [row["a"] for row in received[-1].page] == [3, 2, 1]
    service.sort("b")
    r = received[-1]
    assert r.sorting == ListSorting("b", SortOrder.ASC)
    assert [row["b"] for row in r.page] == ["x", "y", "z"]


def test_sort_resets_page(service, received):
    service.create(data=number_range(1, 10), page_size=3)
    service.go_to_page(3)
    service.sort("real")
    assert received[-1].pagination.page.current == 1


def test_sort_with_custom_value_function(service, received):
    players = make_players()
    service.create(data=players, sort_function=lambda item, key: getattr(item, key) or 0)
    service.sort("rating")
    assert [p.name for p in received[-1].page] == ["Ada", "Ben", "Mara", "Cleo"]


def test_sort_attribute_objects(service, received):
    players = make_players()
    service.create(data=players)
    service.sort("name")
    assert [p.name for p in received[-1].page] == ["Ada", "Ben", "Cleo", "Mara"]


def test_sort_function_errors_propagate(service):
    def broken(item, key):
        raise RuntimeError("bad sort value")

    service.create(data=number_range(1, 3), sort_function=broken)
    with pytest.raises(RuntimeError, match="bad sort value"):
        service.sort("x")


def test_filter_function_errors_propagate(service):
    service.create(data=number_range(1, 3))

    def broken(_):
        raise ValueError("bad predicate")

    with pytest.raises(ValueError):
        service.filter(broken)


def test_update_replaces_data_and_returns_to_page_one(service, received):
    service.create(data=number_range(1, 10), page_size=2)
    service.go_to_page(4)
    service.update(number_range(11, 15))
    r = received[-1]
    assert list(r.page) == [11, 12]
    assert r.pagination.list_size == 5
    assert r.pagination.page.current == 1


def test_update_copies_input(service, received):
    data = number_range(1, 3)
    service.create(data=data)
    data.append(4)
    assert list(received[-1].page) == [1, 2, 3]


def test_update_keeps_page_when_reset_disabled(service, received):
    service.create(data=number_range(1, 10), page_size=2, reset_to_first_page_on_update=False)
    service.go_to_page(3)
    service.update(number_range(1, 20))
    assert received[-1].pagination.page.current == 3
    assert list(received[-1].page) == [5, 6]


def test_set_page_size_keeps_index_and_reclamps(service, received):
    service.create(data=number_range(1, 10), page_size=2)
    service.go_to_page(3)
    service.set_page_size(3)
    r = received[-1]
    assert r.pagination.page.current == 3
    assert list(r.page) == [7, 8, 9]

    service.set_page_size(5)
    r = received[-1]
    assert r.pagination.page.current == 2
    assert r.pagination.page.total == 2
    assert list(r.page) == [6, 7, 8, 9, 10]

    service.set_page_size(0)
    r = received[-1]
    assert r.pagination.page.total == 1
    assert list(r.page) == number_range(1, 10)


@pytest.mark.parametrize("size", [-3, 0, 1, 4, 50])
def test_set_page_size_never_raises(service, size):
    service.create(data=number_range(1, 10), page_size=3)
    service.go_to_page(4)
    service.set_page_size(size)
    p = service.latest.pagination
    assert 1 <= p.page.current <= p.page.total
    assert len(p.pages) == p.page.total


def test_empty_list_with_page_size(service, received):
    service.create(data=[], page_size=5)
    r = received[-1]
    assert r.page == ()
    assert r.pagination.page.total == 1
    assert r.pagination.page.current == 1
    assert r.pagination.disabled.prev is True
    assert r.pagination.disabled.next is True


def test_nothing_emitted_before_data(service, received):
    service.filter(lambda i: True)
    service.sort("x")
    service.go_to_page(2)
    assert received == []
    assert service.latest is None


def test_late_subscriber_receives_latest_without_recompute(service):
    service.create(data=number_range(1, 10), page_size=3)
    service.next_page()
    computed = service._paginated.computations
    late = []
    service.subscribe(late.append)
    assert len(late) == 1
    assert late[0] is service.latest
    assert list(late[0].page) == [4, 5, 6]
    assert service._paginated.computations == computed


def test_multicast_to_all_subscribers(service):
    a, b = [], []
    service.subscribe(a.append)
    service.subscribe(b.append)
    service.create(data=number_range(1, 4), page_size=2)
    service.next_page()
    assert a == b
    assert a[-1] is b[-1]


def test_each_write_emits_in_order(service, received):
    service.create(data=number_range(1, 6), page_size=2)
    count = len(received)
    service.go_to_page(2)
    service.go_to_page(3)
    service.set_page_size(3)
    assert len(received) == count + 3
    assert [r.pagination.page.current for r in received[-3:]] == [2, 3, 2]


def test_create_accepts_config_and_list_alias(service, received):
    config = ListConfig(page_size=2)
    service.create(config, list=number_range(1, 5))
    assert list(received[-1].page) == [1, 2]
    assert service.config.page_size == 2
    assert list(service.config.data) == number_range(1, 5)


def test_create_rejects_unknown_field(service):
    with pytest.raises(TypeError):
        service.create(data=[1], pagesize=3)


def test_second_create_keeps_previous_settings(service, received):
    service.create(data=number_range(1, 10), page_size=4)
    service.create(data=number_range(1, 3))
    assert service.config.page_size == 4
    assert received[-1].pagination.page.size == 3


def test_dispose_stops_emissions(service, received):
    service.create(data=number_range(1, 10), page_size=2)
    count = len(received)
    service.dispose()
    service.next_page()
    service.update(number_range(1, 3))
    service.set_page_size(1)
    assert len(received) == count
    assert service.disposed
    assert service.results.subscriber_count() == 0


def test_context_manager_disposes():
    with ListService() as svc:
        svc.create(data=[1, 2])
    assert svc.disposed
    late = []
    svc.subscribe(late.append)
    assert late == []


def test_producer_drives_updates(service, received):
    feed = SnapshotFeed()
    service.create(data=feed, page_size=3)
    assert received == []

    feed.push(number_range(1, 10))
    r = received[-1]
    assert r.pagination.list_size == 10
    assert list(r.page) == [1, 2, 3]

    service.next_page()
    feed.push(number_range(1, 5))
    r = received[-1]
    assert r.pagination.list_size == 5
    assert r.pagination.page.current == 1


def test_dispose_releases_producer(service, received):
    feed = SnapshotFeed()
    service.create(data=feed)
    assert feed.subscriber_count() == 1
    service.dispose()
    assert feed.subscriber_count() == 0
    feed.push([1, 2, 3])
    assert received == []


def test_recreate_switches_producer(service, received):
    first, second = SnapshotFeed(), SnapshotFeed()
    service.create(data=first)
    service.create(data=second)
    assert first.subscriber_count() == 0
    second.push(["b"])
    assert list(received[-1].page) == ["b"]


def test_producer_failure_ends_subscription(service, received, caplog):
    feed = SnapshotFeed()
    service.create(data=feed)
    feed.push([1, 2])
    with caplog.at_level("ERROR", logger="listing.services.list_service"):
        feed.fail(IOError("feed down"))
    assert "snapshot producer failed" in caplog.text
    assert list(received[-1].page) == [1, 2]
    # the list keeps working with manual updates
    service.update([3])
    assert list(received[-1].page) == [3]


def test_result_to_dict_shape(service):
    service.create(data=number_range(1, 5), page_size=2)
    payload = service.latest.to_dict()
    assert payload == {
        "page": [1, 2],
        "sorting": {"key": None, "order": "asc"},
        "pagination": {
            "listSize": 5,
            "page": {"current": 1, "size": 2, "total": 3},
            "pages": [1, 2, 3],
            "disabled": {"prev": True, "next": False},
        },
    }


def test_page_change_from_subscriber_reaches_later_subscribers_last(service):
    def jump(result):
        if result.pagination.page.current == 2:
            service.go_to_page(3)

    pages = []
    service.subscribe(jump)
    service.subscribe(lambda r: pages.append(r.pagination.page.current))
    service.create(data=number_range(1, 10), page_size=2)
    service.next_page()
    assert pages[-2:] == [2, 3]
    assert service.latest.pagination.page.current == 3


def test_generator_data_survives_recreate(service, received):
    service.create(data=(n for n in range(1, 4)))
    service.create(page_size=2)
    r = received[-1]
    assert r.pagination.list_size == 3
    assert list(r.page) == [1, 2]
