from __future__ import annotations

from factories import make_driver, make_trip, make_truck

from fleetwatch.state.events import Collection, MutationEvent, MutationKind
from fleetwatch.state.store import EntityStore
from fleetwatch.storage import Loaded, MemoryStorage, Unavailable


class _ReadOnlyStorage(MemoryStorage):
    def write(self, key: str, value: object) -> Unavailable:  # type: ignore[override]
        return Unavailable("disk full")


def test_add_prepends_and_is_immediately_visible() -> None:
    store = EntityStore()
    store.add_truck(make_truck("TR1"))
    store.add_truck(make_truck("TR2"))

    assert [truck.id for truck in store.trucks] == ["TR2", "TR1"]
    assert store.get_truck("TR1") is not None


def test_update_replaces_by_id_and_ignores_unknown_ids() -> None:
    store = EntityStore(trucks=[make_truck("TR1"), make_truck("TR2")])

    assert store.update_truck(make_truck("TR1", fuelLevel=5)) is True
    assert store.update_truck(make_truck("TR9")) is False

    assert [truck.id for truck in store.trucks] == ["TR1", "TR2"]
    truck = store.get_truck("TR1")
    assert truck is not None and truck.fuel_level == 5


def test_delete_removes_entity() -> None:
    store = EntityStore(drivers=[make_driver("D1")], trips=[make_trip("TP1")])

    assert store.delete_driver("D1") is True
    assert store.delete_driver("D1") is False
    assert store.delete_trip("TP1") is True
    assert store.drivers == ()
    assert store.trips == ()


def test_every_mutation_is_persisted(durable: MemoryStorage) -> None:
    store = EntityStore(storage=durable)
    store.add_trip(make_trip("TP1", status="intransit"))
    store.update_trip(make_trip("TP1", status="completed"))

    result = durable.read("trips")
    assert isinstance(result, Loaded)
    assert result.value == [make_trip("TP1", status="completed").to_storage()]
    assert result.value[0]["truckId"] == "TR1"


def test_failed_persistence_does_not_raise() -> None:
    store = EntityStore(storage=_ReadOnlyStorage())
    store.add_truck(make_truck("TR1"))

    assert len(store.trucks) == 1


def test_subscribers_receive_events_and_can_unsubscribe() -> None:
    store = EntityStore(trucks=[make_truck("TR1")])
    events: list[MutationEvent] = []
    unsubscribe = store.subscribe(events.append)

    store.update_truck(make_truck("TR1", fuelLevel=10))
    unsubscribe()
    store.delete_truck("TR1")

    assert len(events) == 1
    event = events[0]
    assert event.collection == Collection.TRUCKS
    assert event.kind == MutationKind.UPDATED
    assert event.previous is not None and event.current is not None
    assert event.truck_changed_alert_fields is True


def test_failing_subscriber_does_not_block_others() -> None:
    store = EntityStore()
    seen: list[MutationKind] = []

    def _boom(event: MutationEvent) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(_boom)
    store.subscribe(lambda event: seen.append(event.kind))
    store.add_driver(make_driver("D1"))

    assert seen == [MutationKind.ADDED]
    assert len(store.drivers) == 1


def test_update_without_fuel_or_status_change_is_not_alert_relevant() -> None:
    store = EntityStore(trucks=[make_truck("TR1")])
    events: list[MutationEvent] = []
    store.subscribe(events.append)

    store.update_truck(make_truck("TR1", name="Renamed"))

    assert events[0].truck_changed_alert_fields is False


def test_load_falls_back_to_seed_on_unparsable_collections(durable: MemoryStorage) -> None:
    durable.write("trucks", "{definitely not a list")
    durable.write("drivers", {"id": "D1"})
    seed = {Collection.TRUCKS: [make_truck("SEED").to_storage()]}

    store = EntityStore.load(durable, seed=seed)

    assert [truck.id for truck in store.trucks] == ["SEED"]
    assert store.drivers == ()
    assert store.trips == ()


def test_load_skips_malformed_rows(durable: MemoryStorage) -> None:
    durable.write("trucks", [make_truck("TR1").to_storage(), {"name": "missing id"}, "garbage"])

    store = EntityStore.load(durable)

    assert [truck.id for truck in store.trucks] == ["TR1"]


def test_replace_all_swaps_given_collections_only() -> None:
    store = EntityStore(trucks=[make_truck("OLD")], drivers=[make_driver("D1")])
    events: list[MutationEvent] = []
    store.subscribe(events.append)

    store.replace_all(trucks=[make_truck("NEW")])

    assert [truck.id for truck in store.trucks] == ["NEW"]
    assert [driver.id for driver in store.drivers] == ["D1"]
    assert [event.kind for event in events] == [MutationKind.REPLACED]
