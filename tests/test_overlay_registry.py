import pytest

from keyoverlay.errors import InvalidDestination
from keyoverlay.keys import KeySequence, NamedCommand
from keyoverlay.overlays import OverlayRegistry


def make_registry(max_overlays: int = 8) -> OverlayRegistry:
    return OverlayRegistry(max_overlays)


def keys(text: str) -> KeySequence:
    return KeySequence.parse(text)


def test_allocate_on_empty_registry_returns_first_slot() -> None:
    registry = make_registry()

    assert registry.allocate() == 1


def test_register_inserts_inactive_overlay_at_front() -> None:
    registry = make_registry()

    registry.register(1)
    second = registry.register(2, tag="nav")

    assert registry.identities() == (2, 1)
    assert registry.front is second
    assert second.active is False
    assert second.label == "nav"


def test_allocate_picks_lowest_unused_identity() -> None:
    registry = make_registry(4)
    registry.register(1)
    registry.register(3)

    assert registry.allocate() == 2


def test_full_registry_reuses_least_recent_inactive_overlay() -> None:
    registry = make_registry(2)
    registry.register(2)
    registry.register(1)
    registry.set_active(1, True, state_only=True)
    registry.get(2).bind(keys("a"), NamedCommand("old"))

    assert registry.identities() == (1, 2)
    assert registry.allocate() == 2
    assert len(registry.get(2)) == 0


def test_full_registry_never_recycles_active_overlay_when_inactive_exists() -> None:
    registry = make_registry(3)
    for identity in (1, 2, 3):
        registry.register(identity)
    registry.set_active(1, True, state_only=True)
    registry.get(1).bind(keys("a"), NamedCommand("keep"))

    assert registry.identities() == (3, 2, 1)
    assert registry.allocate() == 2
    assert registry.get(1).lookup(keys("a")) == NamedCommand("keep")


def test_full_registry_of_active_overlays_falls_back_to_first_identity() -> None:
    registry = make_registry(2)
    for identity in (1, 2):
        registry.register(identity)
        registry.set_active(identity, True, state_only=True)
    registry.get(1).bind(keys("a"), NamedCommand("lost"))

    assert registry.allocate() == 1
    assert len(registry.get(1)) == 0
    assert registry.get(1).active is True


def test_prioritize_moves_to_front_and_stops_editing() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    registry.session.start()

    registry.prioritize(1)

    assert registry.identities() == (1, 2)
    assert registry.session.editing is False


def test_prioritize_is_idempotent() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    registry.prioritize(1)
    registry.session.start()
    before = registry.identities()

    registry.prioritize(1)

    assert registry.identities() == before
    assert registry.session.editing is True


def test_enabling_prioritizes_overlay() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)

    registry.set_active(1, True)

    assert registry.front is not None
    assert registry.front.identity == 1
    assert registry.active_identities() == (1,)


def test_state_only_enable_keeps_order() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)

    registry.set_active(1, True, state_only=True)

    assert registry.identities() == (2, 1)


def test_disabling_front_overlay_stops_editing() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    registry.set_active(1, True, state_only=True)
    registry.set_active(2, True, state_only=True)
    registry.enabled = True
    registry.session.start()

    registry.set_active(2, False)

    assert registry.session.editing is False
    assert registry.enabled is True


def test_disabling_last_active_overlay_switches_dispatch_off() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    registry.set_active(1, True, state_only=True)
    registry.enabled = True
    registry.session.start()

    registry.set_active(1, False)

    assert registry.enabled is False
    assert registry.session.editing is True


def test_disable_all_clears_flags_and_session() -> None:
    registry = make_registry()
    for identity in (1, 2, 3):
        registry.register(identity)
        registry.set_active(identity, True, state_only=True)
    registry.enabled = True
    registry.session.start()

    registry.disable_all()

    assert registry.active_identities() == ()
    assert all(not table.active for table in registry)
    assert registry.session.editing is False
    assert registry.enabled is True


def test_unknown_or_duplicate_identities_are_rejected() -> None:
    registry = make_registry(2)
    registry.register(1)

    with pytest.raises(InvalidDestination):
        registry.get(2)
    with pytest.raises(InvalidDestination):
        registry.register(1)
    with pytest.raises(InvalidDestination):
        registry.register(3)
    with pytest.raises(InvalidDestination):
        registry.prioritize(5)


def test_dispatch_view_is_live() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    view = registry.dispatch_view()

    assert [table.identity for _active, table in view] == [2, 1]

    registry.set_active(1, True)

    assert view[0] == (True, registry.get(1))
    assert len(view) == 2


def test_lookup_walks_active_overlays_by_priority() -> None:
    registry = make_registry()
    registry.register(1)
    registry.register(2)
    registry.get(1).bind(keys("a"), NamedCommand("low"))
    registry.get(2).bind(keys("a"), NamedCommand("high"))
    registry.set_active(1, True, state_only=True)
    registry.set_active(2, True, state_only=True)

    assert registry.lookup(keys("a")) is None

    registry.enabled = True
    hit = registry.lookup(keys("a"))
    assert hit is not None and hit[1] == NamedCommand("high")

    registry.set_active(2, False, state_only=True)
    hit = registry.lookup(keys("a"))
    assert hit is not None and hit[1] == NamedCommand("low")


def test_revision_moves_on_mutation() -> None:
    registry = make_registry()
    before = registry.revision()

    registry.register(1)
    registry.prioritize(1)

    assert registry.revision() == before + 1


def test_recycled_overlay_is_a_new_object() -> None:
    registry = make_registry(1)
    old = registry.register(1, tag="nav")
    old.bind(keys("a"), NamedCommand("old"))

    assert registry.allocate() == 1

    fresh = registry.get(1)
    assert fresh is not old
    assert fresh.tag == "nav"
    assert len(fresh) == 0
    assert not registry.is_live(old)
