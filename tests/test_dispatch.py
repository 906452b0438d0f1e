from keyoverlay.keys import KeySequence, NamedCommand
from keyoverlay.overlays import Binder, OverlayRegistry, OverlayResolver


def make_resolver() -> tuple[OverlayResolver, Binder]:
    registry = OverlayRegistry()
    return OverlayResolver(registry), Binder(registry)


def tokens(text: str) -> tuple[str, ...]:
    return KeySequence.parse(text).tokens


def test_disabled_registry_misses_everything() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("save"), direct_only=True)

    assert resolver.resolve(tokens("a")).status == "miss"


def test_exact_match_reports_overlay_and_action() -> None:
    resolver, binder = make_resolver()
    table = binder.bind_entry("ctrl+x s", NamedCommand("save"))

    result = resolver.resolve(tokens("ctrl+x s"))

    assert result.status == "match"
    assert result.match is not None
    assert result.match.overlay is table
    assert result.match.action == NamedCommand("save")
    assert result.consumed == 2


def test_prefix_is_pending_with_expected_tokens() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("ctrl+x s", NamedCommand("save"))
    binder.bind_entry("ctrl+x f", NamedCommand("find"))

    result = resolver.resolve(tokens("ctrl+x"))

    assert result.status == "pending"
    assert result.next_expected == ("f", "s")


def test_front_overlay_wins() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("low"))
    binder.session.stop()
    binder.bind_entry("a", NamedCommand("high"))

    result = resolver.resolve(tokens("a"))

    assert result.match is not None
    assert result.match.action == NamedCommand("high")


def test_inactive_overlays_are_skipped() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("low"))
    binder.session.stop()
    front = binder.bind_entry("a", NamedCommand("high"))
    binder.registry.set_active(front.identity, False)

    result = resolver.resolve(tokens("a"))

    assert result.match is not None
    assert result.match.action == NamedCommand("low")


def test_new_bindings_invalidate_cached_tries() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("save"))
    assert resolver.resolve(tokens("b")).status == "miss"

    binder.bind_entry("b", NamedCommand("find"))

    assert resolver.resolve(tokens("b")).status == "match"


def test_unset_key_drops_resolution() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("save"))
    assert resolver.resolve(tokens("a")).status == "match"

    binder.unset_key("a")

    assert resolver.resolve(tokens("a")).status == "miss"


def test_empty_input_misses() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("save"))

    assert resolver.resolve(()).status == "miss"


def test_prefix_in_front_overlay_shadows_older_full_binding() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("low"))
    binder.session.stop()
    binder.bind_entry("a b", NamedCommand("high"))

    pending = resolver.resolve(tokens("a"))
    complete = resolver.resolve(tokens("a b"))

    assert pending.status == "pending"
    assert pending.next_expected == ("b",)
    assert complete.match is not None
    assert complete.match.action == NamedCommand("high")


def test_older_full_binding_reachable_once_prefix_overlay_is_off() -> None:
    resolver, binder = make_resolver()
    binder.bind_entry("a", NamedCommand("low"))
    binder.session.stop()
    front = binder.bind_entry("a b", NamedCommand("high"))
    binder.registry.set_active(front.identity, False)

    result = resolver.resolve(tokens("a"))

    assert result.match is not None
    assert result.match.action == NamedCommand("low")
