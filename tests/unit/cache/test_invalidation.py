"""Tests for invalidation directives and the best-effort invalidator."""

import asyncio

import pytest

from infrasight.cache import CacheInvalidator, InvalidationEvent, directive_for_event
from infrasight.cache.invalidation import GLOBAL_PATTERNS


def test_device_update_clears_device_and_aggregates(memory_cache) -> None:
    invalidator = CacheInvalidator(memory_cache)

    assert asyncio.run(invalidator.invalidate_device("acme", "d1")) is True

    assert memory_cache.deleted_keys == ["org:acme:device:d1"]
    assert sorted(memory_cache.deleted_patterns) == [
        "org:acme:devices:list:*",
        "org:acme:health:*",
        "org:acme:metadata:*",
    ]


def test_device_create_never_touches_per_device_entries(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate_on_device_create("acme"))

    assert memory_cache.deleted_keys == []
    assert "org:acme:device:*" not in memory_cache.deleted_patterns
    assert sorted(memory_cache.deleted_patterns) == [
        "org:acme:devices:list:*",
        "org:acme:health:*",
        "org:acme:metadata:*",
    ]


def test_bulk_update_clears_every_device_entry(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate_all_devices("acme"))

    assert "org:acme:device:*" in memory_cache.deleted_patterns
    assert len(memory_cache.deleted_patterns) == 4


def test_readings_invalidation_also_clears_health(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate_readings("acme"))
    assert sorted(memory_cache.deleted_patterns) == ["org:acme:health:*", "org:acme:readings:latest:*"]


def test_device_readings_with_no_devices_makes_no_calls(memory_cache) -> None:
    result = asyncio.run(CacheInvalidator(memory_cache).invalidate_device_readings("acme", []))

    assert result is True
    assert memory_cache.calls == 0


def test_device_readings_clears_latest_readings(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate_device_readings("acme", ["d1", "d2"]))
    assert memory_cache.deleted_patterns == ["org:acme:readings:latest:*"]


def test_invalidation_removes_only_the_targeted_org(memory_cache) -> None:
    memory_cache.data = {
        "org:acme:health:default": b"{}",
        "org:globex:health:default": b"{}",
    }

    asyncio.run(CacheInvalidator(memory_cache).invalidate_health_cache("acme"))

    assert list(memory_cache.data) == ["org:globex:health:default"]


def test_full_clear_uses_global_patterns(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).clear_all_caches())
    assert tuple(memory_cache.deleted_patterns) == GLOBAL_PATTERNS


@pytest.mark.parametrize(
    ("method", "args"),
    [
        ("invalidate_device", ("acme", "d1")),
        ("invalidate_all_devices", ("acme",)),
        ("invalidate_on_device_create", ("acme",)),
        ("invalidate_readings", ("acme",)),
        ("invalidate_device_readings", ("acme", ["d1"])),
        ("invalidate_devices", ("acme", ["d1", "d2"])),
        ("invalidate_health_cache", ("acme",)),
        ("invalidate_metadata", ("acme",)),
        ("clear_all_caches", ()),
        ("invalidate", ("device_updated", "acme", "d1")),
        ("invalidate", ("full_clear",)),
    ],
)
def test_cache_failure_is_absorbed(failing_cache, capsys, method, args) -> None:
    result = asyncio.run(getattr(CacheInvalidator(failing_cache), method)(*args))

    assert result is False
    assert failing_cache.calls > 0
    assert "cache invalidation failed" in capsys.readouterr().out


def test_ingested_devices_clear_their_cached_entries_and_lists(memory_cache) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate_devices("acme", ["d1", "d2"]))

    assert memory_cache.deleted_keys == ["org:acme:device:d1", "org:acme:device:d2"]
    assert memory_cache.deleted_patterns == ["org:acme:devices:list:*"]


def test_ingested_devices_with_no_ids_makes_no_calls(memory_cache) -> None:
    assert asyncio.run(CacheInvalidator(memory_cache).invalidate_devices("acme", [])) is True
    assert memory_cache.calls == 0


def test_full_clear_log_has_no_org_context(memory_cache, capsys) -> None:
    asyncio.run(CacheInvalidator(memory_cache).invalidate("full_clear"))

    out = capsys.readouterr().out
    assert "full_clear cache invalidated" in out
    assert "org=" not in out


def test_event_dispatch_matches_named_methods() -> None:
    assert directive_for_event("device_updated", "acme", "d1") == directive_for_event(
        InvalidationEvent.DEVICE_DELETED, "acme", "d1"
    )
    assert directive_for_event("metadata_changed", "acme").patterns == ("org:acme:metadata:*",)
    assert directive_for_event("full_clear").patterns == GLOBAL_PATTERNS


def test_event_without_org_is_rejected() -> None:
    with pytest.raises(ValueError, match="organization"):
        directive_for_event("health_changed")


def test_device_event_without_device_is_rejected() -> None:
    with pytest.raises(ValueError, match="device id"):
        directive_for_event("device_updated", "acme")


def test_unknown_event_is_rejected() -> None:
    with pytest.raises(ValueError):
        directive_for_event("device_exploded", "acme")
