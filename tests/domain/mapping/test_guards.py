from __future__ import annotations

from loresync.domain.mapping import AllOf, AnyOf, FieldEquals, FieldIn, FieldMatches, HasAny, KindIs
from loresync.domain.mapping.paths import is_empty, resolve_path
from loresync.domain.model import EntityKind, GenericEntity


def _entity() -> GenericEntity:
    return GenericEntity(
        kind=EntityKind.JOURNAL,
        name="Harbor Guild",
        source_id="j1",
        folder_name="World/Factions",
        tags=frozenset({"guild", "coast"}),
        images=("a.png", "b.png"),
        metadata={"stats": {"members": 40}, "pages": [{"name": "Intro"}]},
    )


def test_resolve_path_walks_attributes_mappings_and_sequences() -> None:
    entity = _entity()

    assert resolve_path(entity, "$.name") == "Harbor Guild"
    assert resolve_path(entity, "$.images[1]") == "b.png"
    assert resolve_path(entity, "$.metadata.stats.members") == 40
    assert resolve_path(entity, "metadata.pages[0].name") == "Intro"
    assert resolve_path(entity, "$.tags[0]") == "coast"
    assert resolve_path(entity, "$.images[5]") is None
    assert resolve_path(entity, "$.metadata.unknown.deeper") is None


def test_is_empty() -> None:
    assert is_empty(None)
    assert is_empty("  ")
    assert is_empty(())
    assert is_empty({})
    assert not is_empty(0)
    assert not is_empty("x")


def test_guards_compose() -> None:
    entity = _entity()

    assert KindIs(EntityKind.JOURNAL).matches(entity)
    assert FieldEquals("name", "Harbor Guild").matches(entity)
    assert FieldIn("metadata.stats.members", frozenset({40, 41})).matches(entity)
    assert FieldMatches("folder_name", r"factions").matches(entity)
    assert HasAny("tags", frozenset({"guild"})).matches(entity)
    assert AllOf(KindIs(EntityKind.JOURNAL), HasAny("tags", frozenset({"coast"}))).matches(entity)
    assert AnyOf(KindIs(EntityKind.ITEM), FieldEquals("name", "Harbor Guild")).matches(entity)
    assert not AllOf(KindIs(EntityKind.JOURNAL), KindIs(EntityKind.ITEM)).matches(entity)


def test_invalid_regex_never_matches() -> None:
    assert not FieldMatches("name", "([unclosed").matches(_entity())
