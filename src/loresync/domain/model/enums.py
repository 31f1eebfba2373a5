"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Kinds of records held by the local world store."""

    CHARACTER = "Character"
    ITEM = "Item"
    LOCATION = "Location"
    FACTION = "Faction"
    JOURNAL = "Journal"


class TargetType(StrEnum):
    """Shapes a mapped entity can take on the remote campaign service."""

    CHARACTER = "Character"
    ITEM = "Item"
    LOCATION = "Location"
    FACTION = "Faction"
    NOTE = "Note"


class SheetType(StrEnum):
    CHARACTER = "character"
    ITEM = "item"
    LOCATION = "location"
    FACTION = "faction"
    RECAP = "recap"
    ENTRY = "entry"


class RelationshipBucket(StrEnum):
    CHARACTERS = "characters"
    ITEMS = "items"
    FACTIONS = "factions"
    LOCATIONS_ASSOCIATIVE = "locationsAssociative"
    ENTRIES = "entries"


class CharacterType(StrEnum):
    PC = "PC"
    NPC = "NPC"


class Category(StrEnum):
    """Reconciliation and plan categories."""

    CHARACTERS = "characters"
    ITEMS = "items"
    LOCATIONS = "locations"
    FACTIONS = "factions"
    RECAPS = "recaps"
