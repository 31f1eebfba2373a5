"""User corrections applied on top of mapper proposals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loresync.config.errors import ConfigurationError
from loresync.domain.mapping.paths import resolve_path
from loresync.domain.model import MappingProposal, TargetType

if TYPE_CHECKING:
    from pathlib import Path

    from loresync.domain.model import GenericEntity


class Correction(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    target_type: TargetType | None = Field(default=None, alias="targetType")
    field_paths: dict[str, str] = Field(default_factory=dict, alias="fieldPaths")
    include: bool | None = None


class MappingCorrections(BaseModel):
    """Overrides keyed by ``kind|subtype|folder`` and by source record id.

    Source-specific corrections take precedence over key-based ones.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    by_key: dict[str, Correction] = Field(default_factory=dict, alias="byKey")
    by_source: dict[str, Correction] = Field(default_factory=dict, alias="bySource")

    def includes(self, entity: GenericEntity) -> bool:
        for correction in (self.by_source.get(entity.source_id), self.by_key.get(key_for(entity))):
            if correction is not None and correction.include is not None:
                return correction.include
        return True

    def apply(self, entity: GenericEntity, proposal: MappingProposal) -> MappingProposal:
        key_fix = self.by_key.get(key_for(entity))
        source_fix = self.by_source.get(entity.source_id)
        if key_fix is None and source_fix is None:
            return proposal

        target_type = proposal.target_type
        field_paths: dict[str, str] = {}
        for fix in (key_fix, source_fix):
            if fix is None:
                continue
            if fix.target_type is not None:
                target_type = fix.target_type
            field_paths.update(fix.field_paths)

        payload = dict(proposal.payload)
        for field_name, path in field_paths.items():
            if not path:
                continue
            value = resolve_path(entity, path)
            if value is not None:
                payload[field_name] = value

        return MappingProposal(
            target_type=target_type,
            payload=payload,
            labels=proposal.labels,
            score=proposal.score,
            rule_name=proposal.rule_name,
        )


def key_for(entity: GenericEntity) -> str:
    return f"{entity.kind}|{entity.subtype or ''}|{(entity.folder_name or '').lower()}"


def load_corrections(path: Path | None) -> MappingCorrections:
    """Read corrections from a JSON file; a missing path yields no corrections."""

    if path is None or not path.exists():
        return MappingCorrections()
    try:
        return MappingCorrections.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid mapping overrides in {path}: {exc}") from exc
