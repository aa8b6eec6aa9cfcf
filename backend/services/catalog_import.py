"""
Catalog import: upsert poses from a JSON list and keep their version history.

A pose is matched by name. New poses get version 1; an existing pose gets a
new version only when one of its versioned fields changed, so re-running the
same file is a no-op.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.pose import Difficulty, Pose, PoseType
from pydantic import ValidationError
from schemas.pose import PoseImport
from services.versioning import versioning_service
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Pose columns written from an import record
IMPORTED_FIELDS = [
    "sanskrit_name",
    "description",
    "image_url",
    "image_alt",
    "image_license",
]


class CatalogImportError(ValueError):
    """The import file is unusable; nothing was written."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        super().__init__(message)


@dataclass
class ImportSummary:
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    versions_created: int = 0
    names: List[str] = field(default_factory=list)


def parse_catalog(data: Any) -> List[PoseImport]:
    """Validate raw JSON data; all records must be valid."""
    if not isinstance(data, list):
        raise CatalogImportError("Catalog file must contain a JSON list of poses")

    records: List[PoseImport] = []
    errors: List[str] = []
    seen = set()
    for index, item in enumerate(data):
        try:
            record = PoseImport.model_validate(item)
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"]) or "record"
                errors.append(f"#{index}: {loc}: {err['msg']}")
            continue
        key = record.name.lower()
        if key in seen:
            errors.append(f"#{index}: duplicate pose name '{record.name}'")
            continue
        seen.add(key)
        records.append(record)

    if errors:
        raise CatalogImportError(f"{len(errors)} invalid record(s)", errors)
    return records


async def _lookup_ids(db: AsyncSession, model) -> Dict[str, int]:
    result = await db.execute(select(model.id, model.name))
    return {row.name.lower(): row.id for row in result.all()}


async def import_catalog(db: AsyncSession, records: List[PoseImport]) -> ImportSummary:
    """
    Upsert `records` and snapshot versions. Commits once at the end.

    Unknown difficulty or type names abort the whole import.
    """
    difficulties = await _lookup_ids(db, Difficulty)
    pose_types = await _lookup_ids(db, PoseType)

    unknown = []
    for record in records:
        if record.difficulty and record.difficulty.value not in difficulties:
            unknown.append(f"{record.name}: unknown difficulty '{record.difficulty.value}'")
        if record.type and record.type not in pose_types:
            unknown.append(f"{record.name}: unknown type '{record.type}'")
    if unknown:
        raise CatalogImportError("Unknown lookup values (run seed-lookups first?)", unknown)

    summary = ImportSummary()
    try:
        for record in records:
            result = await db.execute(
                select(Pose).where(func.lower(Pose.name) == record.name.lower())
            )
            pose = result.unique().scalar_one_or_none()
            values = {name: getattr(record, name) for name in IMPORTED_FIELDS}
            values["difficulty_id"] = difficulties.get(record.difficulty.value) if record.difficulty else None
            values["type_id"] = pose_types.get(record.type) if record.type else None

            if pose is None:
                pose = Pose(name=record.name, **values)
                db.add(pose)
                await db.flush()
                await versioning_service.create_version(db, pose, check_for_changes=False)
                summary.created += 1
                summary.versions_created += 1
                summary.names.append(record.name)
                continue

            changed = pose.name != record.name
            pose.name = record.name
            for name, value in values.items():
                if getattr(pose, name) != value:
                    setattr(pose, name, value)
                    changed = True
            if not changed:
                summary.unchanged += 1
                continue

            await db.flush()
            summary.updated += 1
            summary.names.append(record.name)
            if await versioning_service.create_version(db, pose) is not None:
                summary.versions_created += 1

        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Catalog import failed; nothing was written")
        raise

    logger.info(
        f"Catalog import: {summary.created} created, {summary.updated} updated, "
        f"{summary.unchanged} unchanged, {summary.versions_created} versions"
    )
    return summary
