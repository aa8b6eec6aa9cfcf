"""Read-only pose catalog: filtering, full-text search and pagination."""

import logging
import re
import uuid
from dataclasses import dataclass
from typing import List, Optional

from models.pose import Difficulty, Pose, PoseType
from services.errors import PoseNotFoundError
from sqlalchemy import and_, func, literal_column, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# sort key -> (column, ascending)
SORT_FIELDS = {
    "name": (Pose.name, True),
    "-name": (Pose.name, False),
    "difficulty": (Pose.difficulty_id, True),
    "-difficulty": (Pose.difficulty_id, False),
}

# Characters with meaning in tsquery syntax (or LIKE patterns) are dropped
_SEARCH_SPECIAL_CHARS = re.compile(r"[!@#%&|^:*\"()<>~`{}\[\]+\\_]")

# Rendered inline so the planner can match the index expression
_SEARCH_CONFIG = literal_column("'simple'::regconfig")


def sanitize_search_term(term: str) -> str:
    """Strip query-syntax characters and collapse whitespace."""
    return " ".join(_SEARCH_SPECIAL_CHARS.sub(" ", term).split())


@dataclass
class PosePage:
    items: List[Pose]
    page: int
    limit: int
    total: int


async def _lookup_id(db: AsyncSession, model, name: str, case_insensitive: bool = False) -> Optional[int]:
    column = func.lower(model.name) if case_insensitive else model.name
    value = name.lower() if case_insensitive else name
    result = await db.execute(select(model.id).where(column == value))
    return result.scalar_one_or_none()


def _search_clause(dialect_name: str, term: str):
    if dialect_name == "postgresql":
        # Same expression as the ix_poses_search GIN index
        document = func.to_tsvector(
            _SEARCH_CONFIG,
            func.coalesce(Pose.name, "")
            + " "
            + func.coalesce(Pose.sanskrit_name, "")
            + " "
            + func.coalesce(Pose.description, ""),
        )
        return document.op("@@")(func.plainto_tsquery(_SEARCH_CONFIG, term))

    # Fallback: every word must appear in one of the text columns
    clauses = []
    for word in term.split():
        pattern = f"%{word}%"
        clauses.append(
            or_(
                Pose.name.ilike(pattern),
                Pose.sanskrit_name.ilike(pattern),
                Pose.description.ilike(pattern),
            )
        )
    return and_(*clauses)


async def list_poses(
    db: AsyncSession,
    difficulty: Optional[str] = None,
    pose_type: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    sort: str = "name",
) -> PosePage:
    """
    List catalog poses.

    An unknown difficulty or type name gives an empty page, not an error.
    """
    conditions = []

    if difficulty:
        difficulty_id = await _lookup_id(db, Difficulty, difficulty)
        if difficulty_id is None:
            logger.debug(f"Unknown difficulty filter '{difficulty}'")
            return PosePage(items=[], page=page, limit=limit, total=0)
        conditions.append(Pose.difficulty_id == difficulty_id)

    if pose_type:
        type_id = await _lookup_id(db, PoseType, pose_type, case_insensitive=True)
        if type_id is None:
            logger.debug(f"Unknown pose type filter '{pose_type}'")
            return PosePage(items=[], page=page, limit=limit, total=0)
        conditions.append(Pose.type_id == type_id)

    if search:
        term = sanitize_search_term(search)
        if term:
            conditions.append(_search_clause(db.bind.dialect.name, term))

    count_query = select(func.count(Pose.id))
    if conditions:
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    column, ascending = SORT_FIELDS.get(sort, SORT_FIELDS["name"])
    query = (
        select(Pose)
        .order_by(column.asc() if ascending else column.desc(), Pose.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    if conditions:
        query = query.where(and_(*conditions))

    result = await db.execute(query)
    items = list(result.unique().scalars().all())
    return PosePage(items=items, page=page, limit=limit, total=total)


async def get_pose(db: AsyncSession, pose_id: uuid.UUID) -> Pose:
    result = await db.execute(select(Pose).where(Pose.id == pose_id))
    pose = result.unique().scalar_one_or_none()
    if pose is None:
        raise PoseNotFoundError(status_code=404)
    return pose
