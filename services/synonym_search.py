"""
Synonym Search

Case-insensitive partial matching over canonical name, known name and
synonyms. The store returns the visible candidates; ranking happens here:

1. exact canonical name, then exact known name, then any other match
2. global rows before tenant custom rows
3. canonical name, alphabetically (id breaks remaining ties)
"""

from typing import Optional

from common.exceptions import NotFoundError, ValidationError
from common.pagination import PaginationParams, clamp_limit, paginate
from schemas.catalog_schemas import MatchedOn, SkillMatch, SkillSearchPage, SubRoleMatch
from services.catalog_store import CatalogStore
from services.grading_projection_service import GradingProjectionService, grading_to_stars

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 100

EXACT_NAME = 1
EXACT_KNOWN_NAME = 2
PARTIAL = 3


def normalize_query(query: Optional[str]) -> str:
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise ValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")
    if len(query) > MAX_QUERY_LENGTH:
        raise ValidationError(f"Query must be at most {MAX_QUERY_LENGTH} characters")
    return query


def match_annotation(query: str, record) -> tuple[Optional[MatchedOn], Optional[str]]:
    """Which field matched ``query``, and the first matching synonym when it was a synonym."""
    q = query.lower()
    if q in record.canonical_name.lower():
        return MatchedOn.NAME, None
    if record.known_name and q in record.known_name.lower():
        return MatchedOn.KNOWN_NAME, None
    for synonym in record.synonyms:
        if q in synonym.lower():
            return MatchedOn.SYNONYM, synonym
    return None, None


def rank_key(query: str, record) -> tuple:
    q = query.lower()
    if record.canonical_name.lower() == q:
        kind = EXACT_NAME
    elif record.known_name and record.known_name.lower() == q:
        kind = EXACT_KNOWN_NAME
    else:
        kind = PARTIAL
    return (kind, 2 if record.is_custom else 1, record.canonical_name.lower(), record.id)


def rank_matches(query: str, records: list) -> list[tuple]:
    """``(record, matched_on, matched_synonym)`` in rank order; records that do not match are dropped."""
    annotated = []
    for record in records:
        matched_on, matched_synonym = match_annotation(query, record)
        if matched_on is not None:
            annotated.append((record, matched_on, matched_synonym))
    annotated.sort(key=lambda item: rank_key(query, item[0]))
    return annotated


class SynonymSearchService:
    def __init__(self, store: CatalogStore):
        self.store = store
        self.grading = GradingProjectionService(store)

    async def search_sub_roles(
        self,
        query: str,
        tenant_id: str,
        limit: Optional[int] = None,
        parent_role_id: Optional[int] = None
    ) -> list[SubRoleMatch]:
        query = normalize_query(query)
        limit = clamp_limit(limit)
        candidates = await self.store.search_sub_roles(query, tenant_id, parent_role_id=parent_role_id)
        return [
            SubRoleMatch(
                id=record.id,
                canonical_name=record.canonical_name,
                known_name=record.known_name,
                synonyms=record.synonyms,
                tenant_id=record.tenant_id,
                is_custom=record.is_custom,
                parent_role_id=record.parent_role_id,
                matched_on=matched_on,
                matched_synonym=matched_synonym,
            )
            for record, matched_on, matched_synonym in rank_matches(query, candidates)[:limit]
        ]

    async def search_skills(
        self,
        tenant_id: str,
        query: Optional[str] = None,
        sub_role_id: Optional[int] = None,
        employee_sub_role_ids: Optional[list[int]] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> SkillSearchPage:
        """
        Search active skills, optionally annotated with grading.

        With ``employee_sub_role_ids`` the grading shown is the highest across
        those sub-roles and ``max_grading_source`` names the winner; otherwise
        the grading comes from ``sub_role_id`` alone. An empty query lists the
        catalog, global skills first.
        """
        limit = clamp_limit(limit)
        PaginationParams(page=page, page_size=limit).validate_range()
        requested = [sub_role_id] if sub_role_id is not None else []
        for requested_id in requested + list(employee_sub_role_ids or []):
            if await self.store.find_sub_role_by_id(requested_id, tenant_id) is None:
                raise NotFoundError(f"Sub-role {requested_id} not found")

        if query is not None and query.strip():
            query = normalize_query(query)
            ranked = rank_matches(query, await self.store.search_skills(query, tenant_id))
            result = paginate(ranked, page=page, page_size=limit)
            rows = result.items
            total = result.total
        else:
            records, total = await self.store.list_skills_page(tenant_id, offset=(page - 1) * limit, limit=limit)
            rows = [(record, None, None) for record in records]

        items = [
            SkillMatch(
                id=record.id,
                canonical_name=record.canonical_name,
                known_name=record.known_name,
                synonyms=record.synonyms,
                tenant_id=record.tenant_id,
                is_custom=record.is_custom,
                matched_on=matched_on,
                matched_synonym=matched_synonym,
            )
            for record, matched_on, matched_synonym in rows
        ]
        await self._annotate_grading(items, sub_role_id, employee_sub_role_ids)

        total_pages = -(-total // limit) if total else 0
        return SkillSearchPage(
            items=items,
            total=total,
            page=page,
            page_size=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    async def _annotate_grading(
        self,
        items: list[SkillMatch],
        sub_role_id: Optional[int],
        employee_sub_role_ids: Optional[list[int]]
    ) -> None:
        if not items:
            return
        skill_ids = [item.id for item in items]

        if employee_sub_role_ids:
            effective = await self.grading.get_effective_gradings(skill_ids, list(employee_sub_role_ids))
            for item in items:
                item.grading = effective[item.id].grading
                item.max_grading_source = effective[item.id].max_grading_source
                item.grading_stars = grading_to_stars(item.grading)
        elif sub_role_id is not None:
            edges = {g.skill_id: g for g in await self.store.list_gradings([sub_role_id], skill_ids)}
            for item in items:
                edge = edges.get(item.id)
                item.grading = edge.grading if edge else None
                item.value = edge.value if edge else None
                item.grading_stars = grading_to_stars(item.grading)
