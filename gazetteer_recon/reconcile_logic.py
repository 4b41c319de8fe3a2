from typing import Dict, List, Optional, Sequence
from .logging_config import get_logger
from .reconcile_record import Entity
from .reconcile_norm_score import name_similarity
from .reconmodels import Candidate, ReconcileQuery, ReconcileResult, entity_types

logger = get_logger(__name__)

DEFAULT_LIMIT = 5
MIN_SCORE = 10
MATCH_THRESHOLD = 85

#rank one query against every entity of a snapshot
def reconcile_single_query(query_str: str,
                           entities: Sequence[Entity],
                           limit: Optional[int] = None) -> List[Candidate]:
    query_str = (query_str or "").strip()
    if not query_str:
        return []

    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        return []

    scored: List[Candidate] = []

    for entity in entities:
        score = name_similarity(query_str, entity.name)
        if score <= MIN_SCORE:
            continue

        scored.append(
            Candidate(
                id=entity.id or entity.name,
                name=entity.name,
                score=score,
                match=score > MATCH_THRESHOLD,
                type=entity_types(entity.type),
            )
        )

    #stable sort, equal scores keep store order
    scored.sort(key=lambda c: c.score, reverse=True)

    logger.debug(f"Query {query_str!r}: {len(scored)} candidates above threshold, returning {min(limit, len(scored))}")
    return scored[:limit]

#answer every key of a batch against the same snapshot
def run_reconciliation(queries: Dict[str, ReconcileQuery],
                       entities: Sequence[Entity]) -> Dict[str, ReconcileResult]:
    response: Dict[str, ReconcileResult] = {}

    for qid, q in queries.items():
        results = reconcile_single_query(q.query, entities, q.limit)
        response[qid] = ReconcileResult(result=results)

    return response
