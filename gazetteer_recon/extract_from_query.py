"""
Decoding of reconciliation batches.

Every accepted request shape is rewritten into one mapping of
key -> ReconcileQuery before any matching runs:

    {"queries": {"q0": {"query": "Toronto", "limit": 3}, ...}}
    {"q0": {"query": "Toronto"}, ...}          (value of a ``queries`` field)
    {"query": "Toronto"}                        (single query, keyed "q0")

Anything that cannot be decoded fails the whole batch with BatchDecodeError.
"""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .reconmodels import ReconcileQuery

SINGLE_QUERY_KEY = "q0"


class BatchDecodeError(ValueError):
    """Raised when a reconciliation payload cannot be decoded."""


def parse_json(raw: Any, field: str) -> Any:
    if not isinstance(raw, (str, bytes)):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BatchDecodeError(f"'{field}' is not valid JSON: {e.msg}") from e


#bare query text, or an object already shaped like a query
def wrap_single_query(single: Any) -> Dict[str, Any]:
    if isinstance(single, dict):
        return {SINGLE_QUERY_KEY: single}
    if isinstance(single, str):
        #form and query-string values may carry a JSON query object
        stripped = single.strip()
        if stripped.startswith("{"):
            return {SINGLE_QUERY_KEY: parse_json(stripped, "query")}
        return {SINGLE_QUERY_KEY: {"query": single}}
    raise BatchDecodeError("'query' must be a string or an object")


def decode_queries(raw_queries: Any) -> Dict[str, ReconcileQuery]:
    queries = parse_json(raw_queries, "queries")

    if not isinstance(queries, dict):
        raise BatchDecodeError("'queries' must be an object mapping keys to queries")

    validated: Dict[str, ReconcileQuery] = {}
    for key, query_data in queries.items():
        if not isinstance(query_data, dict):
            raise BatchDecodeError(f"query '{key}' must be an object")
        try:
            validated[key] = ReconcileQuery(**query_data)
        except ValidationError as e:
            raise BatchDecodeError(f"query '{key}' is invalid: {e.errors()[0]['msg']}") from e

    return validated


def decode_body(body: Any) -> Optional[Dict[str, ReconcileQuery]]:
    """
    Decode a JSON request body.

    Returns None when the body carries neither ``queries`` nor ``query``.
    """
    if not isinstance(body, dict):
        raise BatchDecodeError("request body must be a JSON object")

    if "queries" in body:
        return decode_queries(body["queries"])
    if "query" in body:
        return decode_queries(wrap_single_query(body["query"]))
    return None


def decode_fields(queries: Optional[str], query: Optional[str]) -> Optional[Dict[str, ReconcileQuery]]:
    """Decode ``queries``/``query`` taken from a form or the query string."""
    if queries is not None:
        return decode_queries(queries)
    if query is not None:
        return decode_queries(wrap_single_query(query))
    return None
