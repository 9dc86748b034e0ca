# ABOUTME: Classifies submitted SQL into a structural complexity tier from 1 to 5.
# ABOUTME: Uses keyword heuristics rather than a parser; no query is executed.

from __future__ import annotations

import re
from dataclasses import dataclass

JOIN_PATTERN = re.compile(r"\bJOIN\b", re.IGNORECASE)
GROUP_BY_PATTERN = re.compile(r"\bGROUP\s+BY\b", re.IGNORECASE)
SUBQUERY_PATTERN = re.compile(r"\(\s*SELECT\b", re.IGNORECASE)
ORDER_BY_PATTERN = re.compile(r"\bORDER\s+BY\b", re.IGNORECASE)
HAVING_PATTERN = re.compile(r"\bHAVING\b", re.IGNORECASE)
CASE_WHEN_PATTERN = re.compile(r"\bCASE\s+WHEN\b", re.IGNORECASE)


@dataclass(frozen=True)
class ArtifactComplexity:
    query_length: int
    has_join: bool
    has_group_by: bool
    has_subquery: bool
    has_order_by: bool
    has_having: bool
    has_case_when: bool
    join_count: int
    tier: int


def classify_complexity(sql: str) -> ArtifactComplexity:
    """
    Detect structural SQL features and assign a tier.

    Tiers:
        1: plain SELECT / WHERE
        2: a single JOIN without grouping or subqueries
        3: GROUP BY, with or without one JOIN
        4: two or more JOINs with GROUP BY, or any subquery, HAVING, CASE WHEN
        5: a subquery combined with GROUP BY or two or more JOINs
    """

    sql = sql or ""
    join_count = len(JOIN_PATTERN.findall(sql))
    has_join = join_count > 0
    has_group_by = GROUP_BY_PATTERN.search(sql) is not None
    has_subquery = SUBQUERY_PATTERN.search(sql) is not None
    has_having = HAVING_PATTERN.search(sql) is not None
    has_case_when = CASE_WHEN_PATTERN.search(sql) is not None

    tier = 1
    if has_join and not has_group_by and not has_subquery:
        tier = 2
    if has_group_by and not has_subquery:
        tier = 3
    if has_join and has_group_by:
        tier = 3
    if join_count >= 2 and has_group_by:
        tier = 4
    if has_subquery or has_having or has_case_when:
        tier = 4
    if has_subquery and (has_group_by or join_count >= 2):
        tier = 5

    return ArtifactComplexity(
        query_length=len(sql),
        has_join=has_join,
        has_group_by=has_group_by,
        has_subquery=has_subquery,
        has_order_by=ORDER_BY_PATTERN.search(sql) is not None,
        has_having=has_having,
        has_case_when=has_case_when,
        join_count=join_count,
        tier=tier,
    )
