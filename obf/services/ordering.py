from __future__ import annotations

from typing import Any, Iterable, Optional

# Dialects that concatenate with || rather than CONCAT().
_PIPE_CONCAT_DIALECTS = {"sqlite", "postgresql", "oracle"}


def sql_fullname(first: str, last: str, dialect: str = "sqlite") -> str:
    if dialect in _PIPE_CONCAT_DIALECTS:
        return f"{first} || ' ' || {last}"
    return f"CONCAT({first}, ' ', {last})"


def users_order_by_sql(
    user_table_alias: str = "",
    search: Optional[str] = None,
    extra_fields: Iterable[str] = (),
    dialect: str = "sqlite",
) -> tuple[str, dict[str, Any]]:
    """
    Standard ORDER BY clause for lists of users.

    With a search term, users whose full name or one of the name/extra fields
    match it exactly (case-insensitively) are sorted first. Returns the clause
    and its bound parameters.
    """
    prefix = f"{user_table_alias}." if user_table_alias else ""
    sort = f"{prefix}last_name, {prefix}first_name, {prefix}id"
    params: dict[str, Any] = {}

    if not search:
        return sort, params

    counter = 1
    key = f"usersortexact{counter}"
    conditions = [f"{sql_fullname(prefix + 'first_name', prefix + 'last_name', dialect)} = :{key}"]
    params[key] = search

    for field in ["first_name", "last_name", *extra_fields]:
        counter += 1
        key = f"usersortexact{counter}"
        conditions.append(f"LOWER({prefix}{field}) = LOWER(:{key})")
        params[key] = search

    sort = "CASE WHEN " + " OR ".join(conditions) + " THEN 0 ELSE 1 END, " + sort
    return sort, params
