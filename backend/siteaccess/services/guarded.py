"""Policy-checked reads and writes.

Request handlers go through these helpers instead of touching the session
directly, so every row they see or change has passed ``POLICIES``:

- select_visible / get_visible: rows failing the select predicate are dropped
- insert_row: raises ``AccessDenied`` when the insert predicate fails
- update_row: returns 0 when the caller cannot target the row, raises
  ``AccessDenied`` when the changed row fails the WITH CHECK predicate
- delete_row: returns 0 when the caller cannot target the row
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, TypeVar

from sqlmodel import select

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class _ProposedRow:
    """Read-only view of ``row`` with ``values`` applied on top."""

    def __init__(self, row: Any, values: Mapping[str, Any]) -> None:
        self._row = row
        self._values = dict(values)

    def __getattr__(self, name: str) -> Any:
        if name in self._values:
            return self._values[name]
        return getattr(self._row, name)


async def select_visible(
    evaluator: PolicyEvaluator,
    model: type[ModelT],
    *conditions: Any,
    order_by: Any = None,
    limit: int | None = None,
) -> list[ModelT]:
    stmt = select(model)
    if conditions:
        stmt = stmt.where(*conditions)
    if order_by is not None:
        stmt = stmt.order_by(order_by)
    result = await evaluator.session.exec(stmt)
    rows = await evaluator.visible(model.__tablename__, result.all())
    if limit is not None:
        rows = rows[:limit]
    return rows


async def get_visible(evaluator: PolicyEvaluator, model: type[ModelT], ident: Any) -> ModelT | None:
    """Fetch by primary key; ``None`` when missing or not visible."""
    row = await evaluator.session.get(model, ident)
    if row is None:
        return None
    if not await evaluator.allows(model.__tablename__, "select", row):
        return None
    return row


async def insert_row(evaluator: PolicyEvaluator, row: ModelT) -> ModelT:
    await evaluator.authorize_insert(row.__tablename__, row)
    evaluator.session.add(row)
    await evaluator.session.flush()
    return row


async def update_row(evaluator: PolicyEvaluator, row: ModelT, values: Mapping[str, Any]) -> int:
    table = row.__tablename__
    if not await evaluator.allows(table, "update", row):
        return 0
    await evaluator.authorize_update_check(table, _ProposedRow(row, values))
    for key, value in values.items():
        setattr(row, key, value)
    evaluator.session.add(row)
    await evaluator.session.flush()
    return 1


async def delete_row(evaluator: PolicyEvaluator, row: Any) -> int:
    table = row.__tablename__
    if not await evaluator.allows(table, "delete", row):
        return 0
    await evaluator.session.delete(row)
    await evaluator.session.flush()
    logger.debug("Deleted row from %s", table)
    return 1
