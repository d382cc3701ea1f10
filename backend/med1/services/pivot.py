"""
Pivot aggregation over DRE fact entries.

Row dimensions become GROUP BY keys. With no pivot column each requested
metric is computed per row group; with a pivot column the values of the
first column are spread out as ``SUM(CASE WHEN col = v THEN value END)``
columns, one per distinct value. A value whose alias is already taken by a
row dimension or an earlier value gets a numeric suffix.
"""

import logging
import re
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..models.dre import FactEntry
from ..schemas.dre import PivotRequest


logger = logging.getLogger(__name__)


DIMENSIONS = {
    "pnl_line": FactEntry.pnl_line,
    "customer": FactEntry.customer,
    "channel": FactEntry.channel,
    "product_sku": FactEntry.product_sku,
    "version": FactEntry.version,
    "period": FactEntry.period,
    "bu": FactEntry.bu,
    "region": FactEntry.region,
    "cost_center_code": FactEntry.cost_center_code,
    "gl_account": FactEntry.gl_account,
}

METRICS = {
    "SUM(value)": lambda: func.sum(FactEntry.value),
    "AVG(value)": lambda: func.avg(FactEntry.value),
    "COUNT(*)": lambda: func.count(),
}

_ALIAS_INVALID = re.compile(r"[^a-zA-Z0-9_]")


class PivotQueryError(ValueError):
    """Raised for dimensions, metrics or sort fields outside the whitelist."""


def column_alias(value: Any) -> str:
    """
    >>> column_alias("2024-01")
    '2024_01'
    """
    return _ALIAS_INVALID.sub("_", str(value))


def _unique_alias(alias: str, taken: Dict[str, Any]) -> str:
    """
    ``alias`` or, when a dimension or an earlier value already holds it,
    ``alias_2``, ``alias_3`` and so on.
    """
    if alias not in taken:
        return alias
    suffix = 2
    while f"{alias}_{suffix}" in taken:
        suffix += 1
    logger.warning(f"Pivot column alias '{alias}' already in use, renamed to '{alias}_{suffix}'")
    return f"{alias}_{suffix}"


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def _validate(request: PivotRequest) -> None:
    unknown = [d for d in request.rows + request.columns if d not in DIMENSIONS]
    if unknown:
        raise PivotQueryError(f"Unknown dimension(s): {', '.join(unknown)}")
    unknown = [m for m in request.metrics if m not in METRICS]
    if unknown:
        raise PivotQueryError(f"Unknown metric(s): {', '.join(unknown)}")


def _conditions(request: PivotRequest) -> List[Any]:
    filters = request.filters
    if filters is None:
        return []
    conditions = []
    if filters.scenario:
        conditions.append(FactEntry.scenario == filters.scenario)
    if filters.version:
        conditions.append(FactEntry.version.in_(filters.version))
    if filters.period:
        conditions.append(FactEntry.period.in_(filters.period))
    if filters.bu:
        conditions.append(FactEntry.bu.in_(filters.bu))
    return conditions


def run_pivot(db: Session, request: PivotRequest) -> Dict[str, Any]:
    """
    Execute a pivot request and return ``{data, totals, metadata}``.

    Raises:
        PivotQueryError: on a dimension, metric or sort field that is not allowed
    """
    _validate(request)
    conditions = _conditions(request)
    row_columns = [DIMENSIONS[name].label(name) for name in request.rows]
    metadata = {"page": request.page, "page_size": request.page_size, "total": 0}

    distinct_rows = select(*row_columns).where(*conditions).distinct().subquery()
    total = db.execute(select(func.count()).select_from(distinct_rows)).scalar() or 0
    if total == 0:
        return {"data": [], "totals": {}, "metadata": metadata}
    metadata["total"] = total

    produced: Dict[str, Any] = {name: DIMENSIONS[name] for name in request.rows}
    if request.columns:
        pivot_column = DIMENSIONS[request.columns[0]]
        values = db.execute(
            select(pivot_column)
            .where(pivot_column.is_not(None), *conditions)
            .distinct()
            .order_by(pivot_column)
        ).scalars().all()
        for value in values:
            alias = _unique_alias(column_alias(value), produced)
            produced[alias] = func.sum(
                case((pivot_column == value, FactEntry.value), else_=None)
            )
    else:
        for metric in request.metrics:
            produced[metric] = METRICS[metric]()

    query = (
        select(*[expr.label(alias) for alias, expr in produced.items()])
        .select_from(FactEntry)
        .where(*conditions)
        .group_by(*[DIMENSIONS[name] for name in request.rows])
    )

    if request.sort_by is not None:
        sort_expr = produced.get(request.sort_by.field)
        if sort_expr is None:
            raise PivotQueryError(f"Cannot sort by '{request.sort_by.field}'")
        query = query.order_by(sort_expr.desc() if request.sort_by.direction == "desc" else sort_expr.asc())

    query = query.limit(request.page_size).offset((request.page - 1) * request.page_size)
    data = [
        {key: _plain(value) for key, value in row._mapping.items()}
        for row in db.execute(query)
    ]

    totals: Dict[str, Any] = {}
    if request.metrics:
        totals_row = db.execute(
            select(*[METRICS[m]().label(m) for m in request.metrics])
            .select_from(FactEntry)
            .where(*conditions)
        ).one()
        totals = {key: _plain(value) for key, value in totals_row._mapping.items()}

    logger.debug(
        f"Pivot rows={request.rows} columns={request.columns} metrics={request.metrics}: "
        f"{len(data)} of {total} groups"
    )
    return {"data": data, "totals": totals, "metadata": metadata}
