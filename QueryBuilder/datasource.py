import logging
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import and_, false, func, inspect, not_, or_, true
from sqlalchemy.orm import joinedload
from starlette.concurrency import run_in_threadpool

from database import SessionLocal
from .exceptions import QueryTranslationError

logger = logging.getLogger(__name__)

TO_MANY_KEYS = ("some", "every", "none")
TO_ONE_KEYS = ("is", "isNot")
FLAG_KEYS = ("caseInsensitive", "mode")
BOOL_STRINGS = {"true": True, "1": True, "false": False, "0": False}


class SQLAlchemyDataSource:
    """
    Runs list/count options against one mapped model.

    Each call opens its own session from ``session_factory`` and runs in the
    threadpool, so a list and a count for the same request can overlap.

    Criteria use the same mapping dialect the query builder produces:
    ``{"status": "open"}``, ``{"name": {"contains": "jo", "caseInsensitive": True}}``,
    ``{"department": {"name": {"equals": "HR"}}}``, ``{"OR": [...]}`` and so on.
    """

    def __init__(self, model, session_factory=SessionLocal):
        self.model = model
        self.session_factory = session_factory

    async def list(self, options: Mapping[str, Any]) -> List[Any]:
        return await run_in_threadpool(self._list, options)

    async def count(self, options: Mapping[str, Any]) -> int:
        return await run_in_threadpool(self._count, options)

    def _list(self, options: Mapping[str, Any]) -> List[Any]:
        with self.session_factory() as db:
            query = db.query(self.model)

            loaders = self._loader_options(self.model, options.get("include") or {})
            if loaders:
                query = query.options(*loaders)

            where = options.get("where") or {}
            query = query.filter(self.where_clause(where))

            for field, direction in (options.get("orderBy") or {}).items():
                query = query.order_by(self._sort_clause(field, direction))

            skip = _pagination_value("skip", options.get("skip"))
            take = _pagination_value("take", options.get("take"))
            if skip:
                query = query.offset(skip)
            if take is not None:
                query = query.limit(take)

            logger.debug("Listing %s where=%s skip=%s take=%s", self.model.__name__, where, skip, take)
            return query.all()

    def _count(self, options: Mapping[str, Any]) -> int:
        with self.session_factory() as db:
            where = options.get("where") or {}
            query = db.query(self.model).filter(self.where_clause(where))
            logger.debug("Counting %s where=%s", self.model.__name__, where)
            return query.count()

    def where_clause(self, where: Mapping[str, Any]):
        try:
            return _criteria_clause(self.model, where)
        except QueryTranslationError as e:
            logger.warning("Could not translate criteria for %s: %s", self.model.__name__, e)
            raise

    def _sort_clause(self, field: str, direction: Any):
        column = _column(self.model, field)
        if direction == "asc":
            return column.asc()
        if direction == "desc":
            return column.desc()
        raise QueryTranslationError(f"Sort order must be 'asc' or 'desc', got {direction!r}")

    def _loader_options(self, model, include: Mapping[str, Any], parent=None) -> List[Any]:
        """
        {"department": True, "comments": {"include": {"author": True}}}
        becomes joinedload(department), joinedload(comments).joinedload(author).
        """
        loaders = []
        for name, option in include.items():
            if not option:
                continue
            relationship = _relationship(model, name)
            if relationship is None:
                raise QueryTranslationError(f"{model.__name__} has no relation named {name!r}")
            attr = getattr(model, name)
            loader = parent.joinedload(attr) if parent is not None else joinedload(attr)
            nested = option.get("include") if isinstance(option, Mapping) else None
            if nested:
                loaders.extend(self._loader_options(relationship.mapper.class_, nested, loader))
            else:
                loaders.append(loader)
        return loaders


def _pagination_value(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryTranslationError(f"{name} must be an integer, got {value!r}")
    return value


def _relationship(model, name: str):
    return inspect(model).relationships.get(name)


def _column(model, name: str):
    mapper = inspect(model)
    if name not in mapper.column_attrs:
        raise QueryTranslationError(f"{model.__name__} has no column named {name!r}")
    return getattr(model, name)


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _criteria_clause(model, where: Mapping[str, Any]):
    if not isinstance(where, Mapping):
        raise QueryTranslationError(f"Criteria must be a mapping, got {where!r}")

    clauses = []
    for key, value in where.items():
        if key == "AND":
            clauses.append(and_(true(), *[_criteria_clause(model, c) for c in _as_list(value)]))
        elif key == "OR":
            clauses.append(or_(false(), *[_criteria_clause(model, c) for c in _as_list(value)]))
        elif key == "NOT":
            clauses.append(and_(true(), *[not_(_criteria_clause(model, c)) for c in _as_list(value)]))
        elif _relationship(model, key) is not None:
            clauses.append(_relation_clause(model, key, value))
        else:
            clauses.append(_field_clause(model, key, value))

    return and_(true(), *clauses)


def _relation_clause(model, name: str, value: Any):
    relationship = _relationship(model, name)
    attr = getattr(model, name)
    target = relationship.mapper.class_

    if not isinstance(value, Mapping):
        raise QueryTranslationError(f"Relation filter for {name!r} must be a mapping")

    if relationship.uselist:
        if any(key in TO_MANY_KEYS for key in value):
            clauses = []
            if "some" in value:
                clauses.append(attr.any(_criteria_clause(target, value["some"])))
            if "every" in value:
                clauses.append(~attr.any(not_(_criteria_clause(target, value["every"]))))
            if "none" in value:
                clauses.append(~attr.any(_criteria_clause(target, value["none"])))
            return and_(*clauses)
        return attr.any(_criteria_clause(target, value))

    if any(key in TO_ONE_KEYS for key in value):
        clauses = []
        if "is" in value:
            if value["is"] is None:
                clauses.append(~attr.has())
            else:
                clauses.append(attr.has(_criteria_clause(target, value["is"])))
        if "isNot" in value:
            if value["isNot"] is None:
                clauses.append(attr.has())
            else:
                clauses.append(~attr.has(_criteria_clause(target, value["isNot"])))
        return and_(*clauses)
    return attr.has(_criteria_clause(target, value))


def _coerce(column, value: Any) -> Any:
    """Query strings only carry text; convert it to the column's Python type."""
    if not isinstance(value, str):
        return value
    try:
        python_type = column.expression.type.python_type
    except NotImplementedError:
        return value
    try:
        if python_type is bool:
            return BOOL_STRINGS[value.lower()]
        if python_type in (int, float):
            return python_type(value)
        if python_type in (datetime, date):
            return python_type.fromisoformat(value)
    except (KeyError, ValueError):
        raise QueryTranslationError(f"{value!r} is not a valid {python_type.__name__} for {column.key!r}")
    return value


def _field_clause(model, name: str, value: Any):
    column = _column(model, name)

    if value is None:
        return column.is_(None)
    if not isinstance(value, Mapping):
        return column == _coerce(column, value)

    insensitive = bool(value.get("caseInsensitive")) or value.get("mode") == "insensitive"
    clauses = []
    for op, operand in value.items():
        if op in FLAG_KEYS:
            continue
        clauses.append(_operator_clause(column, op, operand, insensitive))
    return and_(true(), *clauses)


def _operator_clause(column, op: str, operand: Any, insensitive: bool):
    if op == "equals":
        if operand is None:
            return column.is_(None)
        if insensitive and isinstance(operand, str):
            return func.lower(column) == operand.lower()
        return column == _coerce(column, operand)
    if op == "not":
        if operand is None:
            return column.is_not(None)
        if isinstance(operand, Mapping):
            return not_(_field_clause(column.class_, column.key, operand))
        return column != _coerce(column, operand)
    if op == "in":
        return column.in_([_coerce(column, v) for v in _as_list(operand)])
    if op == "notIn":
        return column.not_in([_coerce(column, v) for v in _as_list(operand)])
    if op == "lt":
        return column < _coerce(column, operand)
    if op == "lte":
        return column <= _coerce(column, operand)
    if op == "gt":
        return column > _coerce(column, operand)
    if op == "gte":
        return column >= _coerce(column, operand)
    if op == "contains":
        return column.icontains(operand, autoescape=True) if insensitive else column.contains(operand, autoescape=True)
    if op == "startsWith":
        return column.istartswith(operand, autoescape=True) if insensitive else column.startswith(operand, autoescape=True)
    if op == "endsWith":
        return column.iendswith(operand, autoescape=True) if insensitive else column.endswith(operand, autoescape=True)
    raise QueryTranslationError(f"Unsupported filter operator {op!r} on {column.key!r}")
