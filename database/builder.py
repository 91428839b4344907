"""
Base query builder: accumulates a select query's shape and runs it uncached
"""

import copy
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union


Columns = Union[str, Sequence[str]]


def _column_list(columns: Columns) -> List[str]:
    if isinstance(columns, str):
        return [columns]
    return list(columns)


class BaseQueryBuilder:
    """Select-only builder over a named connection.

    The shape is plain attributes (``columns``, ``wheres``, ``orders``,
    ``aggregate_``, ...) rendered by the connection's grammar. ``columns`` is
    ``None`` until something selects columns explicitly.
    """

    operators = ("=", "<", ">", "<=", ">=", "<>", "!=", "like", "not like")

    def __init__(self, connection, grammar=None):
        self.connection = connection
        self.grammar = grammar or connection.get_query_grammar()
        self.from_table: Optional[str] = None
        self.columns: Optional[List[str]] = None
        self.distinct_ = False
        self.wheres: List[Dict[str, Any]] = []
        self.orders: Optional[List[Dict[str, str]]] = None
        self.aggregate_: Optional[Dict[str, Any]] = None
        self.limit_: Optional[int] = None
        self.offset_: Optional[int] = None

    def from_(self, table: str):
        self.from_table = table
        return self

    def select(self, columns: Columns = "*"):
        self.columns = _column_list(columns)
        return self

    def add_select(self, columns: Columns):
        self.columns = (self.columns or []) + _column_list(columns)
        return self

    def distinct(self):
        self.distinct_ = True
        return self

    def where(self, column: str, operator: Any = None, value: Any = None, boolean: str = "and"):
        # where("id", 1) is shorthand for where("id", "=", 1)
        if value is None and operator not in self.operators:
            operator, value = "=", operator
        if value is None:
            if operator not in ("=", "!=", "<>"):
                raise ValueError(f"Cannot compare {column} with NULL using {operator}")
            self.wheres.append({
                "type": "null", "column": column, "boolean": boolean,
                "not": operator != "=",
            })
            return self
        if operator not in self.operators:
            raise ValueError(f"Unsupported operator: {operator}")
        self.wheres.append({
            "type": "basic", "column": column, "operator": operator,
            "value": value, "boolean": boolean,
        })
        return self

    def or_where(self, column: str, operator: Any = None, value: Any = None):
        return self.where(column, operator, value, boolean="or")

    def where_in(self, column: str, values: Iterable[Any], boolean: str = "and"):
        values = list(values)
        if not values:
            raise ValueError(f"where_in on {column} needs at least one value")
        self.wheres.append({"type": "in", "column": column, "values": values, "boolean": boolean})
        return self

    def order_by(self, column: str, direction: str = "asc"):
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"Order direction must be 'asc' or 'desc', got {direction}")
        self.orders = (self.orders or []) + [{"column": column, "direction": direction}]
        return self

    def limit(self, value: int):
        self.limit_ = value
        return self

    def offset(self, value: int):
        self.offset_ = value
        return self

    def to_sql(self) -> str:
        if self.from_table is None:
            raise ValueError("Query has no table; call from_() first")
        return self.grammar.compile_select(self)

    def get_bindings(self) -> List[Any]:
        bindings = []
        for where in self.wheres:
            if where["type"] == "basic":
                bindings.append(where["value"])
            elif where["type"] == "in":
                bindings.extend(where["values"])
        return bindings

    def get_fresh(self, columns: Columns = ("*",)) -> List[Dict[str, Any]]:
        """Execute the query as a "select" statement, bypassing any cache"""
        if self.columns is None:
            self.columns = _column_list(columns)
        return self.connection.select(self.to_sql(), self.get_bindings())

    def get(self, columns: Columns = ("*",)) -> List[Dict[str, Any]]:
        return self.get_fresh(columns)

    def first(self, columns: Columns = ("*",)) -> Optional[Dict[str, Any]]:
        # limit on a throwaway copy so the caller's shape stays untouched
        results = self.clone().limit(1).get(columns)
        return results[0] if results else None

    def clone(self):
        cloned = copy.copy(self)
        cloned.columns = copy.copy(self.columns)
        cloned.wheres = copy.deepcopy(self.wheres)
        cloned.orders = copy.deepcopy(self.orders)
        cloned.aggregate_ = copy.deepcopy(self.aggregate_)
        return cloned
