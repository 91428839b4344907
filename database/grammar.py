"""
Minimal SELECT grammar rendering a query builder's shape to SQL text
"""

import re
from typing import Any, Dict, List, Sequence


_ALIAS = re.compile(r"\s+as\s+", re.IGNORECASE)


class Grammar:
    """Render select statements with ``?`` placeholders and double-quoted identifiers"""

    placeholder = "?"
    quote = '"'

    def compile_select(self, query) -> str:
        if query.aggregate_ is not None:
            select_clause = self.compile_aggregate(query, query.aggregate_)
        else:
            select_clause = self.compile_columns(query, query.columns or ["*"])

        parts = [select_clause, f"from {self.wrap_table(query.from_table)}"]

        if query.wheres:
            parts.append(self.compile_wheres(query.wheres))
        if query.orders:
            parts.append(self.compile_orders(query.orders))
        if query.limit_ is not None:
            parts.append(f"limit {int(query.limit_)}")
        if query.offset_ is not None:
            parts.append(f"offset {int(query.offset_)}")

        return " ".join(parts)

    def compile_aggregate(self, query, aggregate: Dict[str, Any]) -> str:
        column = self.columnize(aggregate["columns"])
        if query.distinct_ and column != "*":
            column = f"distinct {column}"
        return f"select {aggregate['function']}({column}) as aggregate"

    def compile_columns(self, query, columns: Sequence[str]) -> str:
        select = "select distinct " if query.distinct_ else "select "
        return select + self.columnize(columns)

    def compile_wheres(self, wheres: List[Dict[str, Any]]) -> str:
        clauses = []
        for index, where in enumerate(wheres):
            if where["type"] == "in":
                values = ", ".join(self.placeholder for _ in where["values"])
                clause = f"{self.wrap(where['column'])} in ({values})"
            elif where["type"] == "null":
                null_check = "is not null" if where.get("not") else "is null"
                clause = f"{self.wrap(where['column'])} {null_check}"
            else:
                clause = f"{self.wrap(where['column'])} {where['operator']} {self.placeholder}"
            clauses.append(clause if index == 0 else f"{where['boolean']} {clause}")
        return "where " + " ".join(clauses)

    def compile_orders(self, orders: List[Dict[str, str]]) -> str:
        return "order by " + ", ".join(
            f"{self.wrap(order['column'])} {order['direction']}" for order in orders
        )

    def columnize(self, columns: Sequence[str]) -> str:
        return ", ".join(self.wrap(column) for column in columns)

    def wrap_table(self, table: str) -> str:
        return self.wrap(table)

    def wrap(self, value: str) -> str:
        """Quote an identifier, leaving ``*`` and dotted paths' stars alone"""
        parts = _ALIAS.split(value, maxsplit=1)
        if len(parts) == 2:
            name, alias = parts
            return f"{self.wrap(name.strip())} as {self.wrap_segment(alias.strip())}"
        return ".".join(self.wrap_segment(segment) for segment in value.split("."))

    def wrap_segment(self, segment: str) -> str:
        if segment == "*":
            return segment
        return f"{self.quote}{segment}{self.quote}"


class MySqlGrammar(Grammar):
    placeholder = "%s"
    quote = "`"
