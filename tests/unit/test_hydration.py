"""
Unit tests for array hydration of joined rows.
"""

from app.datatables.definitions import JoinType, PlannedJoin, QueryPlan
from app.datatables.hydration import ArrayHydrator, column_label


def make_plan(joins, selected_fields):
    return QueryPlan(
        root_alias="customer",
        root_entity=None,
        root_identifiers=("id",),
        entities={},
        selected_fields=selected_fields,
        joins=tuple(joins),
    )


def row(**values):
    """Build a result row from alias__field keyword arguments."""
    return dict(values)


class TestArrayHydrator:
    """Test folding joined rows into nested records"""

    def test_column_label(self):
        assert column_label("customer_orders", "reference") == "customer_orders__reference"

    def test_fan_out_rows_hydrate_one_root(self):
        plan = make_plan(
            [PlannedJoin("customer_orders", "customer", "orders", JoinType.LEFT, ("id",), True)],
            {"customer": ("id", "last_name"), "customer_orders": ("id", "reference")},
        )
        rows = [
            row(customer__id=1, customer__last_name="Smith", customer_orders__id=1, customer_orders__reference="SO-1"),
            row(customer__id=1, customer__last_name="Smith", customer_orders__id=2, customer_orders__reference="SO-2"),
            row(customer__id=2, customer__last_name="Jones", customer_orders__id=3, customer_orders__reference="SO-3"),
        ]

        records = ArrayHydrator(plan).hydrate(rows)

        assert records == [
            {"id": 1, "last_name": "Smith", "orders": [{"id": 1, "reference": "SO-1"}, {"id": 2, "reference": "SO-2"}]},
            {"id": 2, "last_name": "Jones", "orders": [{"id": 3, "reference": "SO-3"}]},
        ]

    def test_unmatched_outer_join(self):
        plan = make_plan(
            [
                PlannedJoin("customer_orders", "customer", "orders", JoinType.LEFT, ("id",), True),
                PlannedJoin("customer_location", "customer", "location", JoinType.LEFT, ("id",), False),
            ],
            {
                "customer": ("id",),
                "customer_orders": ("id",),
                "customer_location": ("id", "city"),
            },
        )
        rows = [row(customer__id=3, customer_orders__id=None, customer_location__id=None, customer_location__city=None)]

        records = ArrayHydrator(plan).hydrate(rows)

        assert records == [{"id": 3, "orders": [], "location": None}]

    def test_nested_children_are_deduplicated(self):
        plan = make_plan(
            [
                PlannedJoin("customer_orders", "customer", "orders", JoinType.INNER, ("id",), True),
                PlannedJoin("customer_orders_order_line", "customer_orders", "lines", JoinType.INNER,
                            ("order_id", "line_no"), True),
            ],
            {
                "customer": ("id",),
                "customer_orders": ("id",),
                "customer_orders_order_line": ("order_id", "line_no", "product"),
            },
        )
        base = {"customer__id": 1, "customer_orders__id": 1, "customer_orders_order_line__order_id": 1}
        rows = [
            dict(base, customer_orders_order_line__line_no=1, customer_orders_order_line__product="Keyboard"),
            dict(base, customer_orders_order_line__line_no=2, customer_orders_order_line__product="Mouse"),
            dict(base, customer_orders_order_line__line_no=1, customer_orders_order_line__product="Keyboard"),
        ]

        records = ArrayHydrator(plan).hydrate(rows)

        assert len(records) == 1
        assert len(records[0]["orders"]) == 1
        assert [line["product"] for line in records[0]["orders"][0]["lines"]] == ["Keyboard", "Mouse"]

    def test_root_identity(self):
        plan = make_plan([], {"customer": ("id",)})

        assert ArrayHydrator(plan).root_identity({"id": 7}) == (7,)
