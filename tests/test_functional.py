from datetime import datetime

from envelope_core.domain import (
    Account,
    AccountLabel,
    BudgetNode,
    Capacity,
    EntryLabel,
    Hierarchy,
    LedgerEntry,
    NodeKind,
)
from envelope_core.editing import new_budget, new_category, new_section
from envelope_core.functional import (
    Left,
    Maybe,
    Nothing,
    Right,
    Some,
    pipe,
    safe_node,
    validate_entry,
    validate_node,
)


def make_hierarchy():
    return Hierarchy(
        budgets=(new_budget("b1", "Living", [Capacity("b", 100)]),),
        sections=(
            new_section("s1", "b1", "Essentials", [Capacity("s", 50)]),
            new_section("s9", "gone", "Orphan", [Capacity("s9", 50)]),
        ),
        categories=(new_category("c1", "s1", "Groceries", [Capacity("c", 20)]),),
    )


def test_maybe_and_either():
    assert Maybe.of(None) == Nothing()
    assert Maybe.of(3) == Some(3)
    assert Maybe.of(0).is_some()
    assert Nothing().get_or_else(7) == 7

    def safe_divide(x):
        return Left("Division by zero") if x == 0 else Right(10 // x)

    assert Right(2).bind(safe_divide) == Right(5)
    assert Right(0).bind(safe_divide).get_error() == "Division by zero"
    left = Left("original error")
    assert left.bind(safe_divide).get_error() == "original error"
    assert left.is_left() and not left.is_right()


def test_safe_node():
    h = make_hierarchy()
    assert safe_node(h, NodeKind.SECTION, "s1").get_or_else(None).name == "Essentials"
    assert safe_node(h, NodeKind.BUDGET, "s1").is_none()
    assert safe_node(h, NodeKind.CATEGORY, None).is_none()


def test_validate_node_success():
    h = make_hierarchy()
    for node in (h.budgets[0], h.sections[0], h.categories[0]):
        assert validate_node(node, h).is_right()


def test_validate_node_dangling_reference():
    h = make_hierarchy()
    result = validate_node(h.sections[1], h)
    assert result.is_left()
    assert result.get_error()["error"] == "dangling_reference"
    assert result.get_error()["parent_id"] == "gone"


def test_validate_node_capacity_problems():
    h = make_hierarchy()
    empty = BudgetNode(kind=NodeKind.BUDGET, id="b2", name="Empty")
    assert validate_node(empty, h).get_error()["error"] == "empty_capacity_list"

    twins = BudgetNode(
        kind=NodeKind.BUDGET, id="b3", name="Twins",
        capacities=(Capacity("x", 1, datetime(2024, 1, 1)), Capacity("y", 2, datetime(2024, 1, 1))),
    )
    error = validate_node(twins, h).get_error()
    assert error["error"] == "duplicate_active_from"
    assert error["active_from"] == datetime(2024, 1, 1)

    parented = BudgetNode(kind=NodeKind.BUDGET, id="b4", name="Odd", capacities=(Capacity("z", 1),), parent_id="b1")
    assert validate_node(parented, h).get_error()["error"] == "unexpected_parent"


def test_validate_entry():
    h = make_hierarchy()
    accounts = {
        "a1": Account("a1", label=AccountLabel(budget_id="b1")),
        "a2": Account("a2", label=AccountLabel(budget_id="zz")),
    }

    ok = LedgerEntry("t1", datetime(2024, 3, 1), "a1", 10, EntryLabel(category_id="c1"))
    assert validate_entry(ok, accounts, h).is_right()

    no_account = LedgerEntry("t2", datetime(2024, 3, 1), "a9", 10)
    assert validate_entry(no_account, accounts, h).get_error()["error"] == "account_not_found"

    bad_category = LedgerEntry("t3", datetime(2024, 3, 1), "a1", 10, EntryLabel(category_id="c9"))
    assert validate_entry(bad_category, accounts, h).get_error()["error"] == "category_not_found"

    bad_default = LedgerEntry("t4", datetime(2024, 3, 1), "a2", 10)
    assert validate_entry(bad_default, accounts, h).get_error()["budget_id"] == "zz"


def test_pipe():
    assert pipe(3, lambda x: x + 1, lambda x: x * 2) == 8
