import unittest

from finance_app.bootstrap import create_indexes, create_tables
from finance_app.errors import ConstraintViolation
from finance_app.repositories import (
    BankBalanceRepository,
    BudgetRepository,
    CategoryRepository,
    TransactionRepository,
)
from finance_app.service import (
    BUDGET_UPDATED,
    CATEGORY_UPDATED,
    TRANSACTION_UPDATED,
    DatabaseService,
)


def make_service(foreign_keys=True):
    service = DatabaseService(":memory:", foreign_keys=foreign_keys)
    service.initialize()
    create_tables(service)
    create_indexes(service)
    return service


def category_payload(**overrides):
    payload = {
        "name": "Books",
        "icon": "📚",
        "type": "expense",
        "sortOrder": 4,
        "isDefault": False,
        "isActive": True,
    }
    payload.update(overrides)
    return payload


def budget_payload(category_id, **overrides):
    payload = {
        "name": "Food",
        "categoryId": category_id,
        "amount": 500,
        "period": "monthly",
        "startDate": "2025-08-01",
        "endDate": "2025-08-31",
        "month": "2025-08",
        "isRegular": True,
        "isBudgetExceeded": False,
    }
    payload.update(overrides)
    return payload


class RepositoryTestCase(unittest.TestCase):
    def setUp(self):
        self.service = make_service()
        self.categories = CategoryRepository(self.service)
        self.budgets = BudgetRepository(self.service)
        self.transactions = TransactionRepository(self.service)
        self.balances = BankBalanceRepository(self.service)

    def tearDown(self):
        self.service.close_database()

    def record_events(self):
        events = []
        for name in (CATEGORY_UPDATED, BUDGET_UPDATED, TRANSACTION_UPDATED):
            self.service.on(name, lambda name=name: events.append(name))
        return events


class TestCategoryRepository(RepositoryTestCase):
    def test_create_round_trip(self):
        """create then find_by_id returns the input plus id and timestamps"""
        payload = category_payload()
        created = self.categories.create(payload)
        found = self.categories.find_by_id(created["id"])

        self.assertEqual(found, created)
        for key, value in payload.items():
            self.assertEqual(found[key], value)
        self.assertIsInstance(found["id"], int)
        self.assertIsNotNone(found["createdAt"])
        self.assertIsNotNone(found["updatedAt"])
        self.assertIs(found["isDefault"], False)
        self.assertIs(found["isActive"], True)

    def test_create_applies_defaults_and_ignores_extra_fields(self):
        created = self.categories.create(
            {"name": "Gifts", "icon": "🎁", "type": "expense", "id": 99, "createdAt": "x", "colour": "red"}
        )
        self.assertEqual(created["id"], 1)
        self.assertEqual(created["sortOrder"], 0)
        self.assertIs(created["isDefault"], False)
        self.assertIs(created["isActive"], True)
        self.assertNotEqual(created["createdAt"], "x")
        self.assertNotIn("colour", created)

    def test_invalid_type_rejected(self):
        with self.assertRaises(ConstraintViolation):
            self.categories.create(category_payload(type="transfer"))
        self.assertEqual(self.categories.count(), 0)

    def test_missing_required_field_rejected(self):
        with self.assertRaises(ConstraintViolation):
            self.categories.create({"name": "No icon", "type": "expense"})

    def test_find_by_id_missing(self):
        self.assertIsNone(self.categories.find_by_id(404))

    def test_find_by_type_returns_active_only(self):
        self.categories.create(category_payload(name="Food"))
        self.categories.create(category_payload(name="Old", isActive=False))
        self.categories.create(category_payload(name="Salary", type="income"))

        names = [row["name"] for row in self.categories.find_by_type("expense")]
        self.assertEqual(names, ["Food"])
        self.assertEqual([row["name"] for row in self.categories.find_by_type("income")], ["Salary"])

    def test_find_default(self):
        self.categories.create(category_payload(name="Builtin", isDefault=True))
        self.categories.create(category_payload(name="Custom"))
        self.assertEqual([row["name"] for row in self.categories.find_default()], ["Builtin"])

    def test_find_all_with_type(self):
        self.categories.create(category_payload(name="Rent", sortOrder=2))
        self.categories.create(category_payload(name="Salary", type="income", sortOrder=1))
        self.categories.create(category_payload(name="Food", sortOrder=1))

        rows = self.categories.find_all_with_type()
        self.assertEqual([row["name"] for row in rows], ["Food", "Rent", "Salary"])
        self.assertEqual([row["typeName"] for row in rows], ["Expense", "Expense", "Income"])

    def test_partial_update(self):
        """update changes only the given field (and updatedAt)"""
        created = self.categories.create(category_payload())
        self.assertTrue(self.categories.update(created["id"], {"name": "Novels"}))

        updated = self.categories.find_by_id(created["id"])
        self.assertEqual(updated["name"], "Novels")
        for key in ("icon", "type", "sortOrder", "isDefault", "isActive", "createdAt"):
            self.assertEqual(updated[key], created[key])

    def test_update_ignores_unlisted_and_none_values(self):
        created = self.categories.create(category_payload())
        self.assertFalse(self.categories.update(created["id"], {"colour": "blue", "id": 7}))
        self.assertTrue(self.categories.update(created["id"], {"icon": None, "isActive": False}))

        updated = self.categories.find_by_id(created["id"])
        self.assertEqual(updated["icon"], "📚")
        self.assertIs(updated["isActive"], False)
        self.assertEqual(updated["id"], created["id"])

    def test_update_missing_row(self):
        self.categories.create(category_payload())
        before = self.categories.find_all()
        self.assertFalse(self.categories.update(404, {"name": "Ghost"}))
        self.assertEqual(self.categories.find_all(), before)

    def test_delete_and_count(self):
        first = self.categories.create(category_payload(name="A"))
        self.categories.create(category_payload(name="B"))
        self.assertEqual(self.categories.count(), 2)

        self.assertTrue(self.categories.delete(first["id"]))
        self.assertFalse(self.categories.delete(first["id"]))
        self.assertEqual(self.categories.count(), 1)

    def test_delete_referenced_category_restricted(self):
        category = self.categories.create(category_payload())
        self.budgets.create(budget_payload(category["id"]))
        with self.assertRaises(ConstraintViolation):
            self.categories.delete(category["id"])
        self.assertIsNotNone(self.categories.find_by_id(category["id"]))

    def test_writes_emit_category_updated(self):
        events = self.record_events()
        created = self.categories.create(category_payload())
        self.categories.update(created["id"], {"name": "Comics"})
        self.categories.delete(created["id"])
        self.categories.find_all()
        self.assertEqual(events, [CATEGORY_UPDATED] * 3)


class TestBudgetRepository(RepositoryTestCase):
    def setUp(self):
        super().setUp()
        self.food = self.categories.create(category_payload(name="Food", icon="🍚"))
        self.transport = self.categories.create(category_payload(name="Transport", icon="🚌"))

    def test_create_round_trip(self):
        payload = budget_payload(self.food["id"])
        created = self.budgets.create(payload)
        found = self.budgets.find_by_id(created["id"])

        self.assertEqual(found, created)
        for key, value in payload.items():
            self.assertEqual(found[key], value)
        self.assertIs(found["isRegular"], True)
        self.assertIs(found["isBudgetExceeded"], False)

    def test_invalid_budgets_rejected(self):
        with self.assertRaises(ConstraintViolation):
            self.budgets.create(budget_payload(self.food["id"], amount=-1))
        with self.assertRaises(ConstraintViolation):
            self.budgets.create(budget_payload(self.food["id"], period="hourly"))
        with self.assertRaises(ConstraintViolation):
            self.budgets.create(budget_payload(999))
        self.assertEqual(self.budgets.count(), 0)

    def test_find_all_ordering(self):
        july = self.budgets.create(budget_payload(self.transport["id"], month="2025-07"))
        aug_transport = self.budgets.create(budget_payload(self.transport["id"]))
        aug_food = self.budgets.create(budget_payload(self.food["id"]))

        ids = [row["id"] for row in self.budgets.find_all()]
        self.assertEqual(ids, [aug_food["id"], aug_transport["id"], july["id"]])

    def test_find_by_category_and_month(self):
        first = self.budgets.create(budget_payload(self.food["id"]))
        second = self.budgets.create(budget_payload(self.food["id"], name="Snacks"))
        self.budgets.create(budget_payload(self.food["id"], month="2025-07"))
        self.budgets.create(budget_payload(self.transport["id"]))

        rows = self.budgets.find_by_category_and_month(self.food["id"], "2025-08")
        self.assertEqual([row["id"] for row in rows], [first["id"], second["id"]])
        self.assertEqual(len(self.budgets.find_by_category_id(self.food["id"])), 3)

    def test_find_by_date_range_overlap(self):
        august = self.budgets.create(budget_payload(self.food["id"]))
        september = self.budgets.create(
            budget_payload(self.food["id"], startDate="2025-09-01", endDate="2025-09-30", month="2025-09")
        )

        def ids(start, end):
            return [row["id"] for row in self.budgets.find_by_date_range(start, end)]

        self.assertEqual(ids("2025-08-15", "2025-09-05"), [august["id"], september["id"]])
        self.assertEqual(ids("2025-08-01", "2025-08-10"), [august["id"]])
        self.assertEqual(ids("2025-09-30", "2025-10-15"), [september["id"]])
        self.assertEqual(ids("2025-10-01", "2025-10-31"), [])

    def test_find_by_period_and_month(self):
        self.budgets.create(budget_payload(self.food["id"], period="weekly"))
        self.budgets.create(budget_payload(self.transport["id"], month="2025-09"))

        self.assertEqual(len(self.budgets.find_by_period("weekly")), 1)
        self.assertEqual(len(self.budgets.find_by_period("yearly")), 0)
        self.assertEqual([row["month"] for row in self.budgets.find_by_month("2025-09")], ["2025-09"])
        self.assertEqual(
            [row["month"] for row in self.budgets.get_active_budgets("2025-08")],
            ["2025-09", "2025-08"],
        )

    def test_with_category_joins(self):
        created = self.budgets.create(budget_payload(self.food["id"]))
        self.budgets.create(budget_payload(self.transport["id"], month="2025-09"))

        row = self.budgets.find_by_id_with_category(created["id"])
        self.assertEqual(row["categoryName"], "Food")
        self.assertEqual(row["categoryType"], "expense")
        self.assertEqual(row["categoryIcon"], "🍚")

        self.assertEqual(
            [row["categoryName"] for row in self.budgets.find_all_with_category()],
            ["Transport", "Food"],
        )
        self.assertEqual(
            [row["categoryName"] for row in self.budgets.find_by_month_with_category("2025-08")],
            ["Food"],
        )
        self.assertIsNone(self.budgets.find_by_id_with_category(404))

    def test_missing_category_yields_null_join_columns(self):
        service = make_service(foreign_keys=False)
        try:
            budgets = BudgetRepository(service)
            created = budgets.create(budget_payload(42))
            row = budgets.find_by_id_with_category(created["id"])
            self.assertEqual(row["categoryId"], 42)
            self.assertIsNone(row["categoryName"])
            self.assertIsNone(row["categoryType"])
        finally:
            service.close_database()

    def test_partial_update(self):
        created = self.budgets.create(budget_payload(self.food["id"]))
        self.assertTrue(self.budgets.update(created["id"], {"isBudgetExceeded": True, "amount": 750}))

        updated = self.budgets.find_by_id(created["id"])
        self.assertIs(updated["isBudgetExceeded"], True)
        self.assertEqual(updated["amount"], 750)
        for key in ("name", "categoryId", "period", "startDate", "endDate", "month", "isRegular"):
            self.assertEqual(updated[key], created[key])

    def test_writes_emit_budget_updated(self):
        events = self.record_events()
        created = self.budgets.create(budget_payload(self.food["id"]))
        self.budgets.delete(created["id"])
        self.assertEqual(events, [BUDGET_UPDATED, BUDGET_UPDATED])


class TestTransactionRepository(RepositoryTestCase):
    def setUp(self):
        super().setUp()
        self.food = self.categories.create(category_payload(name="Food", icon="🍚"))
        self.transport = self.categories.create(category_payload(name="Transport", icon="🚌"))
        self.salary = self.categories.create(category_payload(name="Salary", icon="💰", type="income"))
        self.food_budget = self.budgets.create(budget_payload(self.food["id"], amount=50))
        self.transport_budget = self.budgets.create(
            budget_payload(self.transport["id"], name="Transport", amount=1000)
        )

    def add(self, amount, category, budget, date, type="expense", description=None):
        return self.transactions.create(
            {
                "amount": amount,
                "categoryId": category["id"],
                "budgetId": budget["id"],
                "description": description,
                "date": date,
                "type": type,
            }
        )

    def test_create_round_trip(self):
        payload = {
            "amount": 12.5,
            "categoryId": self.food["id"],
            "budgetId": self.food_budget["id"],
            "date": "2025-08-03",
            "type": "expense",
        }
        created = self.transactions.create(payload)
        found = self.transactions.find_by_id(created["id"])

        self.assertEqual(found, created)
        for key, value in payload.items():
            self.assertEqual(found[key], value)
        self.assertIsNone(found["description"])

    def test_invalid_references_rejected(self):
        with self.assertRaises(ConstraintViolation):
            self.transactions.create(
                {"amount": 1, "categoryId": self.food["id"], "budgetId": 404, "date": "2025-08-01", "type": "expense"}
            )

    def test_find_all_newest_first(self):
        self.add(1, self.food, self.food_budget, "2025-08-02")
        self.add(2, self.food, self.food_budget, "2025-08-09")
        self.add(3, self.food, self.food_budget, "2025-08-05")
        self.assertEqual([row["amount"] for row in self.transactions.find_all()], [2, 3, 1])

    def test_find_by_date_range_is_inclusive(self):
        self.add(1, self.food, self.food_budget, "2025-07-31")
        self.add(2, self.food, self.food_budget, "2025-08-01")
        self.add(3, self.food, self.food_budget, "2025-08-31")
        self.add(4, self.food, self.food_budget, "2025-09-01")

        rows = self.transactions.find_by_date_range("2025-08-01", "2025-08-31")
        self.assertEqual([row["amount"] for row in rows], [3, 2])

    def test_find_by_category_and_budget(self):
        self.add(1, self.food, self.food_budget, "2025-08-02")
        self.add(2, self.transport, self.transport_budget, "2025-08-03")
        self.add(3, self.transport, self.transport_budget, "2025-08-04")

        self.assertEqual([row["amount"] for row in self.transactions.find_by_category_id(self.food["id"])], [1])
        self.assertEqual(
            [row["amount"] for row in self.transactions.find_by_budget_id(self.transport_budget["id"])],
            [3, 2],
        )

    def test_with_category_joins(self):
        created = self.add(30, self.food, self.food_budget, "2025-08-02", description="Lunch")
        self.add(40, self.transport, self.transport_budget, "2025-09-02")

        row = self.transactions.find_by_id_with_category(created["id"])
        self.assertEqual(row["categoryName"], "Food")
        self.assertEqual(row["categoryIcon"], "🍚")
        self.assertEqual(row["description"], "Lunch")

        self.assertEqual(
            [row["categoryName"] for row in self.transactions.find_all_with_category()],
            ["Transport", "Food"],
        )
        ranged = self.transactions.find_by_date_range_with_category("2025-08-01", "2025-08-31")
        self.assertEqual([row["categoryName"] for row in ranged], ["Food"])

    def test_totals_and_category_summary(self):
        self.add(30, self.food, self.food_budget, "2025-08-02")
        self.add(100, self.transport, self.transport_budget, "2025-08-03")
        self.add(50, self.salary, self.food_budget, "2025-08-04", type="income")

        self.assertEqual(self.transactions.get_total_expense(), 130)
        self.assertEqual(self.transactions.get_total_income(), 50)

        summary = self.transactions.get_summary_by_category("2025-08-01", "2025-08-31")
        self.assertEqual(
            [(row["categoryName"], row["total"], row["count"]) for row in summary],
            [("Transport", 100, 1), ("Salary", 50, 1), ("Food", 30, 1)],
        )

    def test_category_summary_groups_rows(self):
        self.add(10, self.food, self.food_budget, "2025-08-02")
        self.add(15, self.food, self.food_budget, "2025-08-03")
        self.add(99, self.food, self.food_budget, "2025-09-03")

        summary = self.transactions.get_summary_by_category("2025-08-01", "2025-08-31")
        self.assertEqual(len(summary), 1)
        self.assertEqual(summary[0]["categoryId"], self.food["id"])
        self.assertEqual(summary[0]["total"], 25)
        self.assertEqual(summary[0]["count"], 2)

    def test_totals_default_to_zero_and_accept_range(self):
        self.assertEqual(self.transactions.get_total_expense(), 0)
        self.assertEqual(self.transactions.get_total_income(), 0)

        self.add(20, self.food, self.food_budget, "2025-07-20")
        self.add(5, self.food, self.food_budget, "2025-08-20")
        self.assertEqual(self.transactions.get_total_expense("2025-08-01", "2025-08-31"), 5)
        self.assertEqual(self.transactions.get_total_expense(end_date="2025-07-31"), 20)

    def test_budget_summary(self):
        rent = self.categories.create(category_payload(name="Rent"))
        rent_budget = self.budgets.create(budget_payload(rent["id"], name="Rent", amount=900))
        self.budgets.create(
            budget_payload(rent["id"], name="Last year", startDate="2024-08-01", endDate="2024-08-31", month="2024-08")
        )
        self.add(30, self.food, self.food_budget, "2025-08-02")
        self.add(50, self.food, self.food_budget, "2025-08-10")
        self.add(100, self.transport, self.transport_budget, "2025-08-11")
        self.add(500, self.transport, self.transport_budget, "2025-10-11")

        summary = self.transactions.get_summary_by_budget("2025-08-01", "2025-08-31")
        by_id = {row["budgetId"]: row for row in summary}

        self.assertEqual(set(by_id), {self.food_budget["id"], self.transport_budget["id"], rent_budget["id"]})
        self.assertEqual(by_id[self.food_budget["id"]]["totalSpent"], 80)
        self.assertIs(by_id[self.food_budget["id"]]["isExceeded"], True)
        self.assertEqual(by_id[self.transport_budget["id"]]["totalSpent"], 100)
        self.assertIs(by_id[self.transport_budget["id"]]["isExceeded"], False)
        self.assertEqual(by_id[rent_budget["id"]]["totalSpent"], 0)
        self.assertEqual(by_id[rent_budget["id"]]["budgetAmount"], 900)
        self.assertEqual(by_id[rent_budget["id"]]["budgetName"], "Rent")

    def test_partial_update_keeps_other_fields(self):
        created = self.add(30, self.food, self.food_budget, "2025-08-02", description="Lunch")
        self.assertTrue(self.transactions.update(created["id"], {"amount": 35}))

        updated = self.transactions.find_by_id(created["id"])
        self.assertEqual(updated["amount"], 35)
        for key in ("categoryId", "budgetId", "description", "date", "type"):
            self.assertEqual(updated[key], created[key])
        self.assertFalse(self.transactions.update(404, {"amount": 1}))

    def test_writes_emit_transaction_updated(self):
        events = self.record_events()
        created = self.add(30, self.food, self.food_budget, "2025-08-02")
        self.transactions.update(created["id"], {"description": "Dinner"})
        self.assertEqual(events, [TRANSACTION_UPDATED, TRANSACTION_UPDATED])


class TestBankBalanceRepository(RepositoryTestCase):
    def test_create_round_trip(self):
        payload = {"year": 2025, "month": 3, "openingBalance": 1000.5, "closingBalance": 1200}
        created = self.balances.create(payload)
        found = self.balances.find_by_year_month(2025, 3)

        self.assertEqual(found, created)
        for key, value in payload.items():
            self.assertEqual(found[key], value)

    def test_year_month_unique(self):
        self.balances.create({"year": 2025, "month": 3, "openingBalance": 0, "closingBalance": 0})
        with self.assertRaises(ConstraintViolation):
            self.balances.create({"year": 2025, "month": 3, "openingBalance": 5, "closingBalance": 5})
        self.assertEqual(self.balances.count(), 1)

    def test_month_out_of_range_rejected(self):
        with self.assertRaises(ConstraintViolation):
            self.balances.create({"year": 2025, "month": 13, "openingBalance": 0, "closingBalance": 0})

    def test_initialize_year_is_idempotent(self):
        self.assertEqual(self.balances.initialize_year(2026), 12)
        rows = self.balances.find_by_year(2026)
        self.assertEqual([row["month"] for row in rows], list(range(1, 13)))
        self.assertTrue(all(row["openingBalance"] == 0 and row["closingBalance"] == 0 for row in rows))

        self.assertEqual(self.balances.initialize_year(2026), 0)
        self.assertEqual(self.balances.count(), 12)

    def test_initialize_year_skips_partially_filled_year(self):
        self.balances.create({"year": 2024, "month": 6, "openingBalance": 10, "closingBalance": 20})
        self.assertEqual(self.balances.initialize_year(2024), 0)
        self.assertEqual(self.balances.count(), 1)

    def test_find_all_newest_first(self):
        self.balances.create({"year": 2024, "month": 12, "openingBalance": 0, "closingBalance": 0})
        self.balances.create({"year": 2025, "month": 1, "openingBalance": 0, "closingBalance": 0})
        self.balances.create({"year": 2025, "month": 2, "openingBalance": 0, "closingBalance": 0})

        self.assertEqual(
            [(row["year"], row["month"]) for row in self.balances.find_all()],
            [(2025, 2), (2025, 1), (2024, 12)],
        )

    def test_update_balances(self):
        created = self.balances.create({"year": 2025, "month": 8, "openingBalance": 1000, "closingBalance": 1000})
        self.assertTrue(self.balances.update(created["id"], {"closingBalance": 1200}))

        updated = self.balances.find_by_id(created["id"])
        self.assertEqual(updated["closingBalance"], 1200)
        self.assertEqual(updated["openingBalance"], 1000)

    def test_writes_emit_no_events(self):
        events = self.record_events()
        created = self.balances.create({"year": 2025, "month": 8, "openingBalance": 0, "closingBalance": 0})
        self.balances.delete(created["id"])
        self.balances.initialize_year(2030)
        self.assertEqual(events, [])


if __name__ == "__main__":
    unittest.main()
