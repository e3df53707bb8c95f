from fintrack.domain import Goal, Investment, State, Subscription, Transaction
from fintrack.services import ReportService, recent_calculator


def make_tx(id, category, amount, type="expense", date="2025-09-01"):
    return Transaction(id=id, date=date, category=category, amount=amount, type=type, notes="")


def sample_state():
    return State(
        transactions=(
            make_tx("t1", "Salary", 50000, "income", "2025-09-01"),
            make_tx("t2", "Food", 8000, "expense", "2025-09-03"),
            make_tx("t3", "Rent", 15000, "expense", "2025-09-02"),
        ),
        goals=(Goal(id="g1", name="Trip", target=1000, current=500),),
        investments=(Investment(id="i1", ticker="ABC", qty=2, buy_price=10, current_price=15),),
        subscriptions=(Subscription(id="s1", name="Gym", amount=1500, due_day=28),),
    )


def test_report_contains_everything_a_renderer_needs():
    report = ReportService().build(sample_state())
    result = report["result"]

    assert result["totals"]["income"] == 50000
    assert result["totals"]["expense"] == 23000
    assert result["health"] == {"score": 100, "label": "strong"}
    assert result["categories"] == {"Food": 8000, "Rent": 15000}
    assert "Rent alone takes 30%" in result["insight"]
    assert result["goals"][0]["progress"] == 50.0
    assert result["investments"][0]["pnl"] == 10
    assert result["portfolio"]["value"] == 30
    assert result["burn_rate"] == 1500
    assert [r["date"] for r in result["recent"]] == ["2025-09-03", "2025-09-02", "2025-09-01"]


def test_report_steps_and_validation():
    report = ReportService().build(State())

    messages = [m for v in report["validation"] for m in v["messages"]]
    assert messages == ["No transactions recorded", "No budget set"]
    assert [s["calculator"] for s in report["steps"]] == [
        "calc_totals", "calc_categories", "calc_goals", "calc_investments", "calc_subscriptions", "calc_recent",
    ]


def test_custom_calculators_share_results():
    def calc_count(state, acc):
        return {"count": len(state.transactions)}

    def calc_double(state, acc):
        return {"double": acc["count"] * 2}

    report = ReportService(calculators=[calc_count, calc_double, recent_calculator(1)], validators=[]).build(sample_state())

    assert report["result"]["double"] == 6
    assert len(report["result"]["recent"]) == 1
    assert report["validation"] == []
