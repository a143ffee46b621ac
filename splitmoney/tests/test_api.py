"""
End-to-end tests through the HTTP API.
"""

import pytest
from decimal import Decimal


def create_group_with_members(client, name="Weekend Trip", members=("Alice", "Bob", "Carol")):
    group = client.post("/groups/", json={"name": name}).json()
    member_ids = [
        client.post(f"/groups/{group['slug']}/members", json={"name": member}).json()["id"]
        for member in members
    ]
    return group["slug"], member_ids


def post_expense(client, slug, paid_by, amount, split, description="Dinner"):
    return client.post(f"/expenses/groups/{slug}", json={
        "paid_by": paid_by,
        "amount": amount,
        "description": description,
        "date": "2024-03-01T19:00:00Z",
        "split": split
    })


def as_decimals(rows, key="total_owed"):
    return {row["member_id"]: Decimal(row[key]) for row in rows}


@pytest.mark.integration
class TestServiceEndpoints:

    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "Split Money API"
        assert client.get("/health").status_code == 200


@pytest.mark.integration
class TestGroupEndpoints:

    def test_group_lifecycle(self, client):
        created = client.post("/groups/", json={"name": "Ski Trip", "description": "Alps"})
        assert created.status_code == 201
        assert created.json()["slug"] == "ski-trip"

        renamed = client.patch("/groups/ski-trip", json={"name": "Ski Week"})
        assert renamed.json()["slug"] == "ski-week"

        assert client.get("/groups/ski-trip").status_code == 404
        assert client.delete("/groups/ski-week").status_code == 200
        assert client.get("/groups/").json() == []

    def test_member_validation(self, client):
        slug, _ = create_group_with_members(client, members=())

        assert client.post(f"/groups/{slug}/members", json={"name": "  "}).status_code == 422
        assert client.post(f"/groups/{slug}/members", json={"name": "Eve", "email": "bad"}).status_code == 422

        client.post(f"/groups/{slug}/members", json={"name": "Eve", "email": "eve@example.com"})
        duplicate = client.post(f"/groups/{slug}/members", json={"name": "Eva", "email": "eve@example.com"})
        assert duplicate.status_code == 409

    def test_group_details_list_members(self, client):
        slug, member_ids = create_group_with_members(client)

        details = client.get(f"/groups/{slug}").json()

        assert [m["id"] for m in details["members"]] == member_ids
        assert [m["name"] for m in details["members"]] == ["Alice", "Bob", "Carol"]


@pytest.mark.integration
class TestExpenseAndBalanceFlow:

    def test_full_flow(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)

        created = post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]})
        assert created.status_code == 201
        expense = created.json()
        assert expense["splits_valid"] is True
        assert {s["member_id"]: Decimal(s["amount"]) for s in expense["splits"]} == {
            alice: Decimal("30"), bob: Decimal("30"), carol: Decimal("30")
        }

        balances = client.get(f"/balances/groups/{slug}").json()
        assert as_decimals(balances) == {alice: Decimal("-60"), bob: Decimal("30"), carol: Decimal("30")}

        debts = client.get(f"/balances/groups/{slug}/debts").json()
        assert [(d["from_member_name"], d["to_member_name"], Decimal(d["amount"])) for d in debts] == [
            ("Bob", "Alice", Decimal("30")),
            ("Carol", "Alice", Decimal("30")),
        ]

        settlement = client.post(f"/settlements/groups/{slug}", json={
            "from_member_id": bob, "to_member_id": alice, "amount": "30"
        })
        assert settlement.status_code == 201

        settled = as_decimals(client.get(f"/balances/groups/{slug}/settled").json())
        assert settled[bob] == Decimal("0")
        assert settled[alice] == Decimal("-30")

        summary = client.get(f"/balances/groups/{slug}/summary").json()
        assert [s["member_name"] for s in summary] == ["Alice", "Bob", "Carol"]

    def test_overview_refreshes_after_mutation(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)

        empty = client.get(f"/balances/groups/{slug}/overview").json()
        assert empty["debts"] == []

        post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]})

        overview = client.get(f"/balances/groups/{slug}/overview").json()
        assert len(overview["debts"]) == 2
        assert as_decimals(overview["summary"])[alice] == Decimal("-60")

    def test_invalid_split_returns_all_errors(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)

        response = post_expense(client, slug, alice, "100", {
            "type": "percentage",
            "percentages": {alice: "120", bob: "-20", carol: "100"}
        })

        assert response.status_code == 400
        assert len(response.json()["detail"]) == 2

    def test_duplicate_split_member_rejected(self, client):
        slug, (alice, bob, _) = create_group_with_members(client)

        response = post_expense(client, slug, alice, "30", {"type": "equal", "member_ids": [alice, alice, bob]})

        assert response.status_code == 400
        assert response.json()["detail"] == [f"Member {alice} is selected more than once"]
        assert client.get(f"/expenses/groups/{slug}").json() == []

    def test_null_amount_in_update_ignored(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)
        expense = post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]}).json()

        updated = client.patch(f"/expenses/{expense['id']}", json={
            "amount": None,
            "split": {"type": "equal", "member_ids": [alice, bob]}
        })

        assert updated.status_code == 200
        assert Decimal(updated.json()["amount"]) == Decimal("90")
        assert {s["member_id"]: Decimal(s["amount"]) for s in updated.json()["splits"]} == {
            alice: Decimal("45"), bob: Decimal("45")
        }

    def test_member_splits_and_settlements(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)
        post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]})
        client.post(f"/settlements/groups/{slug}", json={
            "from_member_id": bob, "to_member_id": alice, "amount": "30"
        })

        splits = client.get(f"/expenses/members/{bob}/splits").json()
        assert [(s["member_id"], Decimal(s["amount"])) for s in splits] == [(bob, Decimal("30"))]

        settlements = client.get(f"/settlements/members/{alice}").json()
        assert [(s["from_member_id"], Decimal(s["amount"])) for s in settlements] == [(bob, Decimal("30"))]
        assert client.get(f"/settlements/members/{carol}").json() == []

    def test_unknown_split_type(self, client):
        slug, (alice, bob, _) = create_group_with_members(client)

        response = post_expense(client, slug, alice, "100", {"type": "shares", "member_ids": [alice, bob]})

        assert response.status_code == 422

    def test_update_and_delete_expense(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)
        expense = post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]}).json()

        updated = client.patch(f"/expenses/{expense['id']}", json={
            "amount": "50",
            "split": {"type": "custom", "amounts": {alice: "10", bob: "40"}}
        })
        assert updated.status_code == 200
        assert {s["member_id"] for s in updated.json()["splits"]} == {alice, bob}

        balances = as_decimals(client.get(f"/balances/groups/{slug}").json())
        assert balances == {alice: Decimal("-40"), bob: Decimal("40"), carol: Decimal("0")}

        assert client.delete(f"/expenses/{expense['id']}").status_code == 200
        assert client.get(f"/expenses/{expense['id']}").status_code == 404

    def test_settle_split_and_filter(self, client):
        slug, (alice, bob, _) = create_group_with_members(client)
        expense = post_expense(client, slug, alice, "20", {"type": "equal", "member_ids": [alice, bob]}).json()

        for split in expense["splits"]:
            response = client.patch(f"/expenses/splits/{split['id']}/settle")
            assert response.json()["settled"] is True

        assert client.get(f"/expenses/groups/{slug}", params={"unsettled_only": "true"}).json() == []
        assert len(client.get(f"/expenses/groups/{slug}").json()) == 1

    def test_date_range_requires_both_bounds(self, client):
        slug, _ = create_group_with_members(client)

        response = client.get(f"/expenses/groups/{slug}", params={"start_date": "2024-01-01T00:00:00Z"})

        assert response.status_code == 400

    def test_preview(self, client):
        response = client.post("/expenses/splits/preview", json={
            "amount": "100",
            "split": {"type": "equal", "member_ids": ["a", "b", "c"]}
        })

        body = response.json()
        assert body["is_valid"] is True
        assert [Decimal(s["amount"]) for s in body["splits"]] == [
            Decimal("33.34"), Decimal("33.33"), Decimal("33.33")
        ]

    def test_self_settlement_rejected(self, client):
        slug, (alice, _, _) = create_group_with_members(client)

        response = client.post(f"/settlements/groups/{slug}", json={
            "from_member_id": alice, "to_member_id": alice, "amount": "10"
        })

        assert response.status_code == 400


@pytest.mark.integration
class TestExpenseAnalyticsEndpoints:

    def test_group_spending_views(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)
        post_expense(client, slug, alice, "90", {"type": "equal", "member_ids": [alice, bob, carol]})
        post_expense(client, slug, bob, "600", {"type": "equal", "member_ids": [alice, bob]})

        categories = client.get(f"/analytics/groups/{slug}/categories").json()
        assert [(c["category"], Decimal(c["total_amount"])) for c in categories] == [("other", Decimal("690"))]

        members = client.get(f"/analytics/groups/{slug}/members").json()
        assert [m["member_name"] for m in members] == ["Bob", "Alice", "Carol"]
        assert Decimal(members[0]["net_amount"]) == Decimal("300")

        months = client.get(f"/analytics/groups/{slug}/periods").json()
        assert [m["period"] for m in months] == ["2024-03"]
        weeks = client.get(f"/analytics/groups/{slug}/periods", params={"period": "weekly"}).json()
        assert [w["period"] for w in weeks] == ["2024-W09"]
        assert client.get(f"/analytics/groups/{slug}/periods", params={"period": "daily"}).status_code == 422

        days = client.get(f"/analytics/groups/{slug}/patterns/days").json()
        assert [(d["day"], d["count"]) for d in days] == [("Friday", 2)]

        amounts = client.get(f"/analytics/groups/{slug}/patterns/amounts").json()
        assert [a["range"] for a in amounts] == ["$50 - $100", "$500+"]

        assert len(client.get(f"/analytics/groups/{slug}/patterns/categories").json()) == 1
        assert client.get(f"/analytics/groups/{slug}/spending-trends").status_code == 200

    def test_group_comparison(self, client):
        trip, (alice, bob, _) = create_group_with_members(client, name="Trip")
        home, (dana,) = create_group_with_members(client, name="Home", members=("Dana",))
        post_expense(client, trip, alice, "90", {"type": "equal", "member_ids": [alice, bob]})
        post_expense(client, home, dana, "200", {"type": "equal", "member_ids": [dana]})

        comparison = client.get("/analytics/comparison", params={"slugs": [trip, home]}).json()
        assert [c["group_slug"] for c in comparison] == [trip, home]
        assert [(t["member_name"], Decimal(t["total_paid"])) for t in comparison[1]["top_spenders"]] == [
            ("Dana", Decimal("200"))
        ]

        summary = client.get("/analytics/comparison/summary", params={"slugs": [trip, home]}).json()
        assert summary["total_groups"] == 2
        assert summary["highest_spending_group"]["name"] == "Home"

        assert client.get("/analytics/comparison", params={"slugs": [trip, "missing"]}).status_code == 404


@pytest.mark.integration
class TestAnalyticsEndpoints:

    def test_analytics_and_alerts(self, client):
        slug, (alice, bob, carol) = create_group_with_members(client)
        post_expense(client, slug, alice, "300", {"type": "equal", "member_ids": [alice, bob, carol]})

        summary = client.get(f"/balances/groups/{slug}/analytics/summary").json()
        assert summary["members_owing"] == 2
        assert Decimal(summary["total_owed"]) == Decimal("200")

        distribution = client.get(f"/balances/groups/{slug}/analytics/distribution").json()
        assert {d["range"] for d in distribution} == {"< -$100", "> $100"}

        assert len(client.get(f"/balances/groups/{slug}/analytics/trends").json()) == 1
        assert len(client.get(f"/balances/groups/{slug}/analytics/members").json()) == 3

        alerts = client.get(f"/balances/groups/{slug}/alerts", params={"current_member_id": bob}).json()
        assert alerts[0]["severity"] == "error"
        assert alerts[0]["member_id"] == alice

        quiet = client.post(f"/balances/groups/{slug}/alerts", json={"enabled": False}).json()
        assert quiet == []

    def test_member_balance_not_found(self, client):
        slug, _ = create_group_with_members(client)

        assert client.get(f"/balances/groups/{slug}/members/nobody").status_code == 404
