from .fakes import ALICE, BOB


def category_payload(name="Garden", emoji="🌻", color="#FFF3C4"):
    return {"name": name, "emoji": emoji, "color": color}


def create_category(client, auth=ALICE, **kwargs) -> dict:
    res = client.post("/api/v1/categories/", json=category_payload(**kwargs), auth=auth)
    assert res.status_code == 201, res.text
    return res.json()


class TestCategoriesCRUD:
    def test_create_and_list(self, client):
        created = create_category(client, name="  Garden ")
        assert created["name"] == "Garden"

        res = client.get("/api/v1/categories/", auth=ALICE)
        assert res.status_code == 200
        assert [c["id"] for c in res.json()] == [created["id"]]
        # Other users do not see it
        assert client.get("/api/v1/categories/", auth=BOB).json() == []

    def test_duplicate_name(self, client):
        create_category(client, name="Work")
        res = client.post("/api/v1/categories/", json=category_payload(name="Work"), auth=ALICE)
        assert res.status_code == 409
        assert res.json()["error"] == "DuplicateName"

        # The same name is fine for another user
        create_category(client, auth=BOB, name="Work")

    def test_patch_category(self, client):
        cat = create_category(client)
        res = client.patch(f"/api/v1/categories/{cat['id']}", json={"emoji": "🌷"}, auth=ALICE)
        assert res.status_code == 200
        assert res.json()["emoji"] == "🌷"
        assert res.json()["name"] == "Garden"

        res_other = client.patch(f"/api/v1/categories/{cat['id']}", json={"emoji": "🌷"}, auth=BOB)
        assert res_other.status_code == 404

    def test_delete_unreferenced(self, client):
        cat = create_category(client)
        res = client.delete(f"/api/v1/categories/{cat['id']}", auth=ALICE)
        assert res.status_code == 204
        assert client.get("/api/v1/categories/", auth=ALICE).json() == []

    def test_delete_referenced_conflicts(self, client):
        cat = create_category(client)
        res_todo = client.post(
            "/api/v1/todos/",
            json={
                "title": "Weed",
                "emoji": "🌱",
                "category_id": cat["id"],
                "due_date": "2024-01-15",
                "recurrence": "weekly",
            },
            auth=ALICE,
        )
        assert res_todo.status_code == 201

        res = client.delete(f"/api/v1/categories/{cat['id']}", auth=ALICE)
        assert res.status_code == 409
        assert res.json()["error"] == "ReferentialConflict"

        # Removing the reference makes the delete succeed
        client.patch(f"/api/v1/todos/{res_todo.json()['id']}", json={"category_id": None}, auth=ALICE)
        assert client.delete(f"/api/v1/categories/{cat['id']}", auth=ALICE).status_code == 204

    def test_invalid_color(self, client):
        res = client.post("/api/v1/categories/", json=category_payload(color="purple"), auth=ALICE)
        assert res.status_code == 422


class TestDefaults:
    def test_defaults_seeded_once(self, client):
        res = client.post("/api/v1/categories/defaults", auth=ALICE)
        assert res.status_code == 200
        names = [c["name"] for c in res.json()]
        assert names == ["Clean Home", "Self-Care", "Work"]

        again = client.post("/api/v1/categories/defaults", auth=ALICE).json()
        assert [c["id"] for c in again] == [c["id"] for c in res.json()]

    def test_defaults_require_auth(self, client):
        assert client.post("/api/v1/categories/defaults").status_code == 401


class TestUnauthenticated:
    def test_list_is_empty_and_create_fails(self, client):
        create_category(client)
        assert client.get("/api/v1/categories/").json() == []
        res = client.post("/api/v1/categories/", json=category_payload(name="Other"))
        assert res.status_code == 401
        assert res.json()["error"] == "Unauthenticated"
