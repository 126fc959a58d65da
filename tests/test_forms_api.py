import json

from intakeform.errors import StoreError

FIELDS = [
    {"label": "VIN", "type": "text", "required": True},
    {"label": "Notes", "type": "textarea", "required": False},
    {"label": "Mileage", "type": "number", "required": False},
    {"label": "Roadworthy", "type": "checkbox", "required": False},
    {"label": "Inspection date", "type": "date", "required": True},
    {"label": "Photos", "type": "file", "required": False},
]


def test_create_then_get_preserves_fields(client):
    res = client.post("/api/forms", json={"name": "Vehicle check", "fields": FIELDS})
    assert res.status_code == 201
    created = res.json()
    assert created["id"]
    assert created["createdAt"]

    fetched = client.get(f"/api/forms/{created['id']}").json()
    assert fetched["name"] == "Vehicle check"
    assert fetched["fields"] == FIELDS
    assert fetched["createdAt"] == created["createdAt"]


def test_required_defaults_to_false(client):
    res = client.post("/api/forms", json={"name": "Short", "fields": [{"label": "A", "type": "text"}]})
    assert res.json()["fields"] == [{"label": "A", "type": "text", "required": False}]


def test_list_forms_returns_summaries_in_creation_order(client):
    names = ["First", "Second", "Third"]
    for name in names:
        client.post("/api/forms", json={"name": name, "fields": []})
    res = client.get("/api/forms")
    assert res.status_code == 200
    items = res.json()
    assert [item["name"] for item in items] == names
    assert all(set(item) == {"id", "name"} for item in items)


def test_create_form_validation_errors(client):
    res = client.post("/api/forms", json={"name": "", "fields": [{"label": "X", "type": "radio"}]})
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "Invalid form data"
    assert len(body["details"]) == 2


def test_create_form_rejects_invalid_json(client):
    res = client.post(
        "/api/forms", content=b"{name", headers={"content-type": "application/json"}
    )
    assert res.status_code == 400
    assert "error" in res.json()


def test_get_unknown_and_malformed_form(client):
    assert client.get("/api/forms/01HZZZZZZZZZZZZZZZZZZZZZZZ").status_code == 404
    res = client.get("/api/forms/not-an-id")
    assert res.status_code == 404
    assert res.json() == {"error": "Form not found"}


def test_update_form_replaces_name_and_fields(client, intake_form):
    new_fields = [
        {"label": "Plate", "type": "text", "required": False},
        {"label": "VIN", "type": "text", "required": True},
    ]
    res = client.put(
        f"/api/forms/{intake_form['id']}", json={"name": "Intake v2", "fields": new_fields}
    )
    assert res.status_code == 200
    updated = res.json()
    assert updated["name"] == "Intake v2"
    assert updated["fields"] == new_fields
    assert updated["createdAt"] == intake_form["createdAt"]
    assert updated["id"] == intake_form["id"]


def test_update_form_errors(client, intake_form):
    res = client.put("/api/forms/01HZZZZZZZZZZZZZZZZZZZZZZZ", json={"name": "X", "fields": []})
    assert res.status_code == 404
    res = client.put(f"/api/forms/{intake_form['id']}", json={"fields": []})
    assert res.status_code == 400


def test_delete_form_is_idempotent(client, intake_form):
    first = client.delete(f"/api/forms/{intake_form['id']}")
    assert first.status_code == 200
    assert "message" in first.json()
    second = client.delete(f"/api/forms/{intake_form['id']}")
    assert second.status_code == 200
    assert client.delete("/api/forms/garbage").status_code == 200
    assert client.get(f"/api/forms/{intake_form['id']}").status_code == 404


def test_delete_form_cascades(client, intake_form, blobs):
    form_id = intake_form["id"]
    res = client.post(
        f"/api/forms/{form_id}/submissions",
        data={"data": json.dumps({"answers": {"VIN": "1HGCM82633A004352"}})},
        files=[("photos", ("front.jpg", b"front", "image/jpeg"))],
    )
    assert res.status_code == 201
    photo = res.json()["photos"][0]
    assert blobs.exists(photo)

    other = client.post("/api/forms", json={"name": "Other", "fields": []}).json()
    client.post(f"/api/forms/{other['id']}/submissions", data={"data": "{}"})

    client.delete(f"/api/forms/{form_id}")

    assert client.get(f"/api/submissions?form={form_id}").json() == []
    assert not blobs.exists(photo)
    remaining = client.get("/api/submissions").json()
    assert [item["form"] for item in remaining] == [other["id"]]


def test_store_failure_maps_to_500(client, storage, monkeypatch):
    def broken():
        raise StoreError("Database operation failed")

    monkeypatch.setattr(storage.forms, "list_forms", broken)
    res = client.get("/api/forms")
    assert res.status_code == 500
    assert res.json() == {"error": "Database operation failed"}


def test_export_submissions_csv(client, intake_form):
    form_id = intake_form["id"]
    client.post(
        f"/api/forms/{form_id}/submissions",
        data={"data": json.dumps({"answers": {"VIN": "ABC"}, "_notes": "check brakes"})},
    )
    res = client.get(f"/api/forms/{form_id}/export")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    lines = res.text.strip().splitlines()
    assert lines[0] == "submittedAt,VIN,photos,notes"
    assert lines[1].endswith(",ABC,,check brakes")


def test_export_rejects_unknown_format(client, intake_form):
    res = client.get(f"/api/forms/{intake_form['id']}/export?format=xlsx")
    assert res.status_code == 400
