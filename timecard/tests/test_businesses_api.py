def test_employer_creates_business_and_adds_staff(client, auth_headers):
    employer = auth_headers()

    resp = client.post("/businesses", headers=employer, json={"name": "  Corner Cafe ", "timezone": "America/Chicago"})
    assert resp.status_code == 201, resp.text
    business = resp.json()
    assert business["name"] == "Corner Cafe"
    assert business["employer_id"] == "employer-1"
    assert business["timezone"] == "America/Chicago"
    business_id = business["business_id"]

    resp = client.post(
        f"/businesses/{business_id}/employees",
        headers=employer,
        json={"user_id": "worker-a", "full_name": "Ana"},
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["user_id"] == "worker-a"

    resp = client.post(f"/businesses/{business_id}/employees", headers=employer, json={"user_id": "worker-a"})
    assert resp.status_code == 409

    resp = client.post(f"/businesses/{business_id}/employees", headers=employer, json={"user_id": "worker-b"})
    assert resp.status_code == 422
    assert resp.json()["field"] == "full_name"

    resp = client.get(f"/businesses/{business_id}/employees", headers=employer)
    assert [e["full_name"] for e in resp.json()] == ["Ana"]


def test_existing_profile_joins_a_second_business(client, auth_headers):
    employer = auth_headers()
    first = client.post("/businesses", headers=employer, json={"name": "Cafe"}).json()["business_id"]
    second = client.post("/businesses", headers=employer, json={"name": "Bakery"}).json()["business_id"]

    a = client.post(f"/businesses/{first}/employees", headers=employer, json={"user_id": "worker-a", "full_name": "Ana"})
    b = client.post(f"/businesses/{second}/employees", headers=employer, json={"user_id": "worker-a"})
    assert b.status_code == 201, b.text
    assert a.json()["id"] == b.json()["id"]


def test_business_visibility(client, auth_headers, business_factory, employee_factory):
    business = business_factory()
    employee_factory(business, user_id="worker-a")

    assert client.get(f"/businesses/{business.business_id}", headers=auth_headers()).status_code == 200
    assert client.get(f"/businesses/{business.business_id}", headers=auth_headers("worker-a", "employee")).status_code == 200

    resp = client.get(f"/businesses/{business.business_id}", headers=auth_headers("other-employer", "employer"))
    assert resp.status_code == 403

    resp = client.get("/businesses/missing", headers=auth_headers())
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"

    resp = client.post("/businesses", headers=auth_headers("worker-a", "employee"), json={"name": "Nope"})
    assert resp.status_code == 403

    resp = client.post("/businesses", headers=auth_headers(), json={"name": "   "})
    assert resp.status_code == 422
