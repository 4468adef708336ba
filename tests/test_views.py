"""Tests for the HTML pages."""


PEOPLE_TEXT = "Ana, 111\nBruno, 222\nClara, 333\n"


def test_landing_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"<textarea" in response.data


def test_draw_from_form_redirects_to_tracking(client):
    response = client.post("/", data={"participants": PEOPLE_TEXT})
    assert response.status_code == 302
    assert "/draws/" in response.headers["Location"]

    page = client.get(response.headers["Location"])
    assert page.status_code == 200
    for name in (b"Ana", b"Bruno", b"Clara"):
        assert name in page.data
    assert b"https://wa.me/55" in page.data


def test_form_validation_error(client):
    response = client.post("/", data={"participants": "Ana, 111\nana, 222"})
    assert response.status_code == 400
    assert b"Duplicate participant name" in response.data
    assert b"ana, 222" in response.data


def test_result_page_and_sent_marking(client, three_people):
    created = client.post("/api/draws", json={"participants": three_people}).get_json()
    draw_id = created["draw_id"]
    token = created["tokens"][0]["token"]

    page = client.get(f"/result/{token}")
    assert page.status_code == 200
    assert created["tokens"][0]["participant"].encode() in page.data

    response = client.post(f"/draws/{draw_id}/sent/{token}")
    assert response.status_code == 302
    rows = client.get(f"/api/draws/{draw_id}").get_json()["tokens"]
    assert rows[0]["sent"] is True and rows[0]["opened"] is True


def test_unknown_pages_are_404(client):
    assert client.get("/result/nope").status_code == 404
    assert client.get("/draws/nope").status_code == 404


def test_form_with_failing_store_shows_links(failing_app):
    client = failing_app.test_client()
    response = client.post("/", data={"participants": PEOPLE_TEXT})
    assert response.status_code == 200
    assert b"could not be saved" in response.data
    assert b"https://wa.me/55111" in response.data


def test_mark_sent_ignores_tokens_of_other_draws(client, three_people):
    first = client.post("/api/draws", json={"participants": three_people}).get_json()
    second = client.post("/api/draws", json={"participants": three_people}).get_json()
    foreign_token = second["tokens"][0]["token"]

    response = client.post(f"/draws/{first['draw_id']}/sent/{foreign_token}")
    assert response.status_code == 302

    page = client.get(response.headers["Location"])
    assert b"Unknown token." in page.data
    for draw in (first, second):
        rows = client.get(f"/api/draws/{draw['draw_id']}").get_json()["tokens"]
        assert not any(row["sent"] for row in rows)


def test_mark_sent_on_unknown_draw(client, three_people):
    created = client.post("/api/draws", json={"participants": three_people}).get_json()
    token = created["tokens"][0]["token"]

    client.post(f"/draws/missing/sent/{token}")
    rows = client.get(f"/api/draws/{created['draw_id']}").get_json()["tokens"]
    assert rows[0]["sent"] is False
