NOTES = "/api/v1/notes"


def test_list_notes_hides_document_reference(client, catalog, signed_urls):
    r = client.get(NOTES)

    assert r.status_code == 200
    notes = {n["id"]: n for n in r.json()["notes"]}
    assert set(notes) == {"tax-law-notes", "company-law-notes"}
    assert notes["tax-law-notes"]["price"] == "19.99"
    assert notes["company-law-notes"]["preview_url"] == "https://cdn.example.com/previews/company.png"
    assert all("file_url" not in n for n in notes.values())


def test_get_note_and_unknown_note(client, catalog, signed_urls):
    assert client.get(f"{NOTES}/tax-law-notes").json()["title"] == "Tax Law Notes"

    r = client.get(f"{NOTES}/nope")
    assert r.status_code == 404
    assert r.json() == {"detail": "Note introuvable", "error": "not_found"}


def test_download_denied_without_purchase(client, purchase_store, catalog, signed_urls):
    r = client.get(f"{NOTES}/tax-law-notes/download")

    assert r.status_code == 403
    assert r.json()["error"] == "delivery_denied"
    assert signed_urls == []


def test_download_after_purchase_is_not_cached(client, purchase_store, catalog, signed_urls):
    purchase_store.insert_purchase("test-user", "tax-law-notes", "pi_1")

    first = client.get(f"{NOTES}/tax-law-notes/download")
    second = client.get(f"{NOTES}/tax-law-notes/download")

    assert first.status_code == 200
    assert first.json()["url"] != second.json()["url"]
    assert first.json()["expires_in"] == 3600
    assert first.headers["Cache-Control"].startswith("no-store")


def test_download_requires_authentication(client, real_auth, purchase_store, catalog, signed_urls):
    assert client.get(f"{NOTES}/tax-law-notes/download").status_code == 401


def test_preview_is_public(client, real_auth, catalog, signed_urls):
    r = client.get(f"{NOTES}/tax-law-notes/preview")
    assert r.status_code == 200
    assert r.json()["expires_in"] == 3600
    assert client.get(f"{NOTES}/nope/preview").status_code == 404


def test_my_notes_lists_purchases(client, purchase_store, catalog):
    purchase_store.insert_purchase("test-user", "company-law-notes", "pi_1")
    purchase_store.insert_purchase("someone-else", "tax-law-notes", "pi_2")

    r = client.get("/api/v1/users/me/notes")

    assert r.status_code == 200
    notes = r.json()["notes"]
    assert [n["id"] for n in notes] == ["company-law-notes"]
    assert notes[0]["purchased_at"]
    assert "file_url" not in notes[0]


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    info = client.get("/health/rate-limit").json()
    assert info["enabled"] is False
