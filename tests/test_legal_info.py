import pytest


def _article(title, category="Property", **extra):
    return {
        "title": title,
        "category": category,
        "summary": f"Summary of {title}",
        "content": f"Everything about {title.lower()}.",
        "tags": ["law", "guide"],
        "readTime": 5,
        **extra,
    }


@pytest.fixture
def publish(client, admin):
    def _publish(title, **kwargs):
        response = client.post("/api/legal-info", json=_article(title, **kwargs), headers=admin["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _publish


def test_only_admin_writes(client, client_user, lawyer, admin):
    assert client.post("/api/legal-info", json=_article("Tenancy")).status_code == 401
    assert client.post("/api/legal-info", json=_article("Tenancy"), headers=client_user["headers"]).status_code == 403
    assert client.post("/api/legal-info", json=_article("Tenancy"), headers=lawyer["headers"]).status_code == 403

    created = client.post("/api/legal-info", json=_article("Tenancy"), headers=admin["headers"])
    assert created.status_code == 201
    data = created.json()["data"]
    assert data["author_id"] == admin["user"]["id"]
    assert data["tags"] == ["law", "guide"]
    assert data["read_time"] == 5
    assert data["views"] == 0


def test_listing_hides_unpublished(client, publish):
    publish("Tenancy")
    publish("Draft", isPublished=False)
    body = client.get("/api/legal-info").json()
    assert body["count"] == 1
    assert [article["title"] for article in body["data"]["articles"]] == ["Tenancy"]


def test_search_and_category(client, publish):
    publish("Tenancy rights")
    publish("Divorce basics", category="Family")
    publish("Hidden tenancy draft", isPublished=False)

    found = client.get("/api/legal-info/search", params={"q": "tenancy"}).json()["data"]["articles"]
    assert [article["title"] for article in found] == ["Tenancy rights"]

    assert client.get("/api/legal-info/search").status_code == 400

    family = client.get("/api/legal-info/category", params={"category": "Family"}).json()["data"]["articles"]
    assert [article["title"] for article in family] == ["Divorce basics"]


def test_reading_counts_views(client, publish):
    article = publish("Tenancy")
    first = client.get(f"/api/legal-info/{article['id']}").json()["data"]
    second = client.get(f"/api/legal-info/{article['id']}").json()["data"]
    assert (first["views"], second["views"]) == (1, 2)

    missing = client.get("/api/legal-info/9999")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Article not found"


def test_unpublished_article_is_readable_by_id(client, publish):
    draft = publish("Draft", isPublished=False)
    assert client.get(f"/api/legal-info/{draft['id']}").status_code == 200


def test_popular(client, publish):
    quiet = publish("Quiet")
    busy = publish("Busy")
    for _ in range(3):
        client.get(f"/api/legal-info/{busy['id']}")
    client.get(f"/api/legal-info/{quiet['id']}")

    popular = client.get("/api/legal-info/popular").json()["data"]
    assert [article["title"] for article in popular] == ["Busy", "Quiet"]


def test_related(client, publish):
    main = publish("Main")
    for title in ("One", "Two", "Three", "Four"):
        publish(title)
    publish("Other category", category="Family")
    publish("Unpublished", isPublished=False)

    related = client.get(f"/api/legal-info/{main['id']}/related").json()["data"]
    titles = [article["title"] for article in related]
    assert len(titles) == 3
    assert "Main" not in titles
    assert "Other category" not in titles
    assert "Unpublished" not in titles

    assert client.get("/api/legal-info/9999/related").status_code == 404


def test_update_and_delete(client, admin, client_user, publish):
    article = publish("Tenancy")
    url = f"/api/legal-info/{article['id']}"

    assert client.put(url, json={"title": "Nope"}, headers=client_user["headers"]).status_code == 403

    updated = client.put(url, json={"title": "Tenancy 2024", "tags": ["rent"], "isPublished": False}, headers=admin["headers"])
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["title"] == "Tenancy 2024"
    assert data["tags"] == ["rent"]
    assert data["is_published"] is False
    assert data["category"] == "Property"

    assert client.delete(url, headers=client_user["headers"]).status_code == 403
    assert client.delete(url, headers=admin["headers"]).status_code == 200
    assert client.delete(url, headers=admin["headers"]).status_code == 404
    assert client.put("/api/legal-info/9999", json={"title": "x"}, headers=admin["headers"]).status_code == 404
