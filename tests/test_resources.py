import pytest

article = {
    "title": "Bien s'échauffer",
    "type": "article",
    "content": "Cinq minutes de mobilisation articulaire avant chaque séance",
    "tags": ["Échauffement", "genou"]
}

video = {
    "title": "Gainage ventral",
    "type": "video",
    "content": "Démonstration de la planche",
    "url": "https://videos.physiocenter.fr/gainage",
    "visibility": "privé"
}

@pytest.fixture
def library(client, kine_headers):
    created = []
    for payload in (article, video):
        response = client.post("/api/v1/resources", json=payload, headers=kine_headers)
        assert response.status_code == 201
        created.append(response.json()["data"])
    return created

class TestResourceLibrary:

    def test_create_resource(self, client, kine, kine_headers):
        response = client.post("/api/v1/resources", json=video, headers=kine_headers)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["author_id"] == kine.id
        assert data["url"] == "https://videos.physiocenter.fr/gainage"
        assert data["visibility"] == "privé"
        assert data["tags"] == []

    def test_patient_cannot_create(self, client, patient_headers):
        response = client.post("/api/v1/resources", json=article, headers=patient_headers)
        assert response.status_code == 403

    @pytest.mark.parametrize("payload, field", [
        ({**article, "title": "A"}, "title"),
        ({**article, "type": "podcast"}, "type"),
        ({**article, "url": "pas une url"}, "url"),
    ])
    def test_invalid_resource(self, client, kine_headers, payload, field):
        response = client.post("/api/v1/resources", json=payload, headers=kine_headers)
        assert response.status_code == 400
        assert field in response.json()["data"]["errors"]

    def test_public_listing_hides_private(self, client, library):
        response = client.get("/api/v1/resources")
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["data"]] == [library[0]["id"]]

        assert client.get(f"/api/v1/resources/{library[0]['id']}").status_code == 200
        assert client.get(f"/api/v1/resources/{library[1]['id']}").status_code == 404

    def test_staff_listing_includes_private(self, client, admin_headers, library):
        response = client.get("/api/v1/resources/all", headers=admin_headers)
        assert response.status_code == 200
        assert {item["id"] for item in response.json()["data"]} == {item["id"] for item in library}

    @pytest.mark.parametrize("term", ["ÉCHAUFFER", "mobilisation", "échauffement"])
    def test_search_public_resources(self, client, library, term):
        response = client.get(f"/api/v1/resources/search/{term}")
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["data"]] == [library[0]["id"]]

    def test_search_skips_private(self, client, library):
        response = client.get("/api/v1/resources/search/planche")
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_update_and_publish(self, client, kine_headers, library):
        response = client.put(
            f"/api/v1/resources/{library[1]['id']}",
            json={"visibility": "public", "tags": ["gainage"]},
            headers=kine_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["tags"] == ["gainage"]

        assert client.get(f"/api/v1/resources/{library[1]['id']}").status_code == 200

    def test_delete(self, client, admin_headers, library):
        response = client.delete(f"/api/v1/resources/{library[0]['id']}", headers=admin_headers)
        assert response.status_code == 200

        response = client.delete(f"/api/v1/resources/{library[0]['id']}", headers=admin_headers)
        assert response.status_code == 404
