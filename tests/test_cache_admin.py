import pathlib
import sys

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.cache import CACHE_STATUS_HEADER


def test_stats_require_admin(client):
    assert client.get("/api/cache/stats").status_code == 401


def test_stats_reflect_cached_public_reads(client, admin_headers):
    client.get("/api/media/photos")
    client.get("/api/media/photos")
    client.get("/api/contact/info")

    stats = client.get("/api/cache/stats", headers=admin_headers).json()["data"]

    assert stats["medium"]["keys"] == 1
    assert stats["medium"]["hits"] == 1
    assert stats["long"]["keys"] == 1
    assert stats["short"]["ttl_seconds"] == 60


def test_invalidate_endpoint(client, admin_headers):
    client.get("/api/media/photos")
    client.get("/api/media/videos")
    client.get("/api/items")

    response = client.post(
        "/api/cache/invalidate", json={"pattern": "GET:/api/media*"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["cleared"] == 2
    assert client.get("/api/items").headers[CACHE_STATUS_HEADER] == "HIT"
    assert client.get("/api/media/photos").headers[CACHE_STATUS_HEADER] == "MISS"


def test_invalidate_rejects_empty_pattern(client, admin_headers):
    response = client.post("/api/cache/invalidate", json={"pattern": ""}, headers=admin_headers)

    assert response.status_code == 400


def test_flush_endpoint(client, admin_headers):
    client.get("/api/media/photos")
    client.get("/api/media/stats")
    client.get("/api/get-involved/stories")

    response = client.post("/api/cache/flush", headers=admin_headers)

    assert response.json()["cleared"] == 3
    stats = client.get("/api/cache/stats", headers=admin_headers).json()["data"]
    assert sum(tier["keys"] for tier in stats.values()) == 0
