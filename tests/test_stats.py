"""Tests for the diagnostics endpoints."""


def test_rate_limit_stats(client, auth_headers):
    client.get("/api/aircraft/N123AB/summary", headers=auth_headers)
    client.get("/api/aircraft/N456CD/summary", headers=auth_headers)
    client.get("/api/search?q=Cirrus", headers=auth_headers)

    resp = client.get("/api/stats/rate-limit", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-cache"

    data = resp.json()
    # The stats request itself is counted
    assert data["total_requests"] == 4
    assert data["blocked_requests"] == 0
    assert isinstance(data["average_response_time"], int)
    assert data["cache_hit_rate"] == 0.0
    assert data["top_endpoints"][0] == {"endpoint": "/api/aircraft/*/summary", "requests": 2}


def test_rate_limit_stats_top_param(client, auth_headers):
    client.get("/api/search?q=a", headers=auth_headers)
    data = client.get("/api/stats/rate-limit?top=1", headers=auth_headers).json()
    assert len(data["top_endpoints"]) == 1


def test_cache_stats(client, auth_headers):
    client.get("/api/search?q=Cessna", headers=auth_headers)
    client.get("/api/search?q=Cessna", headers=auth_headers)

    resp = client.get("/api/stats/cache", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["size"] == 1
    assert data["hits"] == 1
    assert data["misses"] == 1
    assert data["hit_rate"] == 50.0
    assert data["evictions"] == 0
    assert data["memory_usage"] > 0


def test_stats_responses_are_never_cached(client, auth_headers):
    client.get("/api/stats/cache", headers=auth_headers)
    resp = client.get("/api/stats/cache", headers=auth_headers)
    assert "X-Cache" not in resp.headers
    assert resp.json()["size"] == 0


def test_stats_require_key(client):
    assert client.get("/api/stats/cache").status_code == 401
    assert client.get("/metrics").status_code == 401


def test_metrics(client, auth_headers):
    client.get("/api/search?q=Cessna", headers=auth_headers)

    resp = client.get("/metrics", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert 'aerofresh_requests_total{endpoint="/api/search"} 1' in resp.text
    assert "aerofresh_requests_blocked_total 0" in resp.text
    assert 'aerofresh_cache_lookups_total{result="miss"} 1' in resp.text


def test_clear_cache(client, auth_headers):
    client.get("/api/search?q=Cessna", headers=auth_headers)

    resp = client.delete("/api/stats/cache", headers=auth_headers)
    assert resp.json() == {"cleared": "cache"}

    again = client.get("/api/search?q=Cessna", headers=auth_headers)
    assert again.headers["X-Cache"] == "MISS"


def test_clear_rate_limits(client, auth_headers, api_middleware):
    for _ in range(61):
        client.get("/api/search?q=Piper", headers=auth_headers)
    assert api_middleware.stats.blocked_requests == 1

    # Direct call: the DELETE endpoint is itself behind the exhausted quota
    api_middleware.clear_rate_limits()
    assert client.get("/api/search?q=Piper", headers=auth_headers).status_code == 200

    resp = client.delete("/api/stats/rate-limit", headers=auth_headers)
    assert resp.json() == {"cleared": "rate-limit"}
    assert api_middleware.stats.total_requests == 0
