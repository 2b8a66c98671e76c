def test_health_ready_ok(client):
    r = client.get("/v1/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}
