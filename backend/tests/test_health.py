from fastapi.testclient import TestClient


def _get_client() -> TestClient:
    from mindy.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_and_returned() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.headers.get("X-Request-Id")


def test_request_id_echoed_on_error_responses() -> None:
    client = _get_client()
    response = client.get("/routines/today", headers={"X-Request-Id": "req-401"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
    assert response.headers.get("X-Request-Id") == "req-401"
