import logging

from app.core.logging import SecretRedactionFilter, SuppressHealthCheckFilter, redact_secrets


def test_redact_secrets_masks_sensitive_values():
    raw = (
        "authorization=Bearer abc123 "
        "apikey=eyJhbGciOiJIUzI1NiJ9.supabase "
        "api_key=my-api-key "
        "groq key gsk_abcdef1234567890"
    )
    masked = redact_secrets(raw)
    assert "abc123" not in masked
    assert "eyJhbGciOiJIUzI1NiJ9.supabase" not in masked
    assert "my-api-key" not in masked
    assert "abcdef1234567890" not in masked
    assert masked.count("[REDACTED]") >= 4


def test_redaction_filter_rewrites_formatted_record():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "calling with %s", ("api_key=secret-value",), None)
    assert SecretRedactionFilter().filter(record) is True
    assert "secret-value" not in record.getMessage()


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"x-request-id": "req-123"})
    assert response.status_code == 200
    assert response.headers["x-request-id"] == "req-123"


def test_request_id_is_generated_when_missing(client):
    response = client.get("/health")
    assert response.headers.get("x-request-id")


def test_cors_preflight_allows_supabase_client_headers(client):
    response = client.options(
        "/adaptive-quiz",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    allowed = response.headers["access-control-allow-headers"].lower()
    for header in ("authorization", "x-client-info", "apikey", "content-type"):
        assert header in allowed


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "http_error"
    assert body["request_id"]


def test_health_reports_configuration(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["service"] == "neolearn-api"
    assert body["llm_provider"] == "none"
    assert body["mastery_store_backend"] == "memory"


def test_configured_secret_values_are_masked_anywhere():
    masked = redact_secrets("supabase said: invalid key sb-service-role-1234", known_secrets=["sb-service-role-1234"])
    assert "sb-service-role-1234" not in masked


def test_health_check_access_lines_are_dropped():
    def access(path, status):
        return logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1, '%s - "%s %s HTTP/%s" %d',
            ("127.0.0.1:5000", "GET", path, "1.1", status), None,
        )

    health_filter = SuppressHealthCheckFilter()
    assert health_filter.filter(access("/health", 200)) is False
    assert health_filter.filter(access("/health", 503)) is True
    assert health_filter.filter(access("/adaptive-quiz", 200)) is True
