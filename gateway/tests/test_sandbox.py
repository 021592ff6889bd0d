import pytest
import requests

from gateway.errors import SandboxProtocolError, SandboxUnavailable
from gateway.sandbox import SandboxClient, parse_sandbox_body


class TestParseSandboxBody:
    def test_success(self):
        body = '{"success": true, "output": [{"type": "log", "text": "hi"}]}'
        assert parse_sandbox_body(body) == {"success": True, "output": [{"type": "log", "text": "hi"}]}

    def test_error_is_kept(self):
        body = '{"success": false, "output": [], "error": "Execution timed out"}'
        assert parse_sandbox_body(body) == {"success": False, "output": [], "error": "Execution timed out"}

    def test_missing_output_becomes_empty(self):
        assert parse_sandbox_body('{"success": true}') == {"success": True, "output": []}

    def test_extra_keys_are_dropped(self):
        body = '{"success": true, "output": [{"type": "log", "text": "a", "ts": 1}], "memory": 3}'
        assert parse_sandbox_body(body) == {"success": True, "output": [{"type": "log", "text": "a"}]}

    @pytest.mark.parametrize(
        "body",
        [
            "",
            "not json",
            "[]",
            '{"output": []}',
            '{"success": "yes", "output": []}',
            '{"success": true, "output": "text"}',
            '{"success": true, "output": [{"type": "log"}]}',
        ],
    )
    def test_rejects(self, body):
        with pytest.raises(SandboxProtocolError):
            parse_sandbox_body(body)

    def test_long_body_is_truncated_in_detail(self):
        with pytest.raises(SandboxProtocolError) as exc_info:
            parse_sandbox_body("x" * 10_000)
        assert "chars omitted" in exc_info.value.detail
        assert len(exc_info.value.detail) < 3000


class TestSandboxClient:
    def test_posts_code_with_execution_budget(self, fake_sandbox):
        fake_sandbox.respond({"success": True, "output": [{"type": "result", "text": "2"}]})
        client = SandboxClient("http://sandbox:3000/")

        result = client.execute("1+1")

        assert result == {"success": True, "output": [{"type": "result", "text": "2"}]}
        assert fake_sandbox.posts == [
            {"url": "http://sandbox:3000/execute", "json": {"code": "1+1", "timeout": 10000}, "timeout": 15.0}
        ]

    def test_relays_error_status_bodies(self, fake_sandbox):
        fake_sandbox.respond({"success": False, "output": [], "error": "Code is required"}, status_code=400)
        client = SandboxClient("http://sandbox:3000")

        assert client.execute("x") == {"success": False, "output": [], "error": "Code is required"}

    @pytest.mark.parametrize(
        "exc",
        [requests.ConnectionError("refused"), requests.Timeout("slow"), requests.RequestException("other")],
    )
    def test_transport_failures(self, fake_sandbox, exc):
        fake_sandbox.error = exc
        client = SandboxClient("http://sandbox:3000")

        with pytest.raises(SandboxUnavailable):
            client.execute("1+1")

    def test_undecodable_body(self, fake_sandbox):
        fake_sandbox.respond_raw(200, "oops")
        client = SandboxClient("http://sandbox:3000")

        with pytest.raises(SandboxProtocolError) as exc_info:
            client.execute("1+1")
        assert "oops" in exc_info.value.detail

    def test_client_timeout_must_exceed_budget(self, fake_sandbox):
        with pytest.raises(ValueError):
            SandboxClient("http://sandbox:3000", execution_timeout_ms=10000, request_timeout_sec=10)

    def test_is_available(self, fake_sandbox):
        client = SandboxClient("http://sandbox:3000")
        assert client.is_available() is True
        fake_sandbox.healthy = False
        assert client.is_available() is False
