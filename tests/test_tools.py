"""
Tests for resume_manager.tools module.

Tests the JSON-RPC dispatcher and the four read-only tools.
"""

import json

import pytest

from resume_manager.errors import ToolError
from resume_manager.records import RecordRepository
from resume_manager.tools import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    PROTOCOL_VERSION,
    SERVER_NAME,
    TOOLS,
    call_tool,
    handle_request,
)


@pytest.fixture
def sample_repository(sample_store) -> RecordRepository:
    """Return a repository over the sample document with one template."""
    repository = RecordRepository(sample_store)
    repository.create("templates", {"name": "Classic", "content": "<VAR> profile </VAR>"})
    return repository


def _call(repository, name, arguments=None, request_id=1):
    request = {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }
    return handle_request(repository, request)


def _payload(response):
    return json.loads(response["result"]["content"][0]["text"])


class TestProtocol:
    """Tests for initialize, tools/list and error envelopes."""

    def test_initialize(self, sample_repository):
        response = handle_request(sample_repository, {"jsonrpc": "2.0", "id": 7, "method": "initialize"})
        assert response["id"] == 7
        assert response["result"]["protocolVersion"] == PROTOCOL_VERSION
        assert response["result"]["serverInfo"]["name"] == SERVER_NAME
        assert response["result"]["capabilities"] == {"tools": {}}

    def test_tools_list(self, sample_repository):
        response = handle_request(sample_repository, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        tools = {t["name"]: t for t in response["result"]["tools"]}

        assert set(tools) == {
            "get_resume_data",
            "get_latex_templates",
            "get_latex_template_by_id",
            "search_experiences_by_tag",
        }
        assert tools["get_latex_template_by_id"]["inputSchema"]["required"] == ["id"]
        assert tools["search_experiences_by_tag"]["inputSchema"]["required"] == ["tag"]
        assert tools["get_resume_data"]["inputSchema"]["properties"] == {}

    def test_unknown_method(self, sample_repository):
        response = handle_request(sample_repository, {"jsonrpc": "2.0", "id": "abc", "method": "ping"})
        assert response["id"] == "abc"
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == "Unknown method: ping"

    def test_non_object_is_parse_error(self, sample_repository):
        response = handle_request(sample_repository, [1, 2, 3])
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    def test_unexpected_exception_becomes_envelope(self, sample_repository, monkeypatch):
        def boom(repository, arguments):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(TOOLS["get_resume_data"], "handler", boom)
        response = _call(sample_repository, "get_resume_data", request_id=9)
        assert response["id"] == 9
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == "kaboom"


class TestTools:
    """Tests for the individual tools."""

    def test_get_resume_data(self, sample_repository):
        data = _payload(_call(sample_repository, "get_resume_data"))
        assert data["profile"]["firstName"] == "Ada"
        assert list(data) == [
            "profile", "experiences", "projects", "skills",
            "certifications", "activities", "education",
        ]
        assert "templates" not in data

    def test_result_text_is_pretty(self, sample_repository):
        response = _call(sample_repository, "get_latex_templates")
        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert content[0]["text"].startswith("[\n  {")

    def test_get_latex_templates(self, sample_repository):
        templates = _payload(_call(sample_repository, "get_latex_templates"))
        assert [t["name"] for t in templates] == ["Classic"]
        assert templates[0]["variables"] == ["profile"]

    def test_get_template_by_id(self, sample_repository):
        template_id = sample_repository.get_all("templates")[0].id
        template = _payload(_call(sample_repository, "get_latex_template_by_id", {"id": template_id}))
        assert template["id"] == template_id

    def test_missing_template(self, sample_repository):
        """Asking for an unknown template id is an internal error with the id kept."""
        response = _call(sample_repository, "get_latex_template_by_id", {"id": "missing"}, request_id=1)
        assert response["id"] == 1
        assert response["error"]["code"] == -32603
        assert "not found" in response["error"]["message"]
        assert "missing" in response["error"]["message"]

    def test_template_id_required(self, sample_repository):
        response = _call(sample_repository, "get_latex_template_by_id", {})
        assert response["error"]["message"] == "Template ID is required"

    def test_search_by_tag_substring(self, sample_repository):
        found = _payload(_call(sample_repository, "search_experiences_by_tag", {"tag": "PYTH"}))
        assert [e["id"] for e in found] == ["e-1"]

        none = _payload(_call(sample_repository, "search_experiences_by_tag", {"tag": "rust"}))
        assert none == []

    def test_tag_required(self, sample_repository):
        response = _call(sample_repository, "search_experiences_by_tag", {})
        assert response["error"]["message"] == "Tag is required"

    def test_unknown_tool(self, sample_repository):
        response = _call(sample_repository, "delete_everything")
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == "Unknown tool: delete_everything"

    def test_call_tool_raises(self, sample_repository):
        with pytest.raises(ToolError):
            call_tool(sample_repository, "get_resume_data", "not-a-dict")
