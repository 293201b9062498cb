"""
Read-only tools exposed over JSON-RPC 2.0 (the MCP surface).

Methods:
- initialize: static server metadata
- tools/list: the tool catalogue with input schemas
- tools/call: run one tool, result wrapped as a single text content item

Tools:
- get_resume_data: profile plus the six record collections
- get_latex_templates: every stored template
- get_latex_template_by_id: one template (requires ``id``)
- search_experiences_by_tag: experiences with a tag containing ``tag``,
  case-insensitively (requires ``tag``)

Every failure inside a request becomes an error envelope; handle_request
never raises.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from . import __version__
from .errors import ResumeManagerError, ToolError
from .records import RecordRepository

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "resume-manager-mcp"

# JSON-RPC error codes
PARSE_ERROR = -32700
INTERNAL_ERROR = -32603

# Collections included in get_resume_data, in output order
RESUME_SECTIONS = ("experiences", "projects", "skills", "certifications", "activities", "education")


@dataclass
class Tool:
    """One callable tool."""

    name: str
    description: str
    properties: Dict[str, Dict[str, str]]
    required: List[str]
    handler: Callable[[RecordRepository, Dict[str, Any]], Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": dict(self.properties),
                "required": list(self.required),
            },
        }


def _require_text(arguments: Dict[str, Any], key: str, message: str) -> str:
    value = arguments.get(key)
    if not value:
        raise ToolError(message)
    if not isinstance(value, str):
        raise ToolError(f"Argument '{key}' must be a string")
    return value


def get_resume_data(repository: RecordRepository, arguments: Dict[str, Any]) -> Dict[str, Any]:
    profile = repository.get_profile()
    data: Dict[str, Any] = {"profile": profile.to_dict() if profile else None}
    for name in RESUME_SECTIONS:
        data[name] = [item.to_dict() for item in repository.get_all(name)]
    return data


def get_latex_templates(repository: RecordRepository, arguments: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [item.to_dict() for item in repository.get_all("templates")]


def get_latex_template_by_id(repository: RecordRepository, arguments: Dict[str, Any]) -> Dict[str, Any]:
    template_id = _require_text(arguments, "id", "Template ID is required")
    template = repository.get_by_id("templates", template_id)
    if template is None:
        raise ToolError(f"Template with ID {template_id} not found")
    return template.to_dict()


def search_experiences_by_tag(repository: RecordRepository, arguments: Dict[str, Any]) -> List[Dict[str, Any]]:
    tag = _require_text(arguments, "tag", "Tag is required").lower()
    return [
        item.to_dict()
        for item in repository.get_all("experiences")
        if any(tag in t.lower() for t in item.get_tags())
    ]


TOOLS: Dict[str, Tool] = {
    tool.name: tool
    for tool in (
        Tool(
            name="get_resume_data",
            description=(
                "Get complete resume data including profile, experiences, projects, "
                "skills, certifications, activities, and education"
            ),
            properties={},
            required=[],
            handler=get_resume_data,
        ),
        Tool(
            name="get_latex_templates",
            description="Get all available LaTeX resume templates",
            properties={},
            required=[],
            handler=get_latex_templates,
        ),
        Tool(
            name="get_latex_template_by_id",
            description="Get a specific LaTeX template by its ID",
            properties={
                "id": {"type": "string", "description": "The ID of the template to retrieve"},
            },
            required=["id"],
            handler=get_latex_template_by_id,
        ),
        Tool(
            name="search_experiences_by_tag",
            description="Search work experiences by tag",
            properties={
                "tag": {"type": "string", "description": "The tag to search for in experiences"},
            },
            required=["tag"],
            handler=search_experiences_by_tag,
        ),
    )
}


# =============================================================================
# ENVELOPES
# =============================================================================

def success_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def parse_error(message: str = "Parse error") -> Dict[str, Any]:
    """Envelope for input that is not a JSON-RPC object. The id is always null."""
    return error_response(None, PARSE_ERROR, message)


def server_info() -> Dict[str, Any]:
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {"tools": {}},
        "serverInfo": {"name": SERVER_NAME, "version": __version__},
    }


def call_tool(repository: RecordRepository, name: Optional[str], arguments: Optional[Dict[str, Any]]) -> Any:
    """
    Run a tool by name.

    Raises:
        ToolError: Unknown tool, bad arguments, or missing item.
    """
    tool = TOOLS.get(name) if isinstance(name, str) else None
    if tool is None:
        raise ToolError(f"Unknown tool: {name}")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ToolError("Tool arguments must be an object")
    logger.debug(f"Calling tool {name}")
    return tool.handler(repository, arguments)


def handle_request(repository: RecordRepository, request: Any) -> Dict[str, Any]:
    """
    Dispatch one JSON-RPC request and build its response envelope.

    A request that is not an object yields a parse error. Anything that goes
    wrong afterwards yields an internal error carrying the request id.
    """
    if not isinstance(request, dict):
        return parse_error("Parse error: request must be a JSON object")

    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    try:
        if method == "initialize":
            return success_response(request_id, server_info())

        if method == "tools/list":
            return success_response(request_id, {"tools": [t.to_dict() for t in TOOLS.values()]})

        if method == "tools/call":
            if not isinstance(params, dict):
                raise ToolError("Invalid params for tools/call")
            result = call_tool(repository, params.get("name"), params.get("arguments"))
            text = json.dumps(result, ensure_ascii=False, indent=2)
            return success_response(request_id, {"content": [{"type": "text", "text": text}]})

        raise ToolError(f"Unknown method: {method}")
    except ResumeManagerError as e:
        logger.info(f"JSON-RPC request {request_id!r} failed: {e.message}")
        return error_response(request_id, INTERNAL_ERROR, e.message)
    except Exception as e:
        logger.exception(f"Unexpected error handling JSON-RPC request {request_id!r}")
        return error_response(request_id, INTERNAL_ERROR, str(e) or "Internal error")
