"""
HTTP tool server exposing search to agents as the ``rag_data`` tool.

    mdrag-server --host 0.0.0.0 --port 8080

    GET  /health
    GET  /tools
    POST /tools/rag_data/call   {"arguments": {"query": "...", "top_k": 3}}
"""
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .cli import Components, build_components, configure_logging
from .config import get_settings
from .errors import ConfigurationError, InvalidRequestError, RagError
from .schemas import SearchRequest
from .tools import TOOL_DESCRIPTION, TOOL_NAME, rag_data

logger = logging.getLogger(__name__)


class ToolCall(BaseModel):
    arguments: Optional[Dict[str, Any]] = None


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResult(BaseModel):
    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = False


class ToolInfo(BaseModel):
    name: str
    description: str
    input_schema: Dict[str, Any]


def create_app(components: Components) -> FastAPI:
    """Build the tool server around explicitly wired components."""
    app = FastAPI(title="mdrag tool server", version=__version__)
    app.state.components = components

    @app.get("/health")
    def health():
        store = app.state.components.store
        return {
            "status": "ok",
            "documents": store.document_count(),
            "chunks": store.chunk_count()
        }

    @app.get("/tools", response_model=List[ToolInfo])
    def list_tools():
        return [ToolInfo(
            name=TOOL_NAME,
            description=TOOL_DESCRIPTION,
            input_schema=SearchRequest.model_json_schema()
        )]

    @app.post("/tools/{name}/call", response_model=ToolResult)
    def call_tool(name: str, call: ToolCall):
        if name != TOOL_NAME:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

        logger.info("Tool call %s with %s", name, call.arguments)
        current = app.state.components
        try:
            text = rag_data(call.arguments, current.retriever, current.store)
        except InvalidRequestError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except RagError as e:
            logger.exception("Error while handling %s", name)
            return ToolResult(content=[TextContent(text=f"Error: {e}")], is_error=True)
        return ToolResult(content=[TextContent(text=text)])

    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdrag-server",
        description="Serve the rag_data search tool over HTTP"
    )
    parser.add_argument("--host", default=None, help="Bind address (default: SERVER_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: SERVER_PORT)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1
    configure_logging(settings.log_level)

    components = build_components(settings)
    try:
        uvicorn.run(
            create_app(components),
            host=args.host or settings.server_host,
            port=args.port or settings.server_port,
            log_level=settings.log_level.lower()
        )
    finally:
        components.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
