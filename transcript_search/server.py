"""
Transcript Search MCP Server - Main Entry Point

FastMCP server with STDIO and SSE transport support.
"""

import argparse
import logging

from fastmcp import FastMCP

from transcript_search.config import get_settings
from transcript_search.tools import (
    search_transcripts,
    search_project,
    embedding_status,
)


def create_app() -> FastMCP:
    """Create and configure the MCP application."""
    mcp = FastMCP(
        name="transcript-search",
        instructions="Hybrid semantic and keyword search over meeting transcripts",
    )

    mcp.mount(search_transcripts.router)
    mcp.mount(search_project.router)
    mcp.mount(embedding_status.router)

    return mcp


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Transcript Search MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=None,
        help="Transport protocol (default: from env)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE transport (default: from env)"
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log.level)
    transport = args.transport or settings.mcp.transport
    port = args.port or settings.mcp.port

    mcp = create_app()

    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=settings.mcp.host, port=port)


if __name__ == "__main__":
    main()
