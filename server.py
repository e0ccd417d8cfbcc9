import logging
import sys

from fastmcp import FastMCP

import config
from api import DataManagementClient, IssuesClient, RfiClient
from auth import ServiceAccountAuthProvider
from tools import TOOL_NAMES, AccTools

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
Autodesk Construction Cloud (ACC) tools for projects, files, issues and RFIs.

- Start with get_projects to find project IDs; never guess them.
- Call get_issue_types before create_issue and get_rfi_types before create_rfi.
- Project IDs may be given with or without the 'b.' prefix.
"""


def create_auth_provider() -> ServiceAccountAuthProvider:
    return ServiceAccountAuthProvider(
        client_id=config.APS_CLIENT_ID,
        client_secret=config.APS_CLIENT_SECRET,
        service_account_id=config.APS_SA_ID,
        key_id=config.APS_SA_KEY_ID,
        key_path=config.APS_SA_KEY_PATH,
        scopes=config.APS_SCOPES,
    )


def create_server(auth_provider: ServiceAccountAuthProvider) -> FastMCP:
    """Builds the MCP server; every client shares the one auth provider."""
    acc_tools = AccTools(
        data_management=DataManagementClient(auth_provider),
        issues=IssuesClient(auth_provider),
        rfis=RfiClient(auth_provider),
    )
    mcp = FastMCP("Autodesk ACC Agent", instructions=INSTRUCTIONS)
    for name in TOOL_NAMES:
        mcp.tool(getattr(acc_tools, name))
    return mcp


def main():
    logging.basicConfig(level=config.LOG_LEVEL, stream=sys.stderr)

    # Fail fast: a server without credentials would fail on every tool call.
    missing = config.missing_settings()
    if missing:
        raise SystemExit(
            f"FATAL: missing required environment variables: {', '.join(missing)}. "
            "Copy .env.example to .env and fill in your Autodesk service account credentials."
        )

    mcp = create_server(create_auth_provider())
    if config.MCP_TRANSPORT == "stdio":
        logger.info("Starting MCP Server on stdio...")
        mcp.run(transport="stdio")
    else:
        logger.info(f"Starting MCP Server on port {config.PORT}...")
        mcp.run(transport="http", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    main()
