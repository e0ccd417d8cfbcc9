import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Service Account (SSA) credentials ---
APS_CLIENT_ID = os.environ.get("APS_CLIENT_ID")
APS_CLIENT_SECRET = os.environ.get("APS_CLIENT_SECRET")
APS_SA_ID = os.environ.get("APS_SA_ID")
APS_SA_KEY_ID = os.environ.get("APS_SA_KEY_ID")
APS_SA_KEY_PATH = os.environ.get("APS_SA_KEY_PATH")

# OAuth Scopes — space separated, same format the token endpoint uses
APS_SCOPES = os.environ.get("APS_SCOPES", "data:read data:write").split()

# --- Server ---
MCP_TRANSPORT = os.environ.get("MCP_TRANSPORT", "http")
PORT = int(os.environ.get("PORT", 8000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

REQUIRED_SETTINGS = (
    "APS_CLIENT_ID",
    "APS_CLIENT_SECRET",
    "APS_SA_ID",
    "APS_SA_KEY_ID",
    "APS_SA_KEY_PATH",
)


def missing_settings() -> list:
    """Names of required settings that are unset or empty."""
    return [name for name in REQUIRED_SETTINGS if not globals().get(name)]
