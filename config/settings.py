import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

# Docebo API Settings
DOCEBO_DOMAIN = os.getenv("DOCEBO_DOMAIN")
DOCEBO_CLIENT_ID = os.getenv("DOCEBO_CLIENT_ID")
DOCEBO_CLIENT_SECRET = os.getenv("DOCEBO_CLIENT_SECRET")
DOCEBO_USERNAME = os.getenv("DOCEBO_USERNAME")
DOCEBO_PASSWORD = os.getenv("DOCEBO_PASSWORD")
DOCEBO_REQUEST_TIMEOUT = float(os.getenv("DOCEBO_REQUEST_TIMEOUT", 30))
DEFAULT_TOKEN_LIFETIME = 3600  # seconds, when the token response has no expires_in

# Bot Settings
BOT_NAME = os.getenv("BOT_NAME", "Docebo Assistant")
PORT = int(os.getenv("PORT", 8000))

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Handler timeouts (seconds)
USER_ENROLLMENTS_TIMEOUT = 15
ENROLLMENT_CHECK_TIMEOUT = 20
ENROLLMENT_SCAN_TIMEOUT = 8

# Enrollment pagination
ENROLLMENTS_PAGE_SIZE = 10
REMOTE_PAGE_SIZE = 200
MAX_REMOTE_PAGES = 5
REMOTE_PAGE_DELAY = 0.1

# Search result limits
USER_SEARCH_LIMIT = 10
RESOURCE_SEARCH_LIMIT = 20
RESOLVE_SEARCH_LIMIT = 50

# CSV / bulk processing
CSV_MAX_ROWS = 1000
CSV_EMAIL_SAMPLE_SIZE = 5
BULK_BATCH_SIZE = 3
BULK_BATCH_DELAY = 0.5

REQUIRED_DOCEBO_VARS = (
    "DOCEBO_DOMAIN",
    "DOCEBO_CLIENT_ID",
    "DOCEBO_CLIENT_SECRET",
    "DOCEBO_USERNAME",
    "DOCEBO_PASSWORD",
)


@dataclass(frozen=True)
class DoceboConfig:
    """Credentials for the Docebo password-grant OAuth flow"""
    domain: str
    client_id: str
    client_secret: str
    username: str
    password: str

    @property
    def base_url(self) -> str:
        domain = self.domain.strip()
        for scheme in ("https://", "http://"):
            if domain.lower().startswith(scheme):
                domain = domain[len(scheme):]
        return f"https://{domain.rstrip('/')}"


def load_docebo_config() -> DoceboConfig:
    """
    Build the Docebo config from the environment

    Reads os.environ at call time so a late-loaded .env or test override is honoured.

    Raises:
        ConfigError: when any required variable is missing or empty
    """
    from utils.error_handler import ConfigError

    values = {name: os.getenv(name, "").strip() for name in REQUIRED_DOCEBO_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}",
            details={"missing": missing}
        )

    return DoceboConfig(
        domain=values["DOCEBO_DOMAIN"],
        client_id=values["DOCEBO_CLIENT_ID"],
        client_secret=values["DOCEBO_CLIENT_SECRET"],
        username=values["DOCEBO_USERNAME"],
        password=values["DOCEBO_PASSWORD"],
    )
