import os
import tempfile
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

# Load .env from project root
_project_root = Path(__file__).parent.parent.parent
load_dotenv(_project_root / ".env")

APP_NAME = "gymdesk"

# Store endpoint and access key (absence means offline mode)
SUPABASE_URL_ENV = "SUPABASE_URL"
SUPABASE_KEY_ENV = "SUPABASE_ANON_KEY"

# Connection monitor defaults (environment overrides are read by StoreSettings)
DEFAULT_PROBE_TABLE = "app_settings"
DEFAULT_RETEST_INTERVAL = 30.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0

# Seconds before a single store request is abandoned
STORE_TIMEOUT = 10

# PostgREST "JSON object requested, multiple (or no) rows returned"
EMPTY_RESOURCE_CODE = "PGRST116"

# Uniform failure message for data operations without a client
OFFLINE_ERROR = "Offline mode"

# Member ids look like FL-2025-001
MEMBER_ID_PREFIX = os.getenv("GYMDESK_MEMBER_ID_PREFIX", "FL")

# Temporary directory (cross-platform)
TMPDIR = os.environ.get("GYMDESK_TMPDIR", os.path.join(tempfile.gettempdir(), APP_NAME))

# Log files
LOG_FILE = os.path.join(TMPDIR, "gymdesk.log")
LOG_LEVEL = os.getenv("GYMDESK_LOG_LEVEL", "DEBUG")
