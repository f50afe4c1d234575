import os

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_CACHE_DIR = os.path.join(os.getenv("XDG_CACHE_HOME") or os.path.expanduser("~/.cache"), "workshop-scout")

STEAM_API_KEY = os.getenv("STEAM_API_KEY", "")
CACHE_DIR = os.getenv("CACHE_DIR", _DEFAULT_CACHE_DIR)
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
LOG_DIR = os.getenv("LOG_DIR", "")  # empty: console only
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))  # seconds
HTTP_TIMEOUT_GRACE = 15.0  # HTTP requests may outlive the fetch deadline by this much
STEAM_REQUESTS_PER_SECOND = float(os.getenv("STEAM_REQUESTS_PER_SECOND", "4"))
