import os

# Base directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Paths
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
STORE_FILE = os.getenv("CBT_STORE_FILE", os.path.join(BASE_DIR, "exam_store.json"))

# Server
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
DEFAULT_TIMEOUT = 15.0

# Sessions
SESSION_COOKIE = "cbt_session"
SESSION_TTL = int(os.getenv("CBT_SESSION_TTL", "3600"))  # 1 hour
CLEANUP_INTERVAL = 300      # expired-session sweep, seconds
TICK_INTERVAL = 1.0         # countdown tick, seconds

# Catalog
STORE_KEY = "exam-dashboard-storage"
RECENT_LIMIT = 3

# Scoring
PASS_SCORE = 60
WARNING_SECONDS = 300       # countdown turns amber
DANGER_SECONDS = 60         # countdown turns red
