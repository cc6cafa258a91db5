"""
Runtime configuration, read once from the environment (and .env if present).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Hosted services ──────────────────────────────────────────────────────────

GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
REASONING_TIMEOUT = float(os.getenv("REASONING_TIMEOUT", "120"))
VIDEO_TIMEOUT = float(os.getenv("VIDEO_TIMEOUT", "60"))
ASSET_TIMEOUT = float(os.getenv("ASSET_TIMEOUT", "120"))

# ── Render polling ───────────────────────────────────────────────────────────

MAX_POLL_ATTEMPTS = int(os.getenv("MAX_POLL_ATTEMPTS", "60"))
POLL_FAST_ATTEMPTS = int(os.getenv("POLL_FAST_ATTEMPTS", "5"))  # attempts using the short delay
POLL_FAST_DELAY = float(os.getenv("POLL_FAST_DELAY", "5"))      # seconds
POLL_SLOW_DELAY = float(os.getenv("POLL_SLOW_DELAY", "10"))     # seconds

# ── Assembly ─────────────────────────────────────────────────────────────────

ASSEMBLE_SETTLE_DELAY = float(os.getenv("ASSEMBLE_SETTLE_DELAY", "3"))

# ── Local state ──────────────────────────────────────────────────────────────

CLIP_DIR = Path(os.getenv("CLIP_DIR", str(Path.home() / ".adgen" / "clips")))
CREDENTIALS_PATH = Path(
    os.getenv("ADGEN_CREDENTIALS_PATH", str(Path.home() / ".adgen" / "credentials.json"))
)
CREDENTIALS_KEY = "AFF_GEN_KEYS"
REDIS_URL = os.getenv("REDIS_URL", "")

# ── Server ───────────────────────────────────────────────────────────────────

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "8000"))
