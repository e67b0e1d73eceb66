"""Root conftest — shared test configuration."""

import os
import tempfile

# Settings are cached on first import of shemarket.main; pin them before that
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("ADMIN_EMAIL", "admin@shemarket.com")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="shemarket-media-"))
os.environ.setdefault("MESSAGE_POLL_INTERVAL_SECONDS", "0.01")
os.environ.setdefault("LOG_FORMAT", "text")
