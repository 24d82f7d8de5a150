import os

# bistro.database builds its engine at import time; keep tests off MySQL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "0")
os.environ.setdefault("RESTAURANT_TZ", "Asia/Jerusalem")
