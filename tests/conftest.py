import os
import tempfile

# Point the app at a throwaway database before backend.config is imported
_tmp_dir = tempfile.mkdtemp(prefix="slowka-tests-")
os.environ.setdefault("SLOWKA_DATABASE_URL", f"sqlite+aiosqlite:///{_tmp_dir}/test.db")
os.environ.setdefault("SLOWKA_ANTHROPIC_API_KEY", "")
