from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CACHE_DIR = BASE_DIR / "cache"
