import os
import pathlib
from dotenv import load_dotenv

# .env at the project root, if present
load_dotenv(dotenv_path=pathlib.Path(__file__).parent.parent.parent / ".env")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fee_tracker.db")

CELERY_BROKER_URL     = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/0")

# Etherscan v2 serves every supported EVM chain from one endpoint, keyed by `chainid`
ETHERSCAN_API_KEY  = os.getenv("ETHERSCAN_API_KEY", "")
ETHERSCAN_BASE_URL = os.getenv("ETHERSCAN_BASE_URL", "https://api.etherscan.io/v2/api")

BINANCE_KLINES_URL = os.getenv("BINANCE_KLINES_URL", "https://api.binance.com/api/v3/klines")

# Overrides every pool's creation block as the first cursor value when set
_start_block = os.getenv("APP_START_BLOCK")
APP_START_BLOCK = int(_start_block) if _start_block else None

# Optional JSON list of pool definitions, see fee_tracker/pools/registry.py
POOLS_FILE = os.getenv("POOLS_FILE")

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "10"))
QUEUE_RATE_LIMIT      = os.getenv("QUEUE_RATE_LIMIT", "1/s")
HTTP_TIMEOUT_SECONDS  = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Candle source for pools that do not name one, see fee_tracker/sources/price_providers.py
PRICE_PROVIDER = os.getenv("PRICE_PROVIDER", "binance")
