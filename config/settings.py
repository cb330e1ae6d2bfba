import os
from dotenv import load_dotenv

# Values from .env win over the process environment
load_dotenv(override=True)

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
KNOWLEDGE_TABLE = os.getenv("KNOWLEDGE_TABLE", "knowledge")

# Market data providers
COINGECKO_API_URL = os.getenv("COINGECKO_API_URL", "https://api.coingecko.com/api/v3")
COINMARKETCAP_API_URL = os.getenv("COINMARKETCAP_API_URL", "https://pro-api.coinmarketcap.com/v1")
CMC_API_KEY = os.getenv("CMC_API_KEY")

# Binance
BINANCE_API_KEY = os.getenv("BINANCE_API_KEY")
BINANCE_API_SECRET = os.getenv("BINANCE_API_SECRET")
BINANCE_TESTNET = os.getenv("BINANCE_TESTNET", "False").lower() == "true"

# Analysis microservice and trading backend
ANALYSIS_BATCH_URL = os.getenv("ANALYSIS_BATCH_URL")
ANALYSIS_SINGLE_URL = os.getenv("ANALYSIS_SINGLE_URL")
TRANSCRIPT_SERVICE_URL = os.getenv("TRANSCRIPT_SERVICE_URL")
BACKEND_API_URL = os.getenv("BACKEND_API_URL")
APP_URL = os.getenv("APP_URL")

# Logging
LOG_DIR = os.getenv("LOG_DIR", "logs")
