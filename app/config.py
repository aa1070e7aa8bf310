import os
from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

# Storage
CAR_REPOSITORY_BACKEND = os.environ.get("CAR_REPOSITORY_BACKEND", "memory")  # memory | mongo
MONGO_HOST = os.environ.get("MONGO_HOST", "localhost")
MONGO_PORT = int(os.environ.get("MONGO_PORT", 27017))
MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "vehicles")
MONGO_USER = os.environ.get("MONGO_USER", "")
MONGO_PASSWORD = os.environ.get("MONGO_PASSWORD", "")

# Enrichment collaborators
ENRICHMENT_TRANSPORT = os.environ.get("ENRICHMENT_TRANSPORT", "http")  # http | local
PRICING_SERVICE_URL = os.environ.get("PRICING_SERVICE_URL", "http://localhost:8082")
MAPS_SERVICE_URL = os.environ.get("MAPS_SERVICE_URL", "http://localhost:9191")

# Seconds a single price/address lookup may take before the car is returned without it
ENRICHMENT_TIMEOUT_SECONDS = float(os.environ.get("ENRICHMENT_TIMEOUT_SECONDS", "2.0"))
# Longest a single request waits on enrichment, however many cars it returns
ENRICHMENT_TOTAL_TIMEOUT_SECONDS = float(os.environ.get("ENRICHMENT_TOTAL_TIMEOUT_SECONDS", "10.0"))
# Upper bound on lookups in flight across all requests
ENRICHMENT_MAX_WORKERS = int(os.environ.get("ENRICHMENT_MAX_WORKERS", "8"))

MAPS_MATCH_TOLERANCE_DEGREES = float(os.environ.get("MAPS_MATCH_TOLERANCE_DEGREES", "0.05"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:8001").split(",")
    if origin.strip()
]
