import os


MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "rental_db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# counterpart / listing display lookups
LOOKUP_CACHE_TTL_SECONDS = float(os.getenv("LOOKUP_CACHE_TTL_SECONDS", "300"))
LOOKUP_CACHE_MAX_ENTRIES = int(os.getenv("LOOKUP_CACHE_MAX_ENTRIES", "1024"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
