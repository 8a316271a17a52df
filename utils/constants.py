import os

from dotenv import load_dotenv

load_dotenv(".env.local")

# ENV variables
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:8081,http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]


# JWT configuration (tokens are issued by the external auth service)
JWT_SECRET = os.getenv("JWT_SECRET", "messaging_secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "messaging-app")
JWT_ISSUER = os.getenv("JWT_ISSUER", "messaging-auth")


# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL")
MIGRATIONS_DIR = os.path.join(
    os.path.dirname(__file__), "..", "database", "postgres", "migrations"
)


# Blob store configuration
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
UPLOAD_URL_PREFIX = "/uploads"


# Broadcast relay configuration
RELAY_SEND_TIMEOUT = float(os.getenv("RELAY_SEND_TIMEOUT", "5"))  # seconds per listener send
