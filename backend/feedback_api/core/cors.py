"""
CORS policy.

The widget is embedded on arbitrary customer sites, so every origin is
allowed. The same lists feed CORSMiddleware and the explicit OPTIONS
handler on the ingestion endpoint.
"""

from feedback_api.core.config import settings

ALLOWED_ORIGINS = ["*"]
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", settings.API_KEY_HEADER, "Authorization"]


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": ",".join(ALLOWED_ORIGINS),
        "Access-Control-Allow-Methods": ",".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ",".join(ALLOWED_HEADERS),
    }
