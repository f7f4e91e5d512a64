"""Runtime settings read from the environment (and a local .env file)."""
import os

from dotenv import load_dotenv

load_dotenv()

# JWT settings (tokens are issued by the auth provider, we only verify them)
SECRET_KEY = os.getenv("JWT_SECRET", "temporary_dev_secret")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
AUTH_TOKEN_URL = os.getenv("AUTH_TOKEN_URL", "/auth/v1/token")
# Audience the provider stamps on its tokens; empty disables the check
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated") or None

# Note password gate
PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "10"))

# AI completion service
AI_API_KEY = os.getenv("AI_API_KEY")
AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
AI_MODEL = os.getenv("AI_MODEL", "google/gemini-2.5-flash")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
