import os
from dotenv import load_dotenv

load_dotenv()

steam_api_key = os.getenv("STEAM_API_KEY", "")
steamladder_api_key = os.getenv("STEAMLADDER_API_KEY", "")
database_url = os.getenv("DATABASE_URL", "")
site_url = os.getenv("SITE_URL", "http://localhost:5000").rstrip("/")
frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
session_ttl_hours = int(os.getenv("SESSION_TTL_HOURS", "24"))
cookie_secure = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

if __name__ == "__main__":
    print(site_url, frontend_origin, database_url, session_ttl_hours, cookie_secure)
