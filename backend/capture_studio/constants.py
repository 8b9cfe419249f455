import os

# In-memory by default: sessions only live as long as the process.
DATABASE_URL = os.getenv("STUDIO_DATABASE_URL", "sqlite://")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET")
SPOTIFY_TIMEOUT = float(os.getenv("SPOTIFY_TIMEOUT", "10"))
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_SEARCH_URL = "https://api.spotify.com/v1/search"
SPOTIFY_SEARCH_LIMIT = 10

SESSION_ID_LENGTH = 8
