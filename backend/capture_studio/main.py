from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from capture_studio.api import endpoints
from capture_studio.db.base import engine, Base
from capture_studio.services.hub import StudioHub
from capture_studio.services.spotify import SpotifyClient
from capture_studio.core.logger import get_logger
from capture_studio import constants
import os

# Create DB tables
Base.metadata.create_all(bind=engine)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.hub = StudioHub()
    app.state.spotify = SpotifyClient(
        constants.SPOTIFY_CLIENT_ID, constants.SPOTIFY_CLIENT_SECRET
    )
    logger.info("Capture Studio server ready")
    yield
    await app.state.spotify.close()
    app.state.hub.close()


app = FastAPI(title="Capture Studio Session Server", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[constants.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(endpoints.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


def run():
    import uvicorn

    uvicorn.run(
        "capture_studio.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    run()
