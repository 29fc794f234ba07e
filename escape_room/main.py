"""
FastAPI main application
Escape Room Engine - timed five-level round with a final secret word

Modular architecture with separated API routers in escape_room/api/:
- health.py: Health check and system status
- auth.py: Team login/logout
- levels.py: Progress, level start, answers, timer polling, forced completion
- final_word.py: Final word guesses
- leaderboard.py: Ranked teams that solved the final word

All routers access shared collaborators via the escape_room.state module.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from escape_room import state
from escape_room.config import DEFAULT_CONFIG_PATH, load_game_config
from escape_room.services.credentials import CredentialStore

# Import all API routers
from escape_room.api import auth, final_word, health, leaderboard, levels


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_state(config_path=None) -> None:
    """Load the game definition and team registry into global state"""
    path = config_path or os.environ.get("ESCAPE_ROOM_CONFIG") or DEFAULT_CONFIG_PATH
    state.GAME_CONFIG = load_game_config(path)
    state.CREDENTIALS = CredentialStore(state.GAME_CONFIG.teams)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    try:
        init_state()
        logger.info(
            f"✅ Server started with {len(state.GAME_CONFIG.levels)} levels and "
            f"{len(state.GAME_CONFIG.teams)} teams"
        )
    except Exception as e:
        logger.error(f"❌ Failed to load game config: {e}")
        raise

    yield

    logger.info("🛑 Server shutting down")


# Create FastAPI app
app = FastAPI(
    title="Escape Room Engine",
    description="Timed multi-level quiz round with hidden scoring and a final secret word",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== INCLUDE ROUTERS ====================

# Health check (GET /)
app.include_router(health.router)

# Login/logout (POST /auth/login, /auth/logout)
app.include_router(auth.router)

# Level play (GET /progress, POST /levels/{n}/start, /levels/current/...)
app.include_router(levels.router)

# Final word (GET/POST /final-word)
app.include_router(final_word.router)

# Leaderboard (GET /leaderboard)
app.include_router(leaderboard.router)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
