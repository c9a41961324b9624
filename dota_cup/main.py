import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from dota_cup.core.config import settings
from dota_cup.routes import auth_routes
from dota_cup.routes import friend_routes
from dota_cup.routes import player_routes
from dota_cup.routes import team_invite_routes
from dota_cup.routes import team_routes
from dota_cup.routes import tournament_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings.check_production_ready()

app = FastAPI(title="Dota Cup API")

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    https_only=settings.is_production,
    same_site="lax",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_routes.router, prefix="/auth", tags=["Authentication"])
app.include_router(player_routes.router, prefix="/player", tags=["Players"])
app.include_router(team_routes.router, prefix="/teams", tags=["Teams"])
app.include_router(team_invite_routes.router, prefix="/team-invites", tags=["Team Invites"])
app.include_router(friend_routes.router, prefix="/friends", tags=["Friends"])
app.include_router(tournament_routes.router, prefix="/tournaments", tags=["Tournaments"])


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dota_cup.main:app", host="0.0.0.0", port=8000, reload=not settings.is_production)
