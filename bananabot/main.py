import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from bananabot.create_sqlite_engine import engine
from bananabot.dependencies import http_client, steam_auth
from bananabot.errors import register_error_handlers
from bananabot.load_secrets import frontend_origin
from bananabot.routers import auth, market, rank, user
from bananabot.session_crud import CreateSession

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app):
    """Create the session tables and schedule the expired-session purge.
    This function is called to start the server.
    """
    await CreateSession.create_table()
    scheduler = AsyncIOScheduler()

    # If the web session is expired, delete it
    scheduler.add_job(
        steam_auth.delete_expired_sessions,
        "interval",
        hours=1,
        id="delete_expired_sessions",
        replace_existing=True,
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        await http_client.aclose()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)
app.include_router(auth.auth_router)
app.include_router(user.user_router)
app.include_router(rank.rank_router)
app.include_router(market.market_router)


@app.get("/test")
async def test():
    return {"message": "Backend is working!"}


# if __name__ == "__main__":
#     uvicorn.run("bananabot.main:app", host="0.0.0.0", port=5000, reload=True)
