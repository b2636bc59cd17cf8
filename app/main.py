from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.api.v1.routes.currency import router as currency_router
from app.api.v1.routes.dashboard import router as dashboard_router
from app.api.v1.routes.friend_balance import router as friend_balance_router
from app.api.v1.routes.group import router as group_router
from app.api.v1.routes.system import router as system_router
from app.core.db_check import wait_for_db
from app.core.logging_config import configure_logging
from app.services.currency_service import HttpRateFetcher, RateCache

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_db()
    # one cache per process, shared by every balance computation
    app.state.rate_cache = RateCache(HttpRateFetcher())
    yield


app = FastAPI(title="Splito Ledger", lifespan=lifespan)

@app.get("/")
async def root():
    return {"message": "Splito Ledger is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(currency_router, prefix="/api/v1/currencies")
app.include_router(dashboard_router, prefix="/api/v1/dashboard")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(friend_balance_router, prefix="/api/v1/friend-balance")
