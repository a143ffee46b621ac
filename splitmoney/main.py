import logging
from fastapi import FastAPI
from splitmoney.config import get_settings
from splitmoney.db.database import Base, engine, check_db_connection
from splitmoney.models import groups, expenses, settlements  # noqa: F401  registers tables
from splitmoney.api.v1.routes.groups import router as groups_router
from splitmoney.api.v1.routes.expenses import router as expenses_router
from splitmoney.api.v1.routes.settlements import router as settlements_router
from splitmoney.api.v1.routes.balances import router as balances_router
from splitmoney.api.v1.routes.analytics import router as analytics_router
from splitmoney.utils.balance_cache import BalanceCache

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Split Money - Group Expenses",
    description="Tracks group expenses, splits, balances and settlements",
    version="1.0.0"
)

app.state.balance_cache = BalanceCache(ttl_seconds=settings.balance_cache_ttl_seconds)

app.include_router(groups_router)
app.include_router(expenses_router)
app.include_router(settlements_router)
app.include_router(balances_router)
app.include_router(analytics_router)

@app.get("/")
def read_root():
    return {"message": "Split Money API", "version": "1.0.0"}

@app.get("/health")
def health_check():
    return {"status": "healthy" if check_db_connection() else "degraded"}
