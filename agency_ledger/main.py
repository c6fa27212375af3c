import logging

from fastapi import FastAPI

from agency_ledger.api.endpoints import commissions as commissions_api
from agency_ledger.api.endpoints import organizations as organizations_api
from agency_ledger.core.config import LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Agency Ledger API", version="0.1.0")

# Include API routers
app.include_router(commissions_api.router, prefix="/api/v1/commissions", tags=["Commissions"])
app.include_router(organizations_api.router, prefix="/api/v1/organizations", tags=["Organizations"])

@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}
