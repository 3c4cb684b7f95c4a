from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from revshare.common.error_handlers import register_error_handlers
from revshare.common.logger import setup_file_logging
from revshare.core.config import settings
from revshare.logger_config import logger
from revshare.api.v1 import adjustment, ledger, settlement

app = FastAPI(title="Revenue Settlement Engine", version="1.0.0")

origins = [
    "http://localhost:5173",
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

if settings.LOG_TO_FILE:
    setup_file_logging(logger, settings.LOG_FILE_PATH)

# Set by the deployment with a TransactionFeed for the payment processor
app.state.transaction_feed = None

# Register API routers
app.include_router(
    settlement.router, prefix="/api/v1/settlements", tags=["settlements"])
app.include_router(
    adjustment.router, prefix="/api/v1/adjustments", tags=["adjustments"])
app.include_router(ledger.router, prefix="/api/v1/ledger", tags=["ledger"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Revenue Settlement Engine APIs!"}
