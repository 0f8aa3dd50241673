import logging
import os

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from unistay.db.mongo import check_connection, ensure_indexes
from unistay.routes.connections.routes import router as connections_router
from unistay.routes.matches.routes import router as matches_router
from unistay.routes.profiles.routes import router as profiles_router
from unistay.utils import jwt_utils

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("unistay")

app = FastAPI(
    title="UniStay Roommates API",
    description="Roommate profiles, compatibility matching and connection requests for UniStay.",
    version="1.0.0",
    openapi_tags=[
        {"name": "Profiles", "description": "Roommate profile endpoints"},
        {"name": "Match", "description": "Roommate matching endpoints"},
        {"name": "Connections", "description": "Roommate connection requests"},
    ],
)


def _parse_origins(raw: str) -> list[str]:
    raw = (raw or "").strip()
    if not raw:
        return ["http://localhost:5173"]
    return [o.strip() for o in raw.split(",") if o.strip()]


# ------------------ CORS ------------------
origins = _parse_origins(os.getenv("CORS_ORIGINS", ""))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------ MongoDB Check ------------------
@app.on_event("startup")
def startup_db_check():
    if not jwt_utils.SECRET_KEY:
        logger.error("SECRET_KEY is not set, authenticated requests will be refused")
    if not check_connection():
        logger.error("Failed to connect to MongoDB")
        return
    logger.info("MongoDB connected successfully")
    try:
        ensure_indexes()
    except PyMongoError as e:
        logger.error("Could not create indexes: %s", e)


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "service": "unistay-roommates"}


# ------------------ Routers ------------------
app.include_router(profiles_router)
app.include_router(matches_router)
app.include_router(connections_router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
