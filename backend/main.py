import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.core.settings import settings
from backend.routers import chat_rooms, health, members, messages, users

logger = logging.getLogger(__name__)

# Assistant replies run as background tasks after the response is sent;
# their progress and failures only ever show up in the logs.
logging.getLogger("pipeline").setLevel(logging.INFO)

app = FastAPI(
    title="Chat Rooms API",
    description="Chat rooms with an AI assistant",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(chat_rooms.router)
app.include_router(members.router)
app.include_router(messages.router)
app.include_router(health.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    body: dict = {"detail": "Internal server error"}
    if settings.ENVIRONMENT == "development":
        body["error"] = str(exc)
    return JSONResponse(status_code=500, content=body)
