import uuid
import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from facilitator import Facilitator, get_facilitator
from llm_service import FacilitatorError
from logging_setup import setup_logging
from Models.ConversationPayload import FacilitatePayload, InitiatePayload

setup_logging()
logger = logging.getLogger("facilitator-service")

app = FastAPI(
    title="AI Conversation Facilitator Service",
    description="Opens a conversation between two users and decides when an AI facilitator should step in.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def facilitator_dependency() -> Facilitator:
    return get_facilitator(settings)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body on {request.url.path}: {len(exc.errors())} error(s)")
    return JSONResponse(
        status_code=400,
        content={"error": {"message": "Invalid request body", "details": jsonable_encoder(exc.errors())}},
    )


@app.exception_handler(FacilitatorError)
async def facilitator_error_handler(request: Request, exc: FacilitatorError):
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": exc.message, "details": jsonable_encoder(exc.details)}},
    )


@app.get("/")
async def root():
    return {"message": "Facilitator service is running"}

@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "decision_engine": settings.DECISION_ENGINE,
        "ts": datetime.now(timezone.utc).isoformat(),
    }

@app.post("/api/initiate-conversation", summary="Builds the opening message for each user")
async def initiate_conversation_endpoint(
    payload: InitiatePayload,
    facilitator: Facilitator = Depends(facilitator_dependency),
):
    request_id = str(uuid.uuid4())
    logger.info(f"New initiate request received. requestId: {request_id}")
    result = await facilitator.initiate(payload.users_info)
    logger.info(f"Kickoff messages built for targets {[m.target for m in result.ai_messages]}. requestId: {request_id}")
    return {"data": result.model_dump()}

@app.post("/api/facilitate-conversation", summary="Decides whether the AI facilitator should intervene")
async def facilitate_conversation_endpoint(
    payload: FacilitatePayload,
    facilitator: Facilitator = Depends(facilitator_dependency),
):
    request_id = str(uuid.uuid4())
    logger.info(f"New facilitate request received. requestId: {request_id}")
    result = await facilitator.facilitate(payload.users_info, payload.conversation)
    logger.info(f"Facilitation decided: urgency={result.urgency}. requestId: {request_id}")
    return {"data": result.model_dump()}
