from __future__ import annotations
"""HTTP API for the lab dashboard.

Run:
  uvicorn labdesk.service.api:app --reload

The chat endpoint routes with the shared rule-based classifier; when
OPENAI_API_KEY is set the reply text is phrased by OpenAI, falling back to the
rule-based text whenever the provider is unavailable. Orders created through
the API live in the caller's session overlay only.
"""
import uuid
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from labdesk.adapters.datasource.json_data_source import JSONPatientRepository
from labdesk.adapters.intents.yaml_registry import YAMLIntentsRegistry
from labdesk.adapters.llm.openai_provider import OpenAIProvider
from labdesk.adapters.llm.reply_writer import LLMReplyWriter
from labdesk.adapters.memory.in_memory import InMemoryConversationMemory
from labdesk.adapters.telemetry.logging_sink import LoggingSink
from labdesk.agent.router import ChatRouter
from labdesk.common.logging import get_logger
from labdesk.core.config import Settings
from labdesk.core.errors import OrderValidationError, ProviderUnavailableError
from labdesk.core.interfaces import LLMProvider, TelemetrySink
from labdesk.core.types import Interaction
from labdesk.service.schemas import (
    ChatReply,
    ChatRequest,
    ConfigStatus,
    CreateOrderRequest,
    CreateOrderResponse,
    HealthResponse,
    TrackingResponse,
)
from labdesk.tools.create_order import OrderRequest, create_order
from labdesk.tools.order_tracking import make_track_order

logger = get_logger(__name__)

INVALID_BODY = {"error": "Invalid JSON in request body"}


def new_session_id() -> str:
    return f"api-{uuid.uuid4().hex[:12]}"


def _build_writer(settings: Settings, intents: YAMLIntentsRegistry, llm: Optional[LLMProvider]) -> Optional[LLMReplyWriter]:
    if llm is not None:
        return LLMReplyWriter(llm, intents)
    if not settings.llm_configured:
        logger.info("OPENAI_API_KEY not set; using rule-based replies")
        return None
    try:
        provider = OpenAIProvider(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            timeout=settings.llm_timeout,
        )
    except ProviderUnavailableError as exc:
        logger.warning("OpenAI provider unavailable: %s", exc)
        return None
    return LLMReplyWriter(provider, intents)


def create_app(
    settings: Optional[Settings] = None,
    llm: Optional[LLMProvider] = None,
    telemetry: Optional[TelemetrySink] = None,
) -> FastAPI:
    """Build the app. `llm` and `telemetry` are injectable for tests."""
    settings = settings or Settings.from_env()
    repository = JSONPatientRepository(settings.fixtures_path)
    intents = YAMLIntentsRegistry(settings.intents_path)
    memory = InMemoryConversationMemory(max_messages=settings.max_messages)
    router = ChatRouter(
        repository=repository,
        intents=intents,
        telemetry=telemetry or LoggingSink(),
        memory=memory,
        writer=_build_writer(settings, intents, llm),
    )

    app = FastAPI(title="Lab Dashboard API", version="1.0")
    app.state.settings = settings
    app.state.router = router

    def scoped(session_id: Optional[str]):
        # Anonymous reads see fixture data only; created orders stay in their session.
        return router.session_repository(session_id) if session_id else repository

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content=INVALID_BODY)

    @app.exception_handler(OrderValidationError)
    async def invalid_order(request: Request, exc: OrderValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message, "code": exc.code})

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="ok",
            patients_loaded=len(repository.patients()),
            llm_configured=router.writer is not None,
        )

    @app.get("/api/check-config", response_model=ConfigStatus)
    def check_config():
        if settings.llm_configured:
            return ConfigStatus(configured=True, message="OpenAI API key is configured")
        return ConfigStatus(
            configured=False,
            message="OpenAI API key is not configured; the assistant uses rule-based replies",
        )

    @app.post("/api/chat", response_model=ChatReply, response_model_exclude_none=True)
    def chat(req: ChatRequest):
        turns = [t.model_dump() for t in req.messages]
        last_user = next((t for t in reversed(turns) if t["role"] == "user"), None)
        if last_user is None:
            return JSONResponse(status_code=400, content=INVALID_BODY)
        session_id = req.session_id or new_session_id()
        interaction: Interaction = {
            "id": f"user-{uuid.uuid4().hex[:12]}",
            "text": last_user["content"],
            "history": turns,
            "context": {"session_id": session_id, "channel": "api"},
        }
        return {**router.handle(interaction), "session_id": session_id}

    @app.post("/api/create-order", response_model=CreateOrderResponse)
    def create_order_endpoint(req: CreateOrderRequest):
        session_id = req.session_id or new_session_id()
        created = create_order(
            OrderRequest(
                patient_id=req.patient_id,
                test_ids=req.tests,
                phlebotomy_option=req.phlebotomy_option,
                phlebotomy_type=req.phlebotomy_type,
                billed_to=req.billed_to,
                notes=req.notes,
            ),
            router.session_repository(session_id),
            memory.for_session(session_id),
        )
        logger.info("Created order %s for %s in session %s", created.id, req.patient_id, session_id)
        return CreateOrderResponse(
            session_id=session_id,
            orderId=created.id,
            status=created.order["status"],
            createdAt=created.created_at,
            total=created.total,
            order=dict(created.order),
        )

    @app.get("/api/orders/recent")
    def recent_orders(limit: int = Query(5, ge=1, le=100), session_id: Optional[str] = None) -> List[dict]:
        return [dict(o) for o in scoped(session_id).list_recent_orders(limit)]

    @app.get("/api/orders/{order_id}")
    def get_order(order_id: str, session_id: Optional[str] = None) -> dict:
        order = scoped(session_id).get_order(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
        return dict(order)

    @app.get("/api/orders/{order_id}/tracking", response_model=TrackingResponse)
    def get_tracking(order_id: str, session_id: Optional[str] = None):
        repo = scoped(session_id)
        result = make_track_order(repo)(order_id)
        if not result["ok"]:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
        order = result["data"]["order"]
        patient = repo.find_by_id(order.get("patientId", ""))
        return TrackingResponse(
            orderId=order["id"],
            status=order.get("status", ""),
            patientName=patient.get("name") if patient else None,
            current=result["data"]["current"],
            steps=result["data"]["steps"],
        )

    @app.get("/api/patients")
    def patients(name: str = "", session_id: Optional[str] = None) -> List[dict]:
        repo = scoped(session_id)
        found = repo.find_by_name_fragment(name) if name.strip() else repo.patients()
        return [dict(p) for p in found]

    return app


load_dotenv()
app = create_app()
