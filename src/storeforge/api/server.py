"""FastAPI surface for the store assistant.

Wraps the tool dispatcher and per-conversation confirmation gates behind a
small JSON API. Tool results are returned in their wire envelope
(``success``/``data``/``message``/``error``/``requiresConfirmation``) so the
presentation layer never sees Python names.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storeforge import __version__
from storeforge.assistant.session import AssistantSession, ConversationRegistry
from storeforge.config import Settings
from storeforge.errors import AuthorizationError, NotFoundError, StoreForgeError, UpstreamError, ValidationError
from storeforge.store.base import StoreGateway
from storeforge.tools.contracts import ToolContext
from storeforge.tools.dispatcher import ToolDispatcher


logger = logging.getLogger(__name__)


# Report name in the URL -> analytics tool.
ANALYTICS_TOOLS = {
    "overview": "getBusinessIntelligence",
    "revenue": "getRevenueAnalytics",
    "customers": "getCustomerInsights",
    "inventory": "getInventoryHealth",
    "marketing": "getMarketingInsights",
    "actionable": "getActionableInsights",
}

ERROR_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    UpstreamError: 502,
}


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolCallRequest(ApiModel):
    """A model-proposed tool call within a conversation."""
    store_id: str = Field(..., min_length=1, description="Store the call is scoped to")
    tool_name: str = Field(..., min_length=1, description="Registered tool name")
    args: dict[str, Any] = Field(default_factory=dict)
    surface: bool = Field(
        True,
        description="Show a held destructive call to the merchant right away",
    )


class TextRequest(ApiModel):
    """Free text from the merchant or the model."""
    store_id: str = Field(..., min_length=1)
    text: str


def _session_state(session: AssistantSession) -> dict[str, Any]:
    pending = session.pending
    return {
        "conversationId": session.conversation_id,
        "storeId": session.store_id,
        "state": session.state.value,
        "pendingAction": pending.to_wire() if pending else None,
    }


def create_app(store: StoreGateway | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API around a gateway. Opens ``settings.db_path`` when none is given."""
    settings = settings or Settings.from_env()
    if store is None:
        from storeforge.store.duckdb_store import DuckDBStore

        store = DuckDBStore(settings.db_path)

    dispatcher = ToolDispatcher(store, settings=settings)
    conversations = ConversationRegistry(dispatcher)

    app = FastAPI(title="StoreForge API", version=__version__)
    app.state.dispatcher = dispatcher
    app.state.conversations = conversations

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreForgeError)
    async def storeforge_error(request: Request, exc: StoreForgeError):
        status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
        return JSONResponse(
            status_code=status,
            content={"error": exc.message, "kind": exc.kind, "suggestion": exc.suggestion},
        )

    def session_or_404(conversation_id: str) -> AssistantSession:
        session = conversations.get(conversation_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown conversation: {conversation_id}")
        return session

    # -------------------------------------------------------------------------
    # Catalogue
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "tools": len(dispatcher.registry), "conversations": len(conversations)}

    @app.get("/api/tools")
    async def list_tools():
        return {"tools": dispatcher.registry.catalogue()}

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    @app.post("/api/conversations/{conversation_id}/tool-calls")
    def call_tool(conversation_id: str, request: ToolCallRequest):
        """Run a tool call through the conversation's confirmation gate.

        A destructive call comes back with ``requiresConfirmation`` and, when
        ``surface`` is set, the ``[CONFIRM_ACTION]`` marker to show.
        """
        session = conversations.get_or_create(conversation_id, request.store_id)
        result = session.call_tool(request.tool_name, request.args)
        marker = None
        if result.requires_confirmation and request.surface:
            marker = session.surface_pending()
        return {**_session_state(session), "result": result.to_wire(), "marker": marker}

    @app.post("/api/conversations/{conversation_id}/messages")
    def post_message(conversation_id: str, request: TextRequest):
        """Handle a merchant reply, consuming a confirm/cancel signal if present."""
        session = conversations.get_or_create(conversation_id, request.store_id)
        turn = session.handle_user_message(request.text)
        return {**_session_state(session), "turn": turn.to_wire()}

    @app.post("/api/conversations/{conversation_id}/model-output")
    def post_model_output(conversation_id: str, request: TextRequest):
        """Decode markers from model text before it is displayed."""
        session = conversations.get_or_create(conversation_id, request.store_id)
        output = session.ingest_model_output(request.text)
        return {**_session_state(session), "output": output.to_wire()}

    @app.get("/api/conversations/{conversation_id}")
    async def get_conversation(conversation_id: str):
        return _session_state(session_or_404(conversation_id))

    @app.delete("/api/conversations/{conversation_id}")
    async def drop_conversation(conversation_id: str):
        if not conversations.drop(conversation_id):
            raise HTTPException(status_code=404, detail=f"Unknown conversation: {conversation_id}")
        return {"dropped": conversation_id}

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @app.get("/api/stores/{store_id}/insights")
    def store_insights(store_id: str):
        result = dispatcher.dispatch("getActionableInsights", {}, ToolContext(store_id=store_id))
        return result.to_wire()

    @app.get("/api/stores/{store_id}/analytics/{kind}")
    def store_analytics(store_id: str, kind: str, period: str | None = None):
        tool_name = ANALYTICS_TOOLS.get(kind)
        if tool_name is None:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown report: {kind}. Available: {', '.join(ANALYTICS_TOOLS)}",
            )
        args: dict[str, Any] = {}
        if period and kind not in ("inventory", "actionable"):
            args["period"] = period
        result = dispatcher.dispatch(tool_name, args, ToolContext(store_id=store_id))
        if not result.success:
            raise HTTPException(status_code=400, detail=result.error)
        return result.to_wire()

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000, log_level="info")
