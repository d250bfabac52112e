"""Relay 的 HTTP 传输层。

- POST /api/chat: {messages: [{role, content}, ...]} -> {role: "assistant", content} 或 {error}
- POST /api/render: {markdown} -> {html}
- GET  /api/health

所有失败都以 {"error": ...} 形式返回，不使用 FastAPI 默认的 422 detail 结构。
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_provider
from chat_core.relay.service import ChatRelay
from chat_core.rendering import render


def create_app(relay: Optional[ChatRelay] = None) -> FastAPI:
    app = FastAPI(title="chat-core relay")
    app.state.relay = relay

    def get_relay() -> ChatRelay:
        if app.state.relay is None:
            app.state.relay = ChatRelay(create_provider())
        return app.state.relay

    async def read_json(request: Request) -> Any:
        try:
            return await request.json()
        except ValueError:
            return None

    @app.post("/api/chat")
    async def chat(request: Request) -> JSONResponse:
        payload = await read_json(request)
        if payload is None:
            return JSONResponse({"error": "Request body must be valid JSON"}, status_code=400)
        # provider SDK 是同步调用，放到线程池里等待完整回复
        status, body = await run_in_threadpool(get_relay().handle, payload)
        if status != 200:
            logger.warning(f"Chat request failed: {body.get('error')}", extra={"extra": {"status": status}})
        return JSONResponse(body, status_code=status)

    @app.post("/api/render")
    async def render_markdown(request: Request) -> JSONResponse:
        payload = await read_json(request)
        text = payload.get("markdown") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            return JSONResponse({"error": "'markdown' must be a string"}, status_code=400)
        return JSONResponse({"html": render(text)})

    @app.get("/api/health")
    async def health() -> dict:
        provider = get_relay().provider
        return {"status": "ok", "model": getattr(provider, "model", None)}

    return app


app = create_app()
