"""Application wiring: builds the FastAPI app from settings."""
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
import weave
from fastapi import FastAPI, Request
from slack_bolt.adapter.fastapi.async_handler import AsyncSlackRequestHandler
from slack_bolt.async_app import AsyncApp
from slackwire.config import Settings
from slackwire.database.thread_store import ThreadStore
from slackwire.models.agent import Agent
from slackwire.router import Router
from slackwire.slack.events import register_event_handlers
from slackwire.tools.registry import build_tools
from slackwire.tools.web import ExaSearch
from slackwire.utils.logging import configure_logging, get_logger
from slackwire.utils.turn_runner import TurnRunner

logger = get_logger(__name__)

ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

def init_tracing(settings: Settings) -> None:
    try:
        if settings.wandb_api_key:
            weave.init("slackwire")
            logger.info("Weave tracing initialized successfully")
    except Exception as e:
        logger.warning(f"Failed to initialize weave tracing: {e}. Continuing without weave.")

def create_app(
    settings: Settings,
    store: Optional[ThreadStore] = None,
    bolt_app: Optional[AsyncApp] = None,
) -> FastAPI:
    """Build the ASGI app.

    Tools are built here, so a tool name collision fails at startup.

    Args:
        settings: Deployment settings
        store: Thread store to use; defaults to one built from settings.database_url
        bolt_app: Bolt app to use; defaults to one built from the Slack credentials
    """
    store = store or ThreadStore(settings.database_url)
    bolt_app = bolt_app or AsyncApp(
        token=settings.slack_bot_token,
        signing_secret=settings.slack_signing_secret,
    )
    register_event_handlers(bolt_app, store)

    tools = build_tools(bolt_app.client, ExaSearch(settings.exa_api_key))
    agent = Agent(model_name=settings.model_name, tools=tools, slack_client=bolt_app.client)
    runner = TurnRunner(store, agent).attach()
    router = Router(
        store,
        AsyncSlackRequestHandler(bolt_app),
        task_path=settings.task_path,
        news_channel=settings.news_channel,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await store.initialize()
        await runner.start()
        try:
            yield
        finally:
            await runner.stop()

    app = FastAPI(title="slackwire", lifespan=lifespan)
    app.state.router = router
    app.state.runner = runner
    app.state.store = store

    @app.api_route("/{path:path}", methods=ROUTED_METHODS)
    async def route(request: Request):
        return await router.route(request)

    return app

def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    init_tracing(settings)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())

if __name__ == "__main__":
    main()
