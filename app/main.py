"""Entry point: HTTP API with the Gradio UI mounted at /ui."""

import logging
import uvicorn
import gradio as gr

from app.api import create_app, create_pipeline
from app.config import settings
from app.ui import create_ui
from src.utils.history_manager import GenerationHistory

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_app():
    """Create the FastAPI app and mount the UI on it."""
    pipeline = create_pipeline(settings)
    history = GenerationHistory(max_history=settings.max_history_items)
    app = create_app(settings, pipeline=pipeline, history=history)

    if settings.enable_ui:
        demo = create_ui(pipeline, history, default_quality=settings.compression_quality)
        app = gr.mount_gradio_app(app, demo, path="/ui")

    return app


def main() -> None:
    """Run the server."""
    app = build_app()
    orchestrator = app.state.pipeline.orchestrator
    configured = orchestrator.registry.configured_ids()
    logger.info(
        f"AI Art Generator starting on http://{settings.host}:{settings.port} "
        f"(environment: {settings.app_env or 'default'}, configured models: {configured or 'none'})"
    )
    logger.info(f"Provider adapters: {orchestrator.get_adapter_names()}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
