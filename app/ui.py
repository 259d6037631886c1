"""Gradio UI for the generation pipeline."""

import io
import logging
from typing import List, Optional, Tuple
from PIL import Image
import gradio as gr

from src.core.errors import GenerationError
from src.core.models import GenerationResult
from src.core.pipeline import ANONYMOUS_CLIENT, GenerationPipeline
from src.core.registry import DEFAULT_MODEL, DEFAULT_STYLE, PRESETS, list_styles
from src.utils.history_manager import GenerationHistory
from src.utils.image_utils import decode_base64_image, is_url

logger = logging.getLogger(__name__)


def result_to_pil(result: GenerationResult) -> Optional[Image.Image]:
    """Decode a result's image for display.

    Returns:
        PIL Image, or None when the image is an undecodable provider output
    """
    image = result.image
    try:
        if isinstance(image, bytes):
            return Image.open(io.BytesIO(image))
        if not is_url(image):
            return Image.open(io.BytesIO(decode_base64_image(image)))
    except Exception as e:
        logger.warning(f"Could not decode image {result.id} for display: {e}")
    return None


def format_result_info(result: GenerationResult) -> str:
    """Format metadata for the status box."""
    meta = result.metadata
    lines = [
        "⚠️ Provider unavailable, showing placeholder" if meta.placeholder
        else "✅ Image generated successfully!",
        f"Model: {meta.model} via {meta.provider}",
        f"Style: {meta.style}",
        f"Enhanced prompt: {meta.enhanced_prompt}",
        f"Negative prompt: {meta.negative_prompt}",
        f"Seed: {meta.parameters.get('seed')}",
    ]
    for warning in meta.warnings:
        lines.append(f"Note: {warning}")
    return "\n".join(lines)


def create_ui(
    pipeline: GenerationPipeline,
    history: GenerationHistory,
    default_quality: int = 85
) -> gr.Blocks:
    """Build the Gradio interface.

    Args:
        pipeline: Generation pipeline
        history: History store shared with the HTTP API
        default_quality: Initial value of the quality slider

    Returns:
        Gradio Blocks app
    """
    style_choices = [(style.name, style.id) for style in list_styles()]
    model_choices = pipeline.orchestrator.registry.ids()
    examples = [[prompt] for prompts in PRESETS.values() for prompt in prompts[:1]]

    def generate_image(
        prompt: str,
        style: str,
        model: str,
        quality: int,
        negative_prompt: str,
        steps: int,
        cfg_scale: float,
        width: int,
        height: int,
        seed: str,
        request: gr.Request
    ) -> Tuple[Optional[Image.Image], str]:
        payload = {
            "prompt": prompt,
            "style": style,
            "model": model,
            "quality": int(quality),
            "negative_prompt": negative_prompt or None,
            "steps": steps,
            "cfg_scale": cfg_scale,
            "width": width,
            "height": height,
            "seed": seed.strip() if seed and seed.strip() else None,
        }
        client_id = request.client.host if request and request.client else ANONYMOUS_CLIENT

        try:
            result = pipeline.generate_from_payload(payload, client_id)
        except GenerationError as e:
            logger.error(f"Generation rejected: {e}")
            return None, f"❌ {e.message}"
        except Exception as e:
            logger.exception(f"Unexpected error: {e}")
            return None, f"❌ Unexpected error: {e}"

        history.add(result)
        return result_to_pil(result), format_result_info(result)

    def load_history() -> Tuple[List[Tuple[Image.Image, str]], str]:
        items = []
        for result in history.get_latest():
            image = result_to_pil(result)
            if image is not None:
                items.append((image, result.metadata.original_prompt[:60]))
        return items, f"{history.get_count()} images in history"

    with gr.Blocks(title="AI Art Generator") as demo:
        gr.Markdown("# 🎨 AI Art Generator\nDescribe an image, pick a style and a model.")

        with gr.Tabs():
            with gr.Tab("🎨 Generate"):
                with gr.Row():
                    with gr.Column(scale=1):
                        prompt_input = gr.Textbox(
                            label="Prompt",
                            placeholder="A castle at sunset...",
                            lines=3
                        )
                        with gr.Row():
                            style_selector = gr.Dropdown(
                                choices=style_choices, value=DEFAULT_STYLE, label="Style"
                            )
                            model_selector = gr.Dropdown(
                                choices=model_choices, value=DEFAULT_MODEL, label="Model"
                            )
                        quality_slider = gr.Slider(
                            minimum=1, maximum=100, value=default_quality, step=1,
                            label="Quality"
                        )

                        with gr.Accordion("Advanced Settings", open=False):
                            negative_prompt_input = gr.Textbox(
                                label="Negative Prompt (leave empty for style default)",
                                lines=2
                            )
                            steps_slider = gr.Slider(
                                minimum=1, maximum=150, value=30, step=1, label="Steps"
                            )
                            cfg_slider = gr.Slider(
                                minimum=1.0, maximum=20.0, value=7.0, step=0.5,
                                label="CFG Scale"
                            )
                            with gr.Row():
                                width_slider = gr.Slider(
                                    minimum=256, maximum=2048, value=1024, step=64,
                                    label="Width"
                                )
                                height_slider = gr.Slider(
                                    minimum=256, maximum=2048, value=1024, step=64,
                                    label="Height"
                                )
                            seed_input = gr.Textbox(label="Seed (empty = random)")

                        generate_btn = gr.Button("🎨 Generate Image", variant="primary", size="lg")

                    with gr.Column(scale=1):
                        output_image = gr.Image(label="Generated Image", type="pil")
                        output_info = gr.Textbox(label="Status", lines=8, interactive=False)

                gr.Examples(examples=examples, inputs=[prompt_input])

            with gr.Tab("📸 History"):
                with gr.Row():
                    history_count = gr.Textbox(label="History", interactive=False)
                    refresh_btn = gr.Button("🔄 Refresh")
                history_gallery = gr.Gallery(label="Recent generations", columns=4)

        generate_btn.click(
            fn=generate_image,
            inputs=[
                prompt_input, style_selector, model_selector, quality_slider,
                negative_prompt_input, steps_slider, cfg_slider,
                width_slider, height_slider, seed_input,
            ],
            outputs=[output_image, output_info],
        )
        refresh_btn.click(fn=load_history, outputs=[history_gallery, history_count])

    return demo
