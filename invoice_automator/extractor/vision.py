"""Vision-model calls that turn an invoice document into JSON text.

Two providers are supported, selected by ``extraction.provider`` in
``config/config.json``:

* ``mistral``: Mistral chat with the document sent as a data URL
  (PDFs are sent whole).
* ``openrouter``: OpenAI-compatible chat via OpenRouter. PDFs are rendered
  page by page to PNG with pdfplumber, since image inputs are what every
  OpenRouter vision model accepts.

Both return the raw message text; parsing happens in
:mod:`invoice_automator.extractor.extraction`.
"""

from __future__ import annotations

import base64
import io
from typing import Any

import pdfplumber

from invoice_automator.config import (
    get_extraction_config,
    get_mistral_client,
    get_openrouter_client,
    setup_logging,
)
from invoice_automator.extractor.prompts import is_pdf

logger = setup_logging(__name__)

DEFAULT_RENDER_RESOLUTION = 150
DEFAULT_MAX_TOKENS = 4096


def _data_url(content: bytes, media_type: str) -> str:
    encoded = base64.standard_b64encode(content).decode("utf-8")
    return f"data:{media_type};base64,{encoded}"


def render_pdf_pages(document: bytes, resolution: int = DEFAULT_RENDER_RESOLUTION) -> list[bytes]:
    """Render every page of a PDF to PNG bytes.

    Parameters
    ----------
    document
        PDF content.
    resolution
        Render resolution in DPI.

    Returns
    -------
    list[bytes]
        One PNG per page, in page order.
    """
    pages: list[bytes] = []
    with pdfplumber.open(io.BytesIO(document)) as pdf:
        logger.debug("PDF has %s pages", len(pdf.pages))
        for page in pdf.pages:
            buffer = io.BytesIO()
            page.to_image(resolution=resolution).original.save(buffer, format="PNG")
            pages.append(buffer.getvalue())
    return pages


def _image_parts(document: bytes, media_type: str, resolution: int) -> list[dict[str, Any]]:
    """Build OpenAI-style ``image_url`` content parts for a document."""
    if is_pdf(media_type):
        images = render_pdf_pages(document, resolution)
        return [{"type": "image_url", "image_url": {"url": _data_url(png, "image/png")}} for png in images]
    return [{"type": "image_url", "image_url": {"url": _data_url(document, media_type)}}]


def _provider_settings(provider: str, model: str | None) -> tuple[str, int]:
    settings = get_extraction_config().get("providers", {}).get(provider, {})
    resolved_model = model or settings.get("model")
    if not resolved_model:
        msg = f"No model configured for extraction provider {provider!r}"
        raise ValueError(msg)
    return resolved_model, int(settings.get("max_tokens", DEFAULT_MAX_TOKENS))


def _message_text(content: Any) -> str | None:
    """Flatten a chat message's content (plain string or list of text chunks)."""
    if content is None:
        return None
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for chunk in content:
        text = chunk.get("text") if isinstance(chunk, dict) else getattr(chunk, "text", None)
        if text:
            parts.append(text)
    return "".join(parts) or None


def call_mistral(document: bytes, media_type: str, prompt: str, model: str | None = None) -> str | None:
    """Send the document and instruction to Mistral and return the reply text."""
    client = get_mistral_client()
    resolved_model, max_tokens = _provider_settings("mistral", model)

    messages = [
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": _data_url(document, media_type)}},
                {"type": "text", "text": prompt},
            ],
        },
    ]

    logger.info("Calling Mistral extraction: %s", resolved_model)
    response = client.chat.complete(
        model=resolved_model,
        messages=messages,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
    )
    if response.usage:
        logger.debug(f"Tokens used: {response.usage.prompt_tokens} + {response.usage.completion_tokens}")
    return _message_text(response.choices[0].message.content)


def call_openrouter(document: bytes, media_type: str, prompt: str, model: str | None = None) -> str | None:
    """Send the document and instruction to an OpenRouter model and return the reply text."""
    client = get_openrouter_client()
    resolved_model, max_tokens = _provider_settings("openrouter", model)
    resolution = int(get_extraction_config().get("pdf_render_resolution", DEFAULT_RENDER_RESOLUTION))

    messages = [
        {
            "role": "user",
            "content": [
                *_image_parts(document, media_type, resolution),
                {"type": "text", "text": prompt},
            ],
        },
    ]

    logger.info("Calling OpenRouter extraction: %s", resolved_model)
    response = client.chat.completions.create(
        model=resolved_model,
        messages=messages,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
    )
    if response.usage:
        logger.debug(f"Tokens used: {response.usage.prompt_tokens} + {response.usage.completion_tokens}")
    return _message_text(response.choices[0].message.content)


PROVIDERS = {
    "mistral": call_mistral,
    "openrouter": call_openrouter,
}
