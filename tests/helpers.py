"""Shared fakes for the workflow tests."""
from unittest.mock import Mock

from client import StudioClient

PNG_URI = "data:image/png;base64,iVBORw0KGgo="
JPEG_URI = "data:image/jpeg;base64,/9j/4AAQ"


def make_client() -> Mock:
    client = Mock(spec=StudioClient)
    client.text_to_image_endpoint = "fal-ai/imagen4/preview"
    client.image_edit_endpoint = "fal-ai/gemini-25-flash-image/edit"
    client.complete_text.return_value = "A red bottle"
    return client


def image_result(uri: str = PNG_URI, description: str = "") -> dict:
    result = {"images": [{"url": uri, "content_type": "image/png"}]}
    if description:
        result["description"] = description
    return result
