import base64
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class SelectedFile:
    """An uploaded file as kept in the panel's own ordered list."""

    name: str
    data: bytes
    mime_type: str = ""


@dataclass(frozen=True)
class ImageInput:
    base64: str
    mime_type: str

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def guess_mime_type(data: bytes) -> str:
    try:
        with Image.open(BytesIO(data)) as image:
            return Image.MIME.get(image.format or "", DEFAULT_MIME_TYPE)
    except Exception:
        return DEFAULT_MIME_TYPE


def file_to_image_input(file: SelectedFile) -> ImageInput:
    mime_type = file.mime_type or guess_mime_type(file.data)
    return ImageInput(
        base64=base64.b64encode(file.data).decode("ascii"),
        mime_type=mime_type,
    )


def encode_files(files: Sequence[SelectedFile], max_workers: int = 4) -> List[ImageInput]:
    """Encode files concurrently. Output order always matches ``files``."""
    if not files:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(file_to_image_input, files))


def split_data_uri(uri: str) -> Tuple[str, str]:
    header, _, payload = uri.partition(",")
    if not header.startswith("data:") or ";base64" not in header or not payload:
        raise ValueError("Not a base64 data URI.")
    mime_type = header[len("data:"):].split(";", 1)[0] or DEFAULT_MIME_TYPE
    return mime_type, payload


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    mime_type, payload = split_data_uri(uri)
    return mime_type, base64.b64decode(payload)


def normalize_images(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    # A nested list holds one entry per candidate; only the first is used.
    images = data.get("images") or []
    if images and isinstance(images[0], list):
        images = images[0]
    return images


def image_to_data_uri(image: Any) -> Optional[str]:
    if not isinstance(image, dict):
        return None
    url = image.get("url") or ""
    if url.startswith("data:"):
        try:
            split_data_uri(url)
        except ValueError:
            return None
        return url
    if url.startswith(("http://", "https://")):
        response = requests.get(url, timeout=15)
        response.raise_for_status()
        mime_type = image.get("content_type") or response.headers.get("Content-Type") or DEFAULT_MIME_TYPE
        return ImageInput(base64.b64encode(response.content).decode("ascii"), mime_type).to_data_uri()
    return None


def extract_first_image(data: Dict[str, Any]) -> Optional[str]:
    for image in normalize_images(data):
        uri = image_to_data_uri(image)
        if uri:
            return uri
    return None


def extract_all_images(data: Dict[str, Any]) -> List[str]:
    uris = []
    for image in normalize_images(data):
        uri = image_to_data_uri(image)
        if uri:
            uris.append(uri)
        else:
            logger.warning("Dropping image entry without usable data")
    return uris
