import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

FAL_KEY = os.getenv("FAL_KEY", "").strip()
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
TRANSLATION_MODEL = os.getenv("TRANSLATION_MODEL", "gpt-4o").strip()

TEXT_TO_IMAGE_ENDPOINT = os.getenv("TEXT_TO_IMAGE_ENDPOINT", "fal-ai/imagen4/preview").strip()
IMAGE_EDIT_ENDPOINT = os.getenv("IMAGE_EDIT_ENDPOINT", "fal-ai/gemini-25-flash-image/edit").strip()

CALL_TIMEOUT = float(os.getenv("CALL_TIMEOUT", "180"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

MIN_BATCH = 1
MAX_BATCH = 4
OUTPUT_FORMAT = "png"

PROMPTS_DIR = Path(__file__).parent / "prompts"
TRANSLATE_PROMPT_PATH = PROMPTS_DIR / "translate_prompt.txt"

VARIATION_PROMPT = (
    "Create a new variation of this product photo. Keep the product itself unchanged "
    "and vary the composition, lighting and background."
)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
