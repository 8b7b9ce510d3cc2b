import logging
from pathlib import Path

import config
from client import StudioClient
from errors import TranslationFailure

logger = logging.getLogger(__name__)

DEFAULT_TRANSLATE_PROMPT = (
    "Translate the following Chinese text to English. Return only the translated English text, "
    "without any explanation or extra text.\n\n"
    'Chinese text: "{text}"'
)


def load_text_file(path: Path, default: str = "") -> str:
    try:
        return path.read_text(encoding="utf-8").strip() or default
    except (FileNotFoundError, NotADirectoryError):
        return default


def load_translate_prompt() -> str:
    template = load_text_file(config.TRANSLATE_PROMPT_PATH, DEFAULT_TRANSLATE_PROMPT)
    if "{text}" not in template:
        logger.warning(f"{config.TRANSLATE_PROMPT_PATH} has no {{text}} placeholder, using built-in prompt")
        return DEFAULT_TRANSLATE_PROMPT
    return template


def request_translation(client: StudioClient, text: str) -> str:
    prompt = load_translate_prompt().replace("{text}", text)
    try:
        translated = client.complete_text(prompt, temperature=0)
    except Exception as exc:
        raise TranslationFailure(str(exc)) from exc
    if not translated:
        raise TranslationFailure("Received empty translation.")
    return translated


def translate_to_english(client: StudioClient, text: str) -> str:
    """Translate a prompt to English, returning ``text`` unchanged on any failure.

    Blank input is returned as-is without calling the model.
    """
    if not text.strip():
        return text
    try:
        return request_translation(client, text)
    except TranslationFailure as exc:
        logger.warning(f"Translation failed, using original prompt: {exc}")
        return text
