from typing import Any, Dict, List

import fal_client
from openai import OpenAI

import config


class StudioClient:
    """Shared handle on the hosted text and image models.

    Built once per process and handed to every workflow. Holds no
    per-submission state, so it is safe to use from worker threads.
    """

    def __init__(
        self,
        fal_key: str,
        openai_api_key: str,
        translation_model: str = config.TRANSLATION_MODEL,
        text_to_image_endpoint: str = config.TEXT_TO_IMAGE_ENDPOINT,
        image_edit_endpoint: str = config.IMAGE_EDIT_ENDPOINT,
        timeout: float = config.CALL_TIMEOUT,
    ) -> None:
        self.translation_model = translation_model
        self.text_to_image_endpoint = text_to_image_endpoint
        self.image_edit_endpoint = image_edit_endpoint
        self._fal = fal_client.SyncClient(key=fal_key, default_timeout=timeout)
        self._openai = OpenAI(api_key=openai_api_key)

    @classmethod
    def from_env(cls) -> "StudioClient":
        if not config.FAL_KEY:
            raise RuntimeError("Environment variable `FAL_KEY` is not set.")
        if not config.OPENAI_API_KEY:
            raise RuntimeError("Environment variable `OPENAI_API_KEY` is not set.")
        return cls(config.FAL_KEY, config.OPENAI_API_KEY)

    def complete_text(self, prompt: str, temperature: float = 0.0) -> str:
        response = self._openai.chat.completions.create(
            model=self.translation_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        return (response.choices[0].message.content or "").strip()

    def generate_images(self, prompt: str, num_images: int) -> Dict[str, Any]:
        return self._fal.run(
            self.text_to_image_endpoint,
            arguments={
                "prompt": prompt,
                "num_images": num_images,
                "output_format": config.OUTPUT_FORMAT,
                "sync_mode": True,
            },
        )

    def edit_images(self, prompt: str, image_urls: List[str]) -> Dict[str, Any]:
        # Response modality is fixed by the endpoint: images plus an optional `description` text.
        return self._fal.run(
            self.image_edit_endpoint,
            arguments={
                "prompt": prompt,
                "image_urls": image_urls,
                "num_images": 1,
                "output_format": config.OUTPUT_FORMAT,
                "sync_mode": True,
            },
        )
