import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import config
from client import StudioClient
from encoding import ImageInput, SelectedFile, encode_files, extract_all_images, extract_first_image
from errors import CallFailure, EmptyResultError, StudioError, ValidationError
from translator import translate_to_english

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    TEXT_TO_IMAGE = "text-to-image"
    IMAGE_TO_IMAGE = "image-to-image"
    IMAGE_EDIT = "image-edit"
    IMAGE_COMPOSE = "image-compose"


@dataclass(frozen=True)
class ModeSettings:
    title: str
    prompt_label: str
    prompt_placeholder: str
    button_text: str
    uploader_prompt: str = ""
    needs_images: bool = True
    multiple_files: bool = False
    prompt_required: bool = True
    batched: bool = False
    result_prefix: str = "processed-image"
    default_error: str = "处理图片时发生错误"


MODE_SETTINGS: Dict[Mode, ModeSettings] = {
    Mode.TEXT_TO_IMAGE: ModeSettings(
        title="文生图",
        prompt_label="提示词",
        prompt_placeholder="输入详细的商品描述，例如：'一个红色丝绸背景下的高端护肤品瓶子，光线柔和'",
        button_text="生成图片",
        needs_images=False,
        batched=True,
        result_prefix="generated-image",
        default_error="生成图片时发生错误",
    ),
    Mode.IMAGE_TO_IMAGE: ModeSettings(
        title="图生图",
        prompt_label="（可选）修改指令",
        prompt_placeholder="输入您想如何改变图片，例如：'改变背景为沙滩'",
        button_text="生成相似图",
        uploader_prompt="点击或拖拽图片到这里",
        prompt_required=False,
        batched=True,
    ),
    Mode.IMAGE_EDIT: ModeSettings(
        title="图片编辑",
        prompt_label="编辑指令",
        prompt_placeholder="输入编辑指令，例如：'移除背景' 或 '在商品旁边添加一个礼品盒'",
        button_text="开始编辑",
        uploader_prompt="点击或拖拽要编辑的图片到这里",
    ),
    Mode.IMAGE_COMPOSE: ModeSettings(
        title="图片合成",
        prompt_label="合成指令",
        prompt_placeholder="描述您希望如何合成这些图片，例如：'将第一个图的商品放在第二个图的背景上'",
        button_text="开始合成",
        uploader_prompt="点击或拖拽多张图片到这里",
        multiple_files=True,
        batched=True,
    ),
}

IMAGE_ONLY = ("IMAGE",)
IMAGE_AND_TEXT = ("IMAGE", "TEXT")


def clamp_batch_count(value: Any) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        return config.MIN_BATCH
    return max(config.MIN_BATCH, min(config.MAX_BATCH, count))


def validate(mode: Mode, prompt: str, files: Sequence[SelectedFile]) -> None:
    settings = MODE_SETTINGS[mode]
    if not settings.needs_images:
        if not prompt.strip():
            raise ValidationError("请输入提示词")
        return
    if not files:
        raise ValidationError("请上传至少一张图片")
    if settings.prompt_required and not prompt.strip():
        raise ValidationError("请输入指令")


def can_submit(mode: Mode, prompt: str, files: Sequence[SelectedFile], loading: bool = False) -> bool:
    if loading:
        return False
    try:
        validate(mode, prompt, files)
    except ValidationError:
        return False
    return True


@dataclass
class GenerationRequest:
    model: str
    prompt: str
    images: List[ImageInput] = field(default_factory=list)
    count: int = 1
    modalities: Tuple[str, ...] = IMAGE_ONLY

    def image_urls(self) -> List[str]:
        return [image.to_data_uri() for image in self.images]


def build_request(
    client: StudioClient,
    mode: Mode,
    prompt: str,
    images: Sequence[ImageInput],
    batch_count: int,
) -> GenerationRequest:
    count = clamp_batch_count(batch_count) if MODE_SETTINGS[mode].batched else 1
    if mode is Mode.TEXT_TO_IMAGE:
        return GenerationRequest(model=client.text_to_image_endpoint, prompt=prompt, count=count)
    if mode is Mode.IMAGE_TO_IMAGE and not prompt.strip():
        prompt = config.VARIATION_PROMPT
    return GenerationRequest(
        model=client.image_edit_endpoint,
        prompt=prompt,
        images=list(images),
        count=count,
        modalities=IMAGE_AND_TEXT,
    )


def collect_successes(
    call: Callable[[], Optional[str]],
    count: int,
    label: str,
) -> Tuple[List[str], List[Exception]]:
    """Run ``call`` ``count`` times in parallel and keep the images that came back.

    Results are in completion order. Calls that raise or return ``None`` are
    logged and left out instead of failing the batch.
    """
    images: List[str] = []
    failures: List[Exception] = []

    with ThreadPoolExecutor(max_workers=config.MAX_BATCH) as executor:
        future_to_index = {}
        for index in range(count):
            logger.info(f"Submitting {label} call {index + 1}/{count}")
            future_to_index[executor.submit(call)] = index

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                image = future.result()
            except Exception as exc:
                logger.error(f"{label} call {index + 1} failed: {exc}")
                failures.append(exc)
                continue
            if image is None:
                logger.warning(f"{label} call {index + 1} returned no image")
                continue
            logger.info(f"{label} call {index + 1} completed")
            images.append(image)

    return images, failures


def edit_once(client: StudioClient, request: GenerationRequest) -> Optional[str]:
    result = client.edit_images(request.prompt, request.image_urls())
    description = result.get("description")
    if description and "TEXT" in request.modalities:
        logger.info(f"{request.model} returned text: {description}")
    return extract_first_image(result)


def dispatch(client: StudioClient, mode: Mode, request: GenerationRequest) -> List[str]:
    settings = MODE_SETTINGS[mode]

    if mode is Mode.TEXT_TO_IMAGE:
        try:
            result = client.generate_images(request.prompt, request.count)
        except Exception as exc:
            raise CallFailure(str(exc) or settings.default_error) from exc
        images = extract_all_images(result)
        if not images:
            raise EmptyResultError("未能在响应中找到图片")
        return images

    if not settings.batched:
        try:
            image = edit_once(client, request)
        except Exception as exc:
            raise CallFailure(str(exc) or settings.default_error) from exc
        if image is None:
            raise EmptyResultError("未能在响应中找到图片")
        return [image]

    images, failures = collect_successes(lambda: edit_once(client, request), request.count, request.model)
    if images:
        return images
    if failures:
        first = failures[0]
        raise CallFailure(str(first) or settings.default_error) from first
    raise EmptyResultError("所有图片生成均失败")


def run_submission(
    client: StudioClient,
    mode: Mode,
    prompt: str,
    files: Sequence[SelectedFile],
    batch_count: int,
) -> Tuple[str, List[str]]:
    """Validate, translate, encode and dispatch one submission.

    Returns the prompt that was sent and the generated image data URIs.
    """
    validate(mode, prompt, files)
    translated = translate_to_english(client, prompt)
    images = encode_files(files)
    request = build_request(client, mode, translated, images, batch_count)
    return request.prompt, dispatch(client, mode, request)


@dataclass
class PanelState:
    mode: Mode
    prompt: str = ""
    files: List[SelectedFile] = field(default_factory=list)
    batch_count: int = config.MIN_BATCH
    loading: bool = False
    error: Optional[str] = None
    results: List[str] = field(default_factory=list)
    sent_prompt: str = ""
    seq: int = 0

    @property
    def settings(self) -> ModeSettings:
        return MODE_SETTINGS[self.mode]

    def add_files(self, new_files: Sequence[SelectedFile]) -> None:
        if not new_files:
            return
        if self.settings.multiple_files:
            self.files = [*self.files, *new_files]
        else:
            self.files = [new_files[0]]

    def remove_file(self, index: int) -> None:
        self.files = [file for i, file in enumerate(self.files) if i != index]

    def set_batch_count(self, value: Any) -> None:
        self.batch_count = clamp_batch_count(value)

    def begin(self) -> int:
        self.seq += 1
        self.loading = True
        self.error = None
        self.results = []
        self.sent_prompt = ""
        return self.seq

    def is_current(self, token: int) -> bool:
        return token == self.seq

    def succeed(self, token: int, results: List[str], sent_prompt: str = "") -> bool:
        if not self.is_current(token):
            logger.info(f"Discarding stale {self.mode.value} results from submission {token}")
            return False
        self.loading = False
        self.error = None
        self.results = list(results)
        self.sent_prompt = sent_prompt
        return True

    def fail(self, token: int, message: str) -> bool:
        if not self.is_current(token):
            logger.info(f"Discarding stale {self.mode.value} error from submission {token}")
            return False
        self.loading = False
        self.error = message
        self.results = []
        return True


def submit(client: StudioClient, state: PanelState) -> None:
    try:
        validate(state.mode, state.prompt, state.files)
    except ValidationError as exc:
        state.error = str(exc)
        return

    token = state.begin()
    try:
        sent_prompt, results = run_submission(client, state.mode, state.prompt, state.files, state.batch_count)
    except StudioError as exc:
        state.fail(token, str(exc))
    except Exception as exc:
        logger.exception(f"{state.mode.value} submission failed")
        state.fail(token, str(exc) or state.settings.default_error)
    else:
        state.succeed(token, results, sent_prompt)
