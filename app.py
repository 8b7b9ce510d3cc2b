from typing import List

import streamlit as st

import config
from client import StudioClient
from encoding import SelectedFile, decode_data_uri
from workflows import MODE_SETTINGS, Mode, PanelState, can_submit, submit


st.set_page_config(
    page_title="电商图片处理",
    page_icon="🛍️",
    layout="wide"
)


@st.cache_resource
def get_client() -> StudioClient:
    config.configure_logging()
    return StudioClient.from_env()


def get_panel_state(mode: Mode) -> PanelState:
    key = f"panel_{mode.value}"
    if key not in st.session_state:
        st.session_state[key] = PanelState(mode=mode)
    return st.session_state[key]


def uploader_key(mode: Mode) -> str:
    seed_key = f"uploader_seed_{mode.value}"
    if seed_key not in st.session_state:
        st.session_state[seed_key] = 0
    return f"uploader_{mode.value}_{st.session_state[seed_key]}"


def reset_uploader(mode: Mode) -> None:
    st.session_state[f"uploader_seed_{mode.value}"] += 1


def to_selected_files(uploaded) -> List[SelectedFile]:
    return [SelectedFile(name=file.name, data=file.getvalue(), mime_type=file.type or "") for file in uploaded]


def render_uploader(state: PanelState) -> None:
    settings = state.settings
    uploaded = st.file_uploader(
        "上传图片",
        type=["png", "jpg", "jpeg", "webp"],
        accept_multiple_files=settings.multiple_files,
        help=settings.uploader_prompt,
        key=uploader_key(state.mode),
    )
    if uploaded:
        files = uploaded if isinstance(uploaded, list) else [uploaded]
        state.add_files(to_selected_files(files))
        reset_uploader(state.mode)
        st.rerun()

    if state.files:
        preview_cols = st.columns(min(len(state.files), 4))
        for index, file in enumerate(state.files):
            with preview_cols[index % len(preview_cols)]:
                st.image(file.data, caption=file.name, width="stretch")
                if st.button("×", key=f"remove_{state.mode.value}_{index}", help=f"Remove image {index + 1}"):
                    state.remove_file(index)
                    st.rerun()


def render_results(state: PanelState) -> None:
    st.subheader("生成结果")
    if not state.results:
        placeholder = "生成的图片将显示在这里" if state.mode is Mode.TEXT_TO_IMAGE else "处理后的图片将显示在这里"
        st.caption(placeholder)
        return

    if state.sent_prompt:
        st.info(state.sent_prompt)

    cols = st.columns(min(len(state.results), 2))
    for index, uri in enumerate(state.results):
        mime_type, data = decode_data_uri(uri)
        with cols[index % len(cols)]:
            st.image(data, caption=f"Result {index + 1}", width="stretch")
            st.download_button(
                "下载",
                data=data,
                file_name=f"{state.settings.result_prefix}-{index + 1}.png",
                mime=mime_type,
                key=f"download_{state.mode.value}_{state.seq}_{index}",
            )


def render_panel(client: StudioClient, mode: Mode) -> None:
    state = get_panel_state(mode)
    settings = state.settings

    input_col, output_col = st.columns([1, 1])
    with input_col:
        st.header(settings.title)
        if settings.needs_images:
            render_uploader(state)

        state.prompt = st.text_area(
            settings.prompt_label,
            value=state.prompt,
            placeholder=settings.prompt_placeholder,
            key=f"prompt_{mode.value}",
        )

        if settings.batched:
            batch_value = st.number_input(
                "生成数量",
                min_value=config.MIN_BATCH,
                max_value=config.MAX_BATCH,
                value=state.batch_count,
                step=1,
                key=f"batch_{mode.value}",
            )
            state.set_batch_count(batch_value)

        disabled = not can_submit(mode, state.prompt, state.files, state.loading)
        if st.button(settings.button_text, type="primary", disabled=disabled, key=f"submit_{mode.value}"):
            with st.spinner("处理中..."):
                submit(client, state)

        if state.error:
            st.error(state.error)

    with output_col:
        render_results(state)


def main() -> None:
    st.title("电商图片处理")

    try:
        client = get_client()
    except RuntimeError as exc:
        st.error(str(exc))
        return

    tabs = st.tabs([MODE_SETTINGS[mode].title for mode in Mode])
    for tab, mode in zip(tabs, Mode):
        with tab:
            render_panel(client, mode)


if __name__ == "__main__":
    main()
