import asyncio

import streamlit as st

from cutout.assets import AssetCatalog
from cutout.composite import to_image
from cutout.config import DEFAULT_BACKEND, DEFAULT_CUTOFF
from cutout.errors import AssetDecodeFailure
from cutout.logs import configure_logging
from cutout.pipeline import CutoutRequest
from cutout.segmentation import make_provider

configure_logging()

st.set_page_config(page_title="Background Remover", page_icon="✂️", layout="wide")
st.title("Selfie Background Remover")


@st.cache_resource
def get_provider(backend):
    return make_provider(backend)


catalog = AssetCatalog()

with st.sidebar:
    st.header("Parameters")
    backend = st.selectbox("Segmentation backend", ["mediapipe", "birefnet"], index=0 if DEFAULT_BACKEND == "mediapipe" else 1)
    cutoff = st.slider("Confidence cutoff", 0.0, 1.0, DEFAULT_CUTOFF, 0.01)

if "requests" not in st.session_state:
    st.session_state["requests"] = {}

asset_ids = catalog.asset_ids()
if not asset_ids:
    st.warning(f"No sample images found under {catalog.root}")
    st.stop()

for col, asset_id in zip(st.columns(len(asset_ids)), asset_ids):
    with col:
        st.subheader("Original Image")
        try:
            st.image(to_image(catalog.load(asset_id)), caption=asset_id, use_container_width=True)
        except AssetDecodeFailure as e:
            st.error(str(e))

        st.subheader("Processed Image")
        slot = st.empty()

        if st.button("Process Image", key=f"process-{asset_id}"):
            request = st.session_state["requests"].setdefault(asset_id, CutoutRequest(asset_id=asset_id))
            with slot, st.spinner("Removing background..."):
                asyncio.run(request.run(catalog, get_provider(backend), cutoff=cutoff))

        request = st.session_state["requests"].get(asset_id)
        if request is None:
            slot.caption("Not processed yet.")
        elif request.status == "ready":
            slot.image(to_image(request.result), use_container_width=True)
        elif request.status == "failed":
            slot.error(f"{request.error_kind}: {request.cause}")
