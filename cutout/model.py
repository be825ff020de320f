from __future__ import annotations

from typing import Any

import torch

from .config import BIREFNET_REPO


def get_device() -> torch.device:
    """
    Prefer CUDA, then Apple MPS, then CPU.
    """
    if torch.cuda.is_available():
        return torch.device("cuda")
    if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


def load_birefnet_hf(hf_repo: str = BIREFNET_REPO, device: torch.device | None = None) -> torch.nn.Module:
    """
    Load a matting model via Hugging Face transformers (trust_remote_code).

    Notes:
    - We keep float32 only.
    - We disable meta-device init paths to avoid `.item()` on meta tensors.
    - Output is handled by inference.py (expects logits-like tensor in the final stage).
    """
    if device is None:
        device = get_device()

    try:
        from transformers import AutoModelForImageSegmentation
    except Exception as e:  # noqa: BLE001
        raise RuntimeError("transformers is not installed. Run: pip install transformers") from e

    torch.set_default_dtype(torch.float32)
    model = AutoModelForImageSegmentation.from_pretrained(
        hf_repo,
        trust_remote_code=True,
        low_cpu_mem_usage=False,
        device_map=None,
    )
    model.eval()
    for p in model.parameters():
        p.requires_grad_(False)
    return model.to(dtype=torch.float32).to(device)


def forward_model(model: torch.nn.Module, x: torch.Tensor) -> Any:
    with torch.no_grad():
        return model(x)
