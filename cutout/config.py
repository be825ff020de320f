"""
Centralized configuration constants for the cutout pipeline.

Ground rules:
- Hard binary alpha (no feathering)
- One request per image, no shared state
"""

from pathlib import Path

# Empirical selfie-mask cutoff; confidence must be strictly greater to count as foreground.
DEFAULT_CUTOFF = 0.4

ALPHA_OPAQUE = 255
ALPHA_TRANSPARENT = 0

ASSET_DIR = Path(__file__).parent / "samples"
ASSET_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".ppm"}

# Segmentation backends: "mediapipe" | "birefnet" | "hf:<repo>"
DEFAULT_BACKEND = "mediapipe"

# 0 = general (256x256 input), 1 = landscape (144x256 input).
SELFIE_MODEL_SELECTION = 0

BIREFNET_REPO = "ZhengPeng7/BiRefNet"

# NOTE: BiRefNet internally splits into patches; this size must be divisible by
# its patching grid. 1088 is the closest "1080-class" square that works reliably.
TARGET_SIZE = 1088
PAD_COLOR = 127

IMAGENET_MEAN = [0.485, 0.456, 0.406]
IMAGENET_STD = [0.229, 0.224, 0.225]
