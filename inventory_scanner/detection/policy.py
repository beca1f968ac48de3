"""
==============================================================================
Decode Policy Module
==============================================================================

Which decoders run, in which order, with which symbologies, per mode.

    STREAMING    → linear (full reader set)
    SINGLE_SHOT  → matrix (QR)  →  linear (reduced reader set)

The single-shot linear set is smaller than the streaming set to bound
latency on one still frame.

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Dict, NamedTuple, Tuple

from inventory_scanner.detection.models import Symbology


class DetectionMode(str, enum.Enum):
    STREAMING = "streaming"
    SINGLE_SHOT = "single_shot"


class DecoderKind(str, enum.Enum):
    MATRIX = "matrix"
    LINEAR = "linear"


class DecodeStep(NamedTuple):
    """One attempt in a fallback chain."""

    decoder: DecoderKind
    symbologies: Tuple[Symbology, ...]


STREAMING_SYMBOLOGIES: Tuple[Symbology, ...] = (
    Symbology.CODE_128,
    Symbology.EAN_13,
    Symbology.EAN_8,
    Symbology.CODE_39,
    Symbology.CODE_39_VIN,
    Symbology.CODABAR,
    Symbology.UPC_A,
    Symbology.UPC_E,
    Symbology.I2OF5,
)

SINGLE_SHOT_SYMBOLOGIES: Tuple[Symbology, ...] = (
    Symbology.CODE_128,
    Symbology.EAN_13,
    Symbology.EAN_8,
    Symbology.CODE_39,
    Symbology.UPC_A,
    Symbology.UPC_E,
)

DETECTION_POLICY: Dict[DetectionMode, Tuple[DecodeStep, ...]] = {
    DetectionMode.STREAMING: (
        DecodeStep(DecoderKind.LINEAR, STREAMING_SYMBOLOGIES),
    ),
    DetectionMode.SINGLE_SHOT: (
        DecodeStep(DecoderKind.MATRIX, (Symbology.QR_CODE,)),
        DecodeStep(DecoderKind.LINEAR, SINGLE_SHOT_SYMBOLOGIES),
    ),
}


def symbologies_for(mode: DetectionMode, decoder: DecoderKind) -> Tuple[Symbology, ...]:
    """
    Look up the symbology subset a decoder uses in a mode.

    Raises:
        KeyError: If the mode has no step for that decoder
    """
    for step in DETECTION_POLICY[mode]:
        if step.decoder == decoder:
            return step.symbologies
    raise KeyError(f"No {decoder.value} step in {mode.value} policy")
