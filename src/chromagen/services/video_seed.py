"""Video seed preparation.

The video itself is produced by an injected generator; the studio only
supplies the flattened still, a prompt and an aspect-ratio hint, and tracks
the request in VideoState.
"""

import logging
from dataclasses import dataclass

import numpy as np

from chromagen.constants import DEFAULT_VIDEO_PROMPT
from chromagen.services.image_io import to_data_uri

logger = logging.getLogger(__name__)

# Video models only accept these two orientations
VIDEO_PORTRAIT = "9:16"
VIDEO_LANDSCAPE = "16:9"


def video_aspect_ratio(aspect_ratio: str) -> str:
    """Map a generation aspect ratio to the video hint ("9:16" stays, all else is "16:9")"""
    return VIDEO_PORTRAIT if aspect_ratio == VIDEO_PORTRAIT else VIDEO_LANDSCAPE


def effective_prompt(prompt: str) -> str:
    prompt = (prompt or '').strip()
    return prompt if prompt else DEFAULT_VIDEO_PROMPT


@dataclass(frozen=True)
class VideoSeed:
    """Everything a video generator needs"""
    image: np.ndarray
    prompt: str
    aspect_ratio: str

    @classmethod
    def create(cls, image: np.ndarray, prompt: str, aspect_ratio: str) -> 'VideoSeed':
        return cls(image=image, prompt=effective_prompt(prompt), aspect_ratio=video_aspect_ratio(aspect_ratio))

    def to_data_uri(self) -> str:
        return to_data_uri(self.image)
