"""Foreground / background assets and chroma keying for the Studio"""

import logging

from chromagen.models.chroma import ChromaKeySettings
from chromagen.models.transform import Transform
from chromagen.services.image_io import decode_image
from chromagen.utils.logger import loggerRaise

logger = logging.getLogger(__name__)

_CHROMA_FIELDS = ('color', 'similarity', 'smoothness', 'spill')


class AssetMixin:
    """Image loading, generated background gallery and keying schedule"""

    # ========================================
    # Foreground
    # ========================================

    def load_foreground(self, source):
        """Load a new subject image

        Snapshots, resets the foreground transform and schedules keying.

        Raises:
            DecodeFailure: if the source cannot be decoded (state is left untouched)
        """
        image = decode_image(source)
        self._save_state("Load foreground")
        self.session.foreground = image
        self.session.keyed_foreground = None
        self.session.transform = Transform()
        self._schedule_keying()
        logger.info("Loaded foreground %dx%d", image.shape[1], image.shape[0])

    # ========================================
    # Background
    # ========================================

    def load_background(self, source):
        """Use an uploaded image as the background

        Raises:
            DecodeFailure: if the source cannot be decoded
        """
        image = decode_image(source)
        self._save_state("Load background")
        self.session.background = image
        logger.info("Loaded background %dx%d", image.shape[1], image.shape[0])

    def set_generated_backgrounds(self, sources):
        """Store a batch of generated backgrounds and select the first one"""
        images = [decode_image(source) for source in sources]
        if not images:
            return
        self._save_state("Generate background")
        self.session.generated_backgrounds = images
        self.session.background = images[0]

    def select_generated_background(self, index):
        """Pick one of the generated backgrounds

        Raises:
            IndexError: if index is outside the gallery
        """
        image = self.session.generated_backgrounds[index]
        self._save_state("Select background")
        self.session.background = image

    def generate_backgrounds(self, generator, prompt):
        """Run an injected background generator and apply its results

        Args:
            generator: callable(prompt, GenerationSettings) -> iterable of image sources
            prompt: Text prompt passed through unchanged

        Returns:
            Number of backgrounds received
        """
        try:
            results = list(generator(prompt, self.session.generation) or [])
        except Exception as e:
            loggerRaise(e, "Failed to generate background.")
        self.set_generated_backgrounds(results)
        return len(results)

    def set_show_background(self, show):
        self.session.show_background = bool(show)

    # ========================================
    # Chroma key
    # ========================================

    def set_chroma(self, **changes):
        """Change key settings (color / similarity / smoothness / spill)

        Raises:
            ValueError: on an unknown field name or an invalid key color
        """
        unknown = set(changes) - set(_CHROMA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown chroma field(s): {', '.join(sorted(unknown))}")

        values = {name: getattr(self.session.chroma, name) for name in _CHROMA_FIELDS}
        values.update(changes)
        chroma = ChromaKeySettings(**values)

        self._snapshot_unless_gesture("Change chroma key")
        self.session.chroma = chroma
        self._schedule_keying()

    def _schedule_keying(self):
        if self.session.foreground is None:
            self.keying.cancel()
            return
        self.keying.request(self.session.foreground, self.session.chroma)

    def _on_keyed(self, image):
        self.session.keyed_foreground = image

    def flush_keying(self):
        """Apply a pending keying job immediately"""
        return self.keying.flush()
