"""Export operations - PNG, data URI, video seed"""
import logging
import time
from pathlib import Path

from chromagen.constants import EXPORT_FILENAME_PREFIX
from chromagen.services.image_io import encode_png, to_data_uri
from chromagen.services.video_seed import VideoSeed
from chromagen.utils.logger import loggerRaise

logger = logging.getLogger(__name__)


def default_export_filename(timestamp_ms=None):
	"""chromagen-composite-<epoch ms>.png"""
	if timestamp_ms is None:
		timestamp_ms = int(time.time() * 1000)
	return f"{EXPORT_FILENAME_PREFIX}-{int(timestamp_ms)}.png"


class FileActions:
	"""Handles export of the flattened composite"""

	def __init__(self, main_window):
		"""Initialize with reference to the studio

		Args:
			main_window: The Studio instance
		"""
		self.main_window = main_window

	def has_content(self):
		"""Nothing is exported until there is a foreground or a background"""
		session = self.main_window.session
		return session.keyed_foreground is not None or session.background is not None

	def export_image(self):
		"""Flattened export raster, or None if there is nothing to export"""
		self.main_window.flush_keying()
		if not self.has_content():
			return None
		return self.main_window.render_export().image

	def export_png(self):
		"""PNG bytes of the export render, or None if there is nothing to export"""
		image = self.export_image()
		if image is None:
			return None
		return encode_png(image)

	def export_data_uri(self):
		image = self.export_image()
		if image is None:
			return None
		return to_data_uri(image)

	def save_export(self, directory, filename=None):
		"""Write the export PNG into a directory and remember it in recent exports

		Args:
			directory: Target directory (created if missing)
			filename: Optional name, defaults to chromagen-composite-<ms>.png

		Returns:
			Path of the written file, or None if there was nothing to export
		"""
		try:
			data = self.export_png()
			if data is None:
				logger.info("Nothing to export")
				return None
			path = Path(directory) / (filename or default_export_filename())
			path.parent.mkdir(parents=True, exist_ok=True)
			path.write_bytes(data)
		except Exception as e:
			loggerRaise(e, "Could not export image.", "Export failed")

		self.main_window._add_to_recent_exports(path)
		logger.info("Exported composite to %s", path)
		return path

	def build_video_seed(self, prompt=None):
		"""Video seed from the flattened export still

		Raises:
			RuntimeError: if there is nothing to composite
		"""
		session = self.main_window.session
		image = self.export_image()
		if image is None:
			raise RuntimeError("Could not create composite for video.")
		return VideoSeed.create(image,
		                        prompt if prompt is not None else session.video.prompt,
		                        session.generation.aspect_ratio)

	def generate_video(self, generator, prompt=None):
		"""Hand the seed to an injected video generator

		Args:
			generator: callable(VideoSeed) -> video handle (None on failure)
			prompt: Optional prompt override

		Returns:
			The handle returned by the generator
		"""
		video = self.main_window.session.video
		video.is_generating = True
		video.video_handle = None
		try:
			seed = self.build_video_seed(prompt)
			video.video_handle = generator(seed)
			if video.video_handle is None:
				logger.warning("Video generation returned no handle")
		except Exception as e:
			loggerRaise(e, "Failed to generate video.", "Video generation failed")
		finally:
			video.is_generating = False
		return video.video_handle
