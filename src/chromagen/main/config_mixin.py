"""Configuration management for the Studio"""

import json
import logging
import os
from pathlib import Path

from chromagen.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME, MAX_RECENT_EXPORTS
from chromagen.models.canvas import CanvasSettings
from chromagen.models.chroma import ChromaKeySettings
from chromagen.utils.logger import loggerRaise

logger = logging.getLogger(__name__)


def default_config_dir():
	"""~/.chromagen"""
	return Path.home() / CONFIG_DIR_NAME


class ConfigMixin:
	"""Configuration file operations and recent exports

	Persistence is off when config_dir is None.
	"""

	def _init_config(self, config_dir):
		self.config_dir = Path(config_dir) if config_dir is not None else None
		self.config_file = self.config_dir / CONFIG_FILE_NAME if self.config_dir is not None else None
		self.recent_exports = []
		self.max_recent_exports = MAX_RECENT_EXPORTS

	def _load_config(self):
		"""Load last canvas, chroma settings and recent exports from the config file"""
		if self.config_file is None:
			return
		try:
			if os.path.exists(self.config_file):
				with open(self.config_file, 'r', encoding='utf-8') as f:
					config = json.load(f)

				if 'canvas' in config:
					self.session.canvas = CanvasSettings.from_dict(config['canvas'])
				if 'chroma' in config:
					self.session.chroma = ChromaKeySettings.from_dict(config['chroma'])

				self.recent_exports = config.get('recent_exports', [])
				# Filter out files that no longer exist
				self.recent_exports = [f for f in self.recent_exports if os.path.exists(f)]
				logger.info("Loaded config from %s", self.config_file)
		except Exception as e:
			loggerRaise(e, "Error loading config")

	def _save_config(self):
		"""Save canvas, chroma settings and recent exports to the config file"""
		if self.config_file is None:
			return
		try:
			os.makedirs(self.config_dir, exist_ok=True)

			config = {
				'canvas': self.session.canvas.to_dict(),
				'chroma': self.session.chroma.to_dict(),
				'recent_exports': self.recent_exports[:self.max_recent_exports],
			}

			with open(self.config_file, 'w', encoding='utf-8') as f:
				json.dump(config, f, indent=2)
		except Exception as e:
			loggerRaise(e, "Error saving config")

	def _add_to_recent_exports(self, filepath):
		"""Add a file to the recent exports list"""
		filepath = str(filepath)
		if filepath in self.recent_exports:
			self.recent_exports.remove(filepath)

		self.recent_exports.insert(0, filepath)
		self.recent_exports = self.recent_exports[:self.max_recent_exports]

		self._save_config()

	def clear_recent_exports(self):
		"""Clear the recent exports list"""
		self.recent_exports = []
		self._save_config()
