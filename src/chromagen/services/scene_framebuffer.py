"""
Offscreen framebuffer for the 3D scene layer.

Color and depth both live in renderbuffers: the scene is only ever read
back to the CPU for the compositor, never sampled as a texture.

Lifecycle:
1. bind() allocates on first use and targets the canvas-sized buffer
2. clear() to transparent so uncovered pixels let lower layers through
3. read_rgba() returns the frame top-down as an HxWx4 array
"""

import numpy as np
import OpenGL.GL as gl

_STATUS_MESSAGES = {
	gl.GL_FRAMEBUFFER_INCOMPLETE_ATTACHMENT: "Incomplete attachment",
	gl.GL_FRAMEBUFFER_INCOMPLETE_MISSING_ATTACHMENT: "Missing attachment",
	gl.GL_FRAMEBUFFER_UNSUPPORTED: "Unsupported format",
}


class SceneFramebuffer:
	"""Canvas-sized RGBA8 + DEPTH24 framebuffer"""

	def __init__(self, width, height):
		self.width = max(1, int(width))
		self.height = max(1, int(height))
		self._fbo = None
		self._color_rb = None
		self._depth_rb = None

	@property
	def allocated(self):
		return self._fbo is not None

	def _allocate(self):
		self._fbo = gl.glGenFramebuffers(1)
		gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self._fbo)

		self._color_rb = self._attach_renderbuffer(gl.GL_RGBA8, gl.GL_COLOR_ATTACHMENT0)
		self._depth_rb = self._attach_renderbuffer(gl.GL_DEPTH_COMPONENT24, gl.GL_DEPTH_ATTACHMENT)

		status = gl.glCheckFramebufferStatus(gl.GL_FRAMEBUFFER)
		if status != gl.GL_FRAMEBUFFER_COMPLETE:
			gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
			self.release()
			reason = _STATUS_MESSAGES.get(status, f"status {status}")
			raise RuntimeError(f"Scene framebuffer incomplete: {reason}")

	def _attach_renderbuffer(self, internal_format, attachment):
		rb = gl.glGenRenderbuffers(1)
		gl.glBindRenderbuffer(gl.GL_RENDERBUFFER, rb)
		gl.glRenderbufferStorage(gl.GL_RENDERBUFFER, internal_format, self.width, self.height)
		gl.glFramebufferRenderbuffer(gl.GL_FRAMEBUFFER, attachment, gl.GL_RENDERBUFFER, rb)
		return rb

	def resize(self, width, height):
		"""Drop the buffers if the size changed; the next bind() reallocates"""
		width, height = max(1, int(width)), max(1, int(height))
		if (width, height) == (self.width, self.height):
			return
		self.release()
		self.width, self.height = width, height

	def bind(self):
		if not self.allocated:
			self._allocate()
		gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self._fbo)
		gl.glViewport(0, 0, self.width, self.height)

	def unbind(self):
		gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)

	def clear(self):
		gl.glClearColor(0.0, 0.0, 0.0, 0.0)
		gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)

	def read_rgba(self):
		"""Current (bound) frame as a top-down HxWx4 uint8 array"""
		gl.glPixelStorei(gl.GL_PACK_ALIGNMENT, 1)
		pixels = gl.glReadPixels(0, 0, self.width, self.height, gl.GL_RGBA, gl.GL_UNSIGNED_BYTE)
		frame = np.frombuffer(pixels, dtype=np.uint8).reshape(self.height, self.width, 4)
		# GL rows start at the bottom
		return np.flipud(frame).copy()

	def release(self):
		"""Delete GL objects. The context must be current."""
		for rb in (self._color_rb, self._depth_rb):
			if rb:
				gl.glDeleteRenderbuffers(1, [rb])
		if self._fbo:
			gl.glDeleteFramebuffers(1, [self._fbo])
		self._fbo = self._color_rb = self._depth_rb = None
