from __future__ import annotations


class PhotorollError(Exception):
	pass


class UnsupportedFormat(PhotorollError):
	def __init__(self, format_name: str):
		super().__init__(f"unsupported image format: {format_name}")
		self.format_name = format_name


class CorruptInput(PhotorollError):
	pass


class EncodeError(PhotorollError):
	def __init__(self, format_name: str, diagnostic: str):
		super().__init__(f"could not encode {format_name}: {diagnostic}")
		self.format_name = format_name
		self.diagnostic = diagnostic


class PreviewTooLarge(PhotorollError):
	def __init__(self, size: int, limit: int):
		super().__init__(f"tiny preview is {size} bytes, limit is {limit}")
		self.size = size
		self.limit = limit


class MetadataExtractionWarning(UserWarning):
	pass
