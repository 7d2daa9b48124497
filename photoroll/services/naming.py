from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import Callable

from photoroll.services.decoder import EXTENSIONS


# (hash_prefix, base_name, width, extension) -> final URL or path
Namer = Callable[[str, str, int, str], str]

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def content_hash(data: bytes, prefix_bytes: int = 6) -> str:
	return hashlib.shake_128(data).hexdigest(prefix_bytes)


def base_name(path: str) -> str:
	name = path.replace("\\", "/").rsplit("/", 1)[-1]
	return name.split(".", 1)[0]


def slugify(text: str) -> str:
	ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
	slug = _NON_SLUG.sub("-", ascii_text.lower()).strip("-")
	return slug or "image"


def extension_for(format_name: str) -> str:
	return EXTENSIONS[format_name]


def object_name(hash_prefix: str, name: str, width: int, extension: str) -> str:
	return f"{hash_prefix}_{slugify(base_name(name))}.{width}.{extension}"


def url_namer(base_url: str) -> Namer:
	root = base_url.rstrip("/")

	def _name(hash_prefix: str, name: str, width: int, extension: str) -> str:
		return f"{root}/{object_name(hash_prefix, name, width, extension)}"

	return _name
