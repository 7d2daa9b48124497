"""
End-to-end pipeline scenarios
"""

import json

import piexif
import pytest

from conftest import exif_bytes, jpeg_bytes, solid
from photoroll.services import encoders
from photoroll.services.config import PipelineConfig
from photoroll.services.errors import EncodeError, UnsupportedFormat
from photoroll.services.naming import content_hash, url_namer
from photoroll.services.upload_pipeline import run_pipeline


@pytest.fixture(scope="module")
def camera_5184() -> bytes:
	"""5184x3888 JPEG: orientation 1, ISO 100, f/10, 1/320."""
	exif = exif_bytes(
		exif={
			piexif.ExifIFD.ISOSpeedRatings: 100,
			piexif.ExifIFD.FNumber: (10, 1),
			piexif.ExifIFD.ExposureTime: (1, 320),
		},
		zeroth={piexif.ImageIFD.Orientation: 1},
	)
	return jpeg_bytes(solid((5184, 3888), (90, 140, 200)), exif=exif, quality=70)


class TestScenarios:
	@pytest.mark.e2e
	def test_large_jpeg(self, camera_5184: bytes) -> None:
		result = run_pipeline(camera_5184, "DSC_0042.JPG", PipelineConfig())
		d = result.descriptor
		assert (d.width, d.height) == (5184, 3888)
		assert (d.iso, d.aperture, d.shutter_speed) == (100, 10.0, (1, 320))
		assert [g.type for g in d.source] == ["image/jpeg", "image/webp"]
		assert [g.original for g in d.source] == [True, False]
		for group in d.source:
			assert [s.width for s in group.srcset] == [5184, 2000, 1000]
		assert len(result.files) == 6
		prefix = content_hash(camera_5184)
		assert d.source[0].srcset[0].src == f"{prefix}_dsc-0042.5184.jpg"
		assert {f.name for f in result.files} == {s.src for g in d.source for s in g.srcset}

	@pytest.mark.e2e
	def test_small_png(self, plain_png: bytes) -> None:
		result = run_pipeline(plain_png, "screenshot.png", PipelineConfig())
		d = result.descriptor
		assert len(d.source) == 1
		group = d.source[0]
		assert (group.type, group.original) == ("image/png", True)
		assert [s.width for s in group.srcset] == [800]
		assert result.files[0].content_type == "image/png"
		assert d.iso is None and d.geo is None

	@pytest.mark.e2e
	def test_malformed_tag(self, malformed_jpeg: bytes) -> None:
		with pytest.warns(UserWarning):
			d = run_pipeline(malformed_jpeg, "x.jpg").descriptor
		assert d.aperture is None
		assert d.iso == 100
		assert d.focal_length == 50.0
		assert d.shutter_speed == (1, 320)

	@pytest.mark.e2e
	def test_gif_rejected(self, gif_bytes: bytes) -> None:
		with pytest.raises(UnsupportedFormat):
			run_pipeline(gif_bytes, "anim.gif")

	@pytest.mark.e2e
	def test_orientation_applied(self, rotated_jpeg: bytes) -> None:
		d = run_pipeline(rotated_jpeg, "portrait.jpg").descriptor
		assert (d.width, d.height) == (200, 300)
		assert d.source[0].srcset[0].width == 200

	@pytest.mark.e2e
	def test_full_descriptor(self, camera_jpeg: bytes) -> None:
		d = run_pipeline(camera_jpeg, "walk.jpg", PipelineConfig(palette_size=5)).descriptor
		doc = json.loads(d.to_json())
		assert len(doc["palette"]) == 5
		assert doc["tiny_preview"].startswith("data:image/webp;base64,")
		assert doc["geo"]["latitude"] == pytest.approx(52.5)

	@pytest.mark.e2e
	def test_idempotent_names(self, camera_jpeg: bytes) -> None:
		namer = url_namer("https://img.example.com")
		first = run_pipeline(camera_jpeg, "walk.jpg", namer=namer)
		second = run_pipeline(camera_jpeg, "walk.jpg", namer=namer)
		assert first.descriptor == second.descriptor
		assert [f.name for f in first.files] == [f.name for f in second.files]
		assert first.descriptor.source[0].srcset[0].src.startswith("https://img.example.com/")

	@pytest.mark.e2e
	def test_encoder_failure_aborts(self, camera_jpeg: bytes, monkeypatch: pytest.MonkeyPatch) -> None:
		class Broken:
			format = "webp"

			def encode(self, img, config, **kwargs):
				raise EncodeError("webp", "codec unavailable")

		monkeypatch.setitem(encoders.ENCODERS, "webp", Broken())
		with pytest.raises(EncodeError, match="codec unavailable"):
			run_pipeline(camera_jpeg, "walk.jpg")
