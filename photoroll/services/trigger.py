from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from photoroll.services import storage
from photoroll.services.config import Settings
from photoroll.services.naming import url_namer
from photoroll.services.upload_pipeline import run_pipeline


logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


def handle_event(
	event: Dict[str, Any],
	context: Any = None,
	settings: Optional[Settings] = None,
	s3: Any = None,
	http: Any = None,
) -> List[str]:
	"""
	Process every object in an S3 ObjectCreated notification that carries a callback marker.

	Variants are uploaded next to the source, then the descriptor is POSTed to the marker URL.
	Failures propagate, so a failed run never produces a callback. Returns the processed keys.
	"""
	settings = settings or Settings()
	processed: List[str] = []
	for record in event.get("Records", []):
		region = record.get("awsRegion") or DEFAULT_REGION
		bucket = record["s3"]["bucket"]["name"]
		key = urllib.parse.unquote_plus(record["s3"]["object"]["key"])

		client = s3 or storage.s3_client(region)
		data, meta = storage.download(client, bucket, key)
		callback_url = meta.get(settings.callback_marker_key)
		if not callback_url:
			logger.warning("Skipping s3://%s/%s: no %s metadata", bucket, key, settings.callback_marker_key)
			continue

		base_url = storage.bucket_base_url(bucket, region, settings.public_host)
		result = run_pipeline(data, key, settings.pipeline_config(), namer=url_namer(base_url))
		for f in result.files:
			storage.upload(client, bucket, f)
		storage.deliver_callback(callback_url, result.descriptor, settings.callback_timeout, http)
		processed.append(key)
	return processed


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
	settings = Settings()
	logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
	processed = handle_event(event, context, settings=settings)
	return {"status": "done", "processed": processed}
