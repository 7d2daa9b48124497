from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import boto3
import requests

from photoroll.services.descriptor import ImageDescriptor
from photoroll.services.upload_pipeline import OutputFile


logger = logging.getLogger(__name__)


def s3_client(region: Optional[str] = None):
	return boto3.client("s3", region_name=region)


def download(client: Any, bucket: str, key: str) -> Tuple[bytes, Dict[str, str]]:
	obj = client.get_object(Bucket=bucket, Key=key)
	body = obj["Body"].read()
	# boto3 returns user metadata without the x-amz-meta- prefix, lowercased
	return body, dict(obj.get("Metadata") or {})


def upload(client: Any, bucket: str, f: OutputFile) -> None:
	client.put_object(Bucket=bucket, Key=f.name, Body=f.data, ContentType=f.content_type)
	logger.info("Uploaded s3://%s/%s (%d bytes)", bucket, f.name, len(f.data))


def bucket_base_url(bucket: str, region: str, public_host: Optional[str] = None) -> str:
	if public_host:
		if "://" in public_host:
			return public_host.rstrip("/")
		return f"https://{public_host.strip('/')}"
	return f"https://{bucket}.s3.dualstack.{region}.amazonaws.com"


def deliver_callback(url: str, descriptor: ImageDescriptor, timeout: float, session: Any = None) -> None:
	http = session or requests
	resp = http.post(
		url,
		data=descriptor.to_json(),
		headers={"Content-Type": "application/json"},
		timeout=timeout,
	)
	resp.raise_for_status()
	logger.info("Delivered descriptor to %s (%s)", url, resp.status_code)
