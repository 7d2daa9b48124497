from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from photoroll.services.config import Settings
from photoroll.services.descriptor import ImageDescriptor
from photoroll.services.errors import CorruptInput, EncodeError, UnsupportedFormat
from photoroll.services.trigger import handle_event
from photoroll.services.upload_pipeline import run_pipeline


router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post("/process", response_model=ImageDescriptor, summary="Process one photo and return its descriptor")
async def process(file: UploadFile = File(...)):
	data = await file.read()
	declared = file.content_type if (file.content_type or "").startswith("image/") else None
	config = Settings().pipeline_config()
	try:
		# srcset entries are bare object names; nothing is stored
		result = await run_in_threadpool(run_pipeline, data, file.filename or "image", config, declared_format=declared)
	except UnsupportedFormat as e:
		raise HTTPException(status_code=415, detail=str(e))
	except CorruptInput as e:
		raise HTTPException(status_code=422, detail=str(e))
	except EncodeError as e:
		raise HTTPException(status_code=500, detail=str(e))
	return result.descriptor


@router.post("/events", summary="Accept an S3 object-created notification and process it in the background")
def events(background_tasks: BackgroundTasks, event: Dict[str, Any] = Body(...)):
	records = event.get("Records", [])
	background_tasks.add_task(handle_event, event)
	return {"status": "queued", "records": len(records)}
