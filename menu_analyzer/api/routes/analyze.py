# menu_analyzer/api/routes/analyze.py
# Endpoint for analyzing a menu from a file, URL or pasted text

import json
from typing import Annotated, Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from loguru import logger
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from menu_analyzer.api.dependencies import (
    get_current_user_id,
    get_pipeline,
    get_webhook_notifier,
)
from menu_analyzer.api.schemas import AnalyzeMenuRequest
from menu_analyzer.core.errors import BadRequest, ExtractionError, ExtractionFailure
from menu_analyzer.core.pipeline import MenuAnalysisPipeline
from menu_analyzer.models.domain import (
    AnalysisResult,
    FileSource,
    MenuSource,
    RawTextSource,
    UrlSource,
)
from menu_analyzer.services.notifier import WebhookNotifier
from menu_analyzer.services.persistence import SourceMetadata

router = APIRouter(prefix="/api", tags=["analyze"])


def _infer_kind(declared_type: Optional[str], upload: UploadFile) -> str:
    if declared_type:
        if declared_type not in ("pdf", "image"):
            raise ExtractionError(
                ExtractionFailure.UNSUPPORTED_FILE_TYPE,
                "Unsupported file type. Please upload a PDF or image file.",
            )
        return declared_type

    content_type = (upload.content_type or "").lower()
    file_name = (upload.filename or "").lower()
    if content_type == "application/pdf" or file_name.endswith(".pdf"):
        return "pdf"
    if content_type.startswith("image/"):
        return "image"
    raise ExtractionError(
        ExtractionFailure.UNSUPPORTED_FILE_TYPE,
        "Unsupported file type. Please upload a PDF or image file.",
    )


async def _read_multipart(request: Request) -> Tuple[MenuSource, SourceMetadata]:
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise BadRequest("No file provided")

    kind = _infer_kind(form.get("type"), upload)
    data = await upload.read()
    business_name = form.get("businessName") or None

    source = FileSource(
        kind=kind,
        data=data,
        declared_mime_type=upload.content_type,
        file_name=upload.filename,
    )
    metadata = SourceMetadata(
        menu_source="file",
        business_name=business_name,
        menu_file_name=upload.filename,
    )
    return source, metadata


async def _read_json(request: Request) -> Tuple[MenuSource, SourceMetadata]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequest("Request body must be valid JSON")

    try:
        body = AnalyzeMenuRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        message = first.get("msg", "Invalid request").removeprefix("Value error, ")
        raise BadRequest(message)

    if body.url is not None:
        href = body.url.strip()
        return UrlSource(href=href), SourceMetadata(
            menu_source="url", business_name=body.business_name, menu_url=href
        )
    return RawTextSource(text=body.text), SourceMetadata(
        menu_source="text", business_name=body.business_name
    )


@router.post("/analyze-menu", response_model=AnalysisResult)
async def analyze_menu(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    user_id: Annotated[str, Depends(get_current_user_id)],
    pipeline: Annotated[MenuAnalysisPipeline, Depends(get_pipeline)],
    notifier: Annotated[WebhookNotifier, Depends(get_webhook_notifier)],
):
    # Accepts multipart (file + type) or JSON (url or text)
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        source, metadata = await _read_multipart(request)
    else:
        source, metadata = await _read_json(request)

    request.state.log_context = {"user_id": user_id, "menu_source": metadata.menu_source}

    outcome = await pipeline.run(user_id, source, metadata)

    if outcome.record is not None:
        response.headers["X-Analysis-Id"] = outcome.record.id

    background_tasks.add_task(
        notifier.notify,
        "analysis.completed",
        {
            "user_id": user_id,
            "analysis_id": outcome.record.id if outcome.record is not None else None,
            "business_name": metadata.business_name,
            "menu_source": metadata.menu_source,
            "revenue_score": outcome.result.revenue_score,
        },
    )
    logger.info(f"[analyze] user={user_id} source={metadata.menu_source} score={outcome.result.revenue_score}")
    return outcome.result
