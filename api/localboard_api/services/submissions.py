"""Reads listing submissions sent as JSON or as multipart form data.

Form submissions may attach the listing image as an ``image`` file part. Its
bytes are held on the returned ``Submission`` so the caller can validate the
text fields first and only then upload it with ``store_image``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from starlette.datastructures import UploadFile
from starlette.requests import Request

from localboard_api.services.filters import parse_csv_param
from localboard_api.services.storage import BlobStorage, blob_path

LIST_FIELDS = frozenset({"categories", "date_list"})
IMAGE_FIELD = "image"


class SubmissionError(ValueError):
    """Raised when a request body cannot be read as a submission."""


@dataclass(frozen=True, slots=True)
class ImageUpload:
    filename: str
    content: bytes
    content_type: str | None


@dataclass(frozen=True, slots=True)
class Submission:
    fields: dict[str, Any]
    image: ImageUpload | None = None


async def read_submission(request: Request) -> Submission:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        return await _read_form(request)

    try:
        payload = await request.json()
    except ValueError as exc:
        raise SubmissionError("request body must be JSON or multipart form data") from exc
    if not isinstance(payload, dict):
        raise SubmissionError("request body must be a JSON object")
    return Submission(fields=payload)


async def store_image(image: ImageUpload, *, kind: str, storage: BlobStorage) -> str:
    return await storage.put(
        path=blob_path(kind, image.filename),
        content=image.content,
        content_type=image.content_type,
    )


async def _read_form(request: Request) -> Submission:
    form = await request.form()
    data: dict[str, Any] = {}
    image: ImageUpload | None = None
    try:
        for key in form.keys():
            values = form.getlist(key)
            if key == IMAGE_FIELD:
                upload = values[-1]
                if isinstance(upload, UploadFile) and upload.filename:
                    image = await _read_upload(upload)
                continue

            texts = [value for value in values if isinstance(value, str)]
            if key in LIST_FIELDS:
                items = _list_field(texts)
                if items is not None:
                    data[key] = items
                continue

            text = texts[-1].strip() if texts else ""
            if text:
                data[key] = text
    finally:
        await form.close()
    return Submission(fields=data, image=image)


async def _read_upload(upload: UploadFile) -> ImageUpload:
    content = await upload.read()
    if not content:
        raise SubmissionError("uploaded image is empty")
    return ImageUpload(filename=upload.filename or IMAGE_FIELD, content=content, content_type=upload.content_type)


def _list_field(values: list[str]) -> list[Any] | None:
    """Accept repeated parts, one JSON array, or one comma-separated string."""
    if len(values) > 1:
        return [value.strip() for value in values if value.strip()]
    if not values:
        return None

    raw = values[0].strip()
    if not raw:
        return None
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SubmissionError(f"invalid JSON list: {raw[:100]}") from exc
        if not isinstance(parsed, list):
            raise SubmissionError("list fields must be JSON arrays")
        return parsed
    return parse_csv_param(raw)
