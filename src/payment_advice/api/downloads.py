"""Payment advice download and artifact retrieval endpoints."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response

from payment_advice.api.deps import AppSettings, Artifacts, UpstreamClient
from payment_advice.config import Settings
from payment_advice.exceptions import ArtifactNotFoundError, InvalidRequestError, PaymentAdviceError
from payment_advice.schemas import CamelModel
from payment_advice.services.delivery import InlineDocument, fetch_and_deliver
from payment_advice.services.upstream_client import (
    PaymentAdviceClient,
    PaymentAdviceQuery,
    grn_query,
    invoice_po_query,
    invoice_vendor_query,
    po_query,
    task_query,
)
from payment_advice.storage import ArtifactStore
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["downloads"])

PDF_MEDIA_TYPE = "application/pdf"


class FileLinkResponse(CamelModel):
    """Link to a stored payment advice."""

    file_url: str | None
    expires_at: datetime | None = None
    error: str | None = None


def require(message: str, *values: str | None) -> None:
    """Reject the request if any value is missing or empty.

    Raises:
        InvalidRequestError: With ``message``
    """
    if not all(values):
        raise InvalidRequestError(message)


def pdf_response(filename: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


async def download(
    build_query: Callable[[], PaymentAdviceQuery],
    settings: Settings,
    client: PaymentAdviceClient,
    artifacts: ArtifactStore | None,
) -> Response:
    """Run a lookup and render the result for the configured response mode.

    Args:
        build_query: Validates the parameters and builds the lookup
        settings: Application settings
        client: Upstream client
        artifacts: Artifact store, None for inline delivery

    Returns:
        The PDF itself, or a JSON body carrying ``fileUrl``
    """
    try:
        query = build_query()
        result = await fetch_and_deliver(client, query, artifacts)
    except PaymentAdviceError as e:
        if settings.response_mode == "strict":
            raise
        logger.info("download_failed_lenient", error=e.message, status=e.status_code)
        return JSONResponse(FileLinkResponse(file_url=None, error=e.message).model_dump(mode="json"))

    if isinstance(result, InlineDocument):
        return pdf_response(result.filename, result.content)

    body = FileLinkResponse(file_url=result.url, expires_at=result.expires_at)
    return JSONResponse(body.model_dump(mode="json", exclude_none=True))


@router.get("/download-pdf-task")
async def download_pdf_task(
    settings: AppSettings,
    client: UpstreamClient,
    artifacts: Artifacts,
    task_id: str | None = Query(None, alias="taskId"),
    email_id: str | None = Query(None, alias="emailId"),
) -> Response:
    """Fetch a payment advice by task id."""

    def build() -> PaymentAdviceQuery:
        require("Missing taskId or emailId", task_id, email_id)
        return task_query(task_id, email_id)

    return await download(build, settings, client, artifacts)


@router.get("/download-pdf-invoice")
async def download_pdf_invoice(
    settings: AppSettings,
    client: UpstreamClient,
    artifacts: Artifacts,
    invoice_number: str | None = Query(None, alias="invoiceNumber"),
    po_number: str | None = Query(None, alias="poNumber"),
    email_id: str | None = Query(None, alias="emailId"),
) -> Response:
    """Fetch a payment advice by invoice and purchase order number."""

    def build() -> PaymentAdviceQuery:
        require("Missing params", invoice_number, po_number, email_id)
        return invoice_po_query(invoice_number, po_number, email_id)

    return await download(build, settings, client, artifacts)


@router.get("/download-pdf-vendor")
async def download_pdf_vendor(
    settings: AppSettings,
    client: UpstreamClient,
    artifacts: Artifacts,
    invoice_number: str | None = Query(None, alias="invoiceNumber"),
    vendor_code: str | None = Query(None, alias="vendorCode"),
    email_id: str | None = Query(None, alias="emailId"),
) -> Response:
    """Fetch a payment advice by invoice number and vendor code."""

    def build() -> PaymentAdviceQuery:
        require("Missing params", invoice_number, vendor_code, email_id)
        return invoice_vendor_query(invoice_number, vendor_code, email_id)

    return await download(build, settings, client, artifacts)


@router.get("/download-pdf-po")
async def download_pdf_po(
    settings: AppSettings,
    client: UpstreamClient,
    artifacts: Artifacts,
    po_number: str | None = Query(None, alias="poNumber"),
    email_id: str | None = Query(None, alias="emailId"),
) -> Response:
    """Fetch a payment advice by purchase order number."""

    def build() -> PaymentAdviceQuery:
        require("Missing poNumber or emailId", po_number, email_id)
        return po_query(po_number, email_id)

    return await download(build, settings, client, artifacts)


@router.get("/download-pdf-grn")
async def download_pdf_grn(
    settings: AppSettings,
    client: UpstreamClient,
    artifacts: Artifacts,
    grn_number: str | None = Query(None, alias="grnNumber"),
    email_id: str | None = Query(None, alias="emailId"),
) -> Response:
    """Fetch a payment advice by goods receipt number."""

    def build() -> PaymentAdviceQuery:
        require("Missing grnNumber or emailId", grn_number, email_id)
        return grn_query(grn_number, email_id)

    return await download(build, settings, client, artifacts)


async def serve_artifact(artifacts: ArtifactStore | None, reference: str) -> Response:
    if artifacts is None:
        raise ArtifactNotFoundError()
    content = await artifacts.open(reference)
    return pdf_response(f"{reference}.pdf", content)


@router.get("/files/{filename}")
async def get_file(filename: str, artifacts: Artifacts) -> Response:
    """Serve a stored artifact by file name."""
    return await serve_artifact(artifacts, filename.removesuffix(".pdf"))


@router.get("/pdf/{token}")
async def get_pdf(token: str, artifacts: Artifacts) -> Response:
    """Serve a stored artifact by token."""
    return await serve_artifact(artifacts, token)
