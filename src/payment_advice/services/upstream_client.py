"""Client for the upstream payment advice API."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

import httpx

from payment_advice.config import Settings
from payment_advice.exceptions import DocumentNotFoundError, UpstreamUnavailableError
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

BASE64_MARKER = "base64,"

# Filters sent with every lookup
BASE_FILTERS = {
    "filter.validateKey": "Vendor",
    "filter.requiredType": "PaymentAdvice",
}


def eq(value: str) -> str:
    """Upstream equality filter value."""
    return f"$eq:{value}"


@dataclass(frozen=True)
class PaymentAdviceQuery:
    """A single upstream lookup and the file id its PDF is named after."""

    file_id: str
    email_id: str
    filters: dict[str, str] = field(default_factory=dict)
    sort_by: str | None = None

    def params(self) -> dict[str, str]:
        """Query string parameters for the upstream request."""
        params: dict[str, str] = {}
        if self.sort_by:
            params["sortBy"] = self.sort_by
        params.update(BASE_FILTERS)
        params.update(self.filters)
        params["filter.emailId"] = self.email_id
        return params


def task_query(task_id: str, email_id: str) -> PaymentAdviceQuery:
    return PaymentAdviceQuery(
        file_id=f"task-{task_id}",
        email_id=email_id,
        filters={"filter.nimbleS2PTaskId": eq(task_id)},
        sort_by="timeStamp:ASC",
    )


def invoice_po_query(invoice_number: str, po_number: str, email_id: str) -> PaymentAdviceQuery:
    return PaymentAdviceQuery(
        file_id=f"invpo-{invoice_number}-{po_number}",
        email_id=email_id,
        filters={
            "filter.invoiceNumber": eq(invoice_number),
            "filter.poNumber": eq(po_number),
        },
    )


def invoice_vendor_query(invoice_number: str, vendor_code: str, email_id: str) -> PaymentAdviceQuery:
    return PaymentAdviceQuery(
        file_id=f"invvendor-{invoice_number}-{vendor_code}",
        email_id=email_id,
        filters={
            "filter.invoiceNumber": eq(invoice_number),
            "filter.vendorCode": eq(vendor_code),
        },
    )


def po_query(po_number: str, email_id: str) -> PaymentAdviceQuery:
    return PaymentAdviceQuery(
        file_id=f"po-{po_number}",
        email_id=email_id,
        filters={"filter.poNumber": eq(po_number)},
    )


def grn_query(grn_number: str, email_id: str) -> PaymentAdviceQuery:
    return PaymentAdviceQuery(
        file_id=f"grn-{grn_number}",
        email_id=email_id,
        filters={"filter.grnNumber": eq(grn_number)},
    )


def extract_pdf(payload: Any) -> bytes:
    """Decode the PDF embedded in an upstream response body.

    Only the first record is used. Its ``paymentAdviceLink`` is a data URL;
    everything after ``base64,`` is the encoded document.

    Args:
        payload: Parsed JSON body

    Returns:
        Decoded PDF bytes

    Raises:
        DocumentNotFoundError: If there is no record or no decodable payload
    """
    records = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(records, list) or not records:
        raise DocumentNotFoundError()

    first = records[0]
    link = first.get("paymentAdviceLink") if isinstance(first, dict) else None
    if not isinstance(link, str) or BASE64_MARKER not in link:
        raise DocumentNotFoundError()

    encoded = link.split(BASE64_MARKER, 1)[1]
    if not encoded:
        raise DocumentNotFoundError()

    try:
        content = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise DocumentNotFoundError() from e

    if not content:
        raise DocumentNotFoundError()
    return content


class PaymentAdviceClient:
    """Client for the upstream payment advice endpoint."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Application settings
            client: Optional httpx client (for testing)
        """
        self.settings = settings
        self._external_client = client
        self._internal_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._external_client:
            return self._external_client

        if self._internal_client is None:
            self._internal_client = httpx.AsyncClient(
                timeout=self.settings.upstream_timeout_seconds,
            )
        return self._internal_client

    async def close(self) -> None:
        """Close the internal HTTP client."""
        if self._internal_client:
            await self._internal_client.aclose()
            self._internal_client = None

    async def fetch_pdf(self, query: PaymentAdviceQuery) -> bytes:
        """Look up a payment advice and return the decoded PDF.

        Args:
            query: Lookup to perform

        Returns:
            PDF bytes

        Raises:
            UpstreamUnavailableError: If the request fails or the response is unusable
            DocumentNotFoundError: If no payment advice matches
        """
        client = await self._get_client()

        try:
            response = await client.get(
                self.settings.api_base_url,
                params=query.params(),
                headers=self.settings.upstream_headers,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "upstream_http_error",
                file_id=query.file_id,
                status=e.response.status_code,
            )
            raise UpstreamUnavailableError() from e
        except httpx.HTTPError as e:
            logger.error("upstream_request_failed", file_id=query.file_id, error=str(e))
            raise UpstreamUnavailableError() from e
        except ValueError as e:
            logger.error("upstream_invalid_json", file_id=query.file_id, error=str(e))
            raise UpstreamUnavailableError() from e

        logger.debug(
            "upstream_fetch",
            file_id=query.file_id,
            status=response.status_code,
        )

        try:
            content = extract_pdf(payload)
        except DocumentNotFoundError:
            logger.info("payment_advice_not_found", file_id=query.file_id)
            raise

        logger.info("payment_advice_fetched", file_id=query.file_id, size=len(content))
        return content
