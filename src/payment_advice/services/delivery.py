"""Fetch a payment advice and hand it to the configured sink."""

from __future__ import annotations

from dataclasses import dataclass

from payment_advice.services.upstream_client import PaymentAdviceClient, PaymentAdviceQuery
from payment_advice.storage import ArtifactStore, EphemeralArtifact, sanitize_identifier


@dataclass(frozen=True)
class InlineDocument:
    """A PDF returned directly in the response body."""

    filename: str
    content: bytes


async def fetch_and_deliver(
    client: PaymentAdviceClient,
    query: PaymentAdviceQuery,
    artifacts: ArtifactStore | None,
) -> InlineDocument | EphemeralArtifact:
    """Fetch the PDF for ``query`` and deliver it.

    Args:
        client: Upstream client
        query: Lookup to perform
        artifacts: Store to write to, None to return the bytes inline

    Returns:
        The inline document, or the stored artifact
    """
    content = await client.fetch_pdf(query)

    if artifacts is None:
        return InlineDocument(
            filename=f"{sanitize_identifier(query.file_id)}.pdf",
            content=content,
        )

    return await artifacts.create(query.file_id, content)
