"""SecureShare document catalogue client.

Uses the SecureShare API when a real key is configured, otherwise serves a
fixed mock catalogue.
"""

from __future__ import annotations

from typing import Any

import httpx

from voltbuild.common.exceptions import ExternalServiceError
from voltbuild.config import settings
from voltbuild.integrations.base import BaseIntegration

_MOCK_DOCUMENTS: list[dict[str, Any]] = [
    {"id": "ss-doc-001", "filename": "Interconnection_Agreement_Draft.pdf", "content_type": "application/pdf"},
    {"id": "ss-doc-002", "filename": "Single_Line_Diagram_Rev_C.pdf", "content_type": "application/pdf"},
    {"id": "ss-doc-003", "filename": "Geotechnical_Report.pdf", "content_type": "application/pdf"},
    {"id": "ss-doc-004", "filename": "Transformer_Submittal_2500kVA.pdf", "content_type": "application/pdf"},
    {"id": "ss-doc-005", "filename": "Site_Layout.dwg", "content_type": "application/acad"},
    {"id": "ss-doc-006", "filename": "Commissioning_Checklist.xlsx", "content_type": "application/vnd.ms-excel"},
]


def _is_mock() -> bool:
    return settings.SECURE_SHARE_API_KEY.startswith("mock_")


class SecureShareClient(BaseIntegration):
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__("secure_share")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.SECURE_SHARE_API_URL,
            headers={"Authorization": f"Bearer {settings.SECURE_SHARE_API_KEY}"},
            timeout=10,
            transport=self._transport,
        )

    async def health_check(self) -> bool:
        if _is_mock():
            self.logger.info("SecureShare health check: OK (mock)")
            return True
        try:
            async with self._client() as client:
                resp = await client.get("/health")
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("SecureShare health check failed: %s", e)
            return False

    async def list_documents(self, search: str | None = None) -> list[dict[str, Any]]:
        if _is_mock():
            docs = _MOCK_DOCUMENTS
        else:
            try:
                async with self._client() as client:
                    resp = await client.get("/documents", params={"q": search} if search else None)
                    resp.raise_for_status()
                    docs = [
                        {"id": str(d["id"]), "filename": d["filename"], "content_type": d.get("content_type")}
                        for d in resp.json().get("documents", [])
                    ]
            except (httpx.HTTPError, KeyError, ValueError) as e:
                self.logger.error("SecureShare document listing failed: %s", e)
                raise ExternalServiceError("SecureShare", str(e)) from e

        if search:
            needle = search.lower()
            docs = [d for d in docs if needle in d["filename"].lower()]
        return list(docs)

    async def get_document(self, document_id: str) -> dict[str, Any] | None:
        for doc in await self.list_documents():
            if doc["id"] == document_id:
                return doc
        return None
