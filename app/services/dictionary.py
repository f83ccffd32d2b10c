import logging
from typing import List, Optional
from urllib.parse import quote

import httpx
from fastapi import HTTPException, status

from app.core.config import settings
from app.schemas.vocabulary import DictionaryEntry

logger = logging.getLogger(__name__)


class DictionaryService:
    """Word lookups against a Free Dictionary API compatible endpoint."""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.DICTIONARY_API_URL).rstrip("/")
        self.transport = transport

    async def _make_request(self, path: str) -> Optional[list]:
        async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
            url = f"{self.base_url}{path}"
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    return None
                logger.error(f"Dictionary API returned {e.response.status_code} for {path}")
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"Dictionary service error: HTTP {e.response.status_code}"
                )
            except httpx.RequestError as e:
                logger.error(f"Dictionary API unreachable: {e}")
                raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Dictionary service unreachable: {e}")

            try:
                return response.json()
            except ValueError:
                raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Dictionary service returned invalid JSON")

    def _to_entry(self, term: str, data: list) -> DictionaryEntry:
        phonetic = None
        audio_url = None
        meanings: List[str] = []
        examples: List[str] = []

        for entry in data:
            if not isinstance(entry, dict):
                continue
            phonetic = phonetic or entry.get("phonetic")
            for ph in entry.get("phonetics") or []:
                phonetic = phonetic or ph.get("text")
                audio_url = audio_url or ph.get("audio") or None
            for meaning in entry.get("meanings") or []:
                part = meaning.get("partOfSpeech")
                for definition in meaning.get("definitions") or []:
                    text = definition.get("definition")
                    if text:
                        meanings.append(f"({part}) {text}" if part else text)
                    if definition.get("example"):
                        examples.append(definition["example"])

        return DictionaryEntry(term=term, phonetic=phonetic, audio_url=audio_url, meanings=meanings, examples=examples)

    async def lookup(self, term: str) -> DictionaryEntry:
        term = term.strip()
        if not term:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Word cannot be empty")

        data = await self._make_request(f"/{quote(term)}")
        if not data or not isinstance(data, list):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No dictionary entry for '{term}'.")
        return self._to_entry(term, data)


dictionary_service = DictionaryService()
