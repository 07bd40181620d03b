"""
Disk-backed response cache for any 'LLM'.

Judge models are called with temperature 0.0, so re-running a scenario against
an unchanged response produces the same judge request. 'CachingLLM' stores the
reply of every request on disk, keyed by a hash of the model name, the options
and the full conversation, and replays it on the next identical request.

Entries are written atomically. An entry that cannot be parsed is treated as a
miss and overwritten.
"""

import asyncio
import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Sequence

from loguru import logger
from pydantic import ValidationError

from chat_eval_toolkit.llms.base import LLM, ChatMessage, ChatOptions, ChatResponse


class CachingLLM(LLM):
    """
    Wraps another 'LLM' and caches its responses as JSON files in 'cache_dir'.

    Attributes:
        inner: The wrapped backend that is called on a cache miss.
        cache_dir: Directory holding one '<sha256>.json' file per cached response.
    """

    def __init__(self, inner: LLM, cache_dir: str | Path) -> None:
        self.inner = inner
        self.model_name = inner.model_name
        self.cache_dir = Path(cache_dir)

    def cache_key(self, conversation: Sequence[ChatMessage], options: ChatOptions) -> str:
        payload = {
            "model": self.model_name,
            "options": options.model_dump(mode="json"),
            "conversation": [m.model_dump(mode="json") for m in conversation],
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()

    def _read_cached(self, path: Path) -> ChatResponse | None:
        if not path.is_file():
            return None
        try:
            return ChatResponse.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, UnicodeDecodeError) as exc:
            logger.warning(f"CachingLLM: ignoring unreadable cache entry {path.name}: {exc}")
            return None

    def _store(self, path: Path, response: ChatResponse) -> None:
        # Write to a sibling temp file and rename, so readers never see a partial entry.
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=self.cache_dir, suffix=".tmp", delete=False)
        tmp_path = Path(handle.name)
        try:
            with handle:
                handle.write(response.model_dump_json())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    async def generate(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        options = options or ChatOptions()
        path = self.cache_dir / f"{self.cache_key(conversation, options)}.json"
        cached = await asyncio.to_thread(self._read_cached, path)
        if cached is not None:
            logger.debug(f"CachingLLM: cache hit {path.name}")
            return cached

        response = await self.inner.generate(conversation, options)
        await asyncio.to_thread(self._store, path, response)
        logger.debug(f"CachingLLM: stored {path.name}")
        return response

    def clear(self) -> int:
        """Delete every cached response and return how many were removed."""
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            path.unlink()
            removed += 1
        logger.info(f"CachingLLM: removed {removed} cached responses from {self.cache_dir}")
        return removed
