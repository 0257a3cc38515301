"""
JSON Portfolio Store
Loads and saves the portfolio document, one read-modify-write at a time
"""

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict

from investment_tracker.domain.exceptions import PersistenceError
from investment_tracker.domain.models import PortfolioAggregate

logger = logging.getLogger(__name__)


class JsonPortfolioStore:
    """
    File-backed portfolio persistence.

    A missing file is an empty portfolio. Saves replace the file atomically,
    so a failed write never leaves a half-written document behind.
    """

    def __init__(self, path: os.PathLike):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def load(self) -> PortfolioAggregate:
        data = await asyncio.to_thread(self._read)
        return PortfolioAggregate.from_dict(data)

    async def save(self, portfolio: PortfolioAggregate) -> None:
        await asyncio.to_thread(self._write, portfolio.to_dict())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PortfolioAggregate]:
        """
        Load, hand the portfolio to the caller, save on clean exit.

        Concurrent transactions are serialized. If the body raises, nothing
        is written and the in-memory portfolio is discarded.
        """
        async with self._lock:
            portfolio = await self.load()
            yield portfolio
            await self.save(portfolio)

    # ------------------------------------------------------------------
    # FILE I/O (runs in a worker thread)
    # ------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.info(f"📂 No portfolio file at {self.path}; starting empty")
            return {"stocks": [], "mutualFunds": []}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read portfolio data from {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise PersistenceError(f"Portfolio document at {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(f"Failed to write portfolio data to {self.path}: {exc}") from exc
