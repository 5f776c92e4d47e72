from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any

from laicai.app.datasources.base.adapter import QuoteAdapterProtocol
from laicai.app.datasources.base.utils import split_instrument_code, to_suffixed_code
from laicai.app.datasources.directory.service import InstrumentDirectory
from laicai.app.datasources.quote.models import ProviderResult, QuoteRecord

logger = logging.getLogger("quote.resolver")


class QuoteResolver:
    """Resolve a stock code to a quote through an ordered fallback chain.

    ``resolve_quote`` never raises: when every adapter fails, or the overall
    deadline runs out, it returns ``QuoteRecord.placeholder`` with the code
    echoed back. The placeholder is part of the contract, not an error.
    """

    def __init__(
        self,
        adapters: list[QuoteAdapterProtocol],
        directory: InstrumentDirectory | None = None,
        *,
        deadline_seconds: float = 12.0,
    ) -> None:
        self.adapters = adapters
        self.directory = directory
        self.deadline_seconds = deadline_seconds

    def resolve_target(self, stock_code: str) -> str:
        """Suffixed code (``600000.SH``) handed to every adapter.

        May block on a directory fetch; ``resolve_quote`` bounds it by the deadline.
        """
        entry = self.directory.match(stock_code) if self.directory is not None else None
        if entry is not None:
            return entry.code
        return to_suffixed_code(stock_code)

    def resolve_quote(self, stock_code: str) -> QuoteRecord:
        bare, _ = split_instrument_code(stock_code)
        if not bare:
            return QuoteRecord.placeholder(bare)
        deadline = time.monotonic() + self.deadline_seconds
        errors: list[str] = []
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quote-resolver")
        try:
            target = self._bounded_target(pool, stock_code, deadline, errors)
            for adapter in self.adapters:
                source_id = str(getattr(adapter, "source_id", "unknown"))
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    errors.append(f"{source_id}: deadline exceeded before call")
                    break
                future = pool.submit(adapter.resolve, target)
                try:
                    result: ProviderResult = future.result(timeout=remaining)
                except FuturesTimeoutError:
                    # The worker thread is abandoned; nothing else can run within the deadline.
                    future.cancel()
                    errors.append(f"{source_id}: deadline exceeded after {self.deadline_seconds}s")
                    break
                except Exception as ex:  # noqa: BLE001
                    result = ProviderResult.transport_error(source_id, f"adapter raised: {ex}")
                if result.ok and result.quote is not None:
                    logger.info("quote_resolved code=%s target=%s source=%s", bare, target, source_id)
                    return result.quote
                errors.append(f"{source_id}: {result.status} {result.reason}".rstrip())
                logger.info(
                    "quote_fallthrough code=%s target=%s source=%s status=%s reason=%s",
                    bare,
                    target,
                    source_id,
                    result.status,
                    result.reason,
                )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        logger.warning("quote_unresolved code=%s target=%s errors=%s", bare, target, "; ".join(errors))
        return QuoteRecord.placeholder(bare)

    def _bounded_target(
        self,
        pool: ThreadPoolExecutor,
        stock_code: str,
        deadline: float,
        errors: list[str],
    ) -> str:
        if self.directory is None:
            return to_suffixed_code(stock_code)
        future = pool.submit(self.resolve_target, stock_code)
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FuturesTimeoutError:
            # The fetch keeps the only worker busy, so the chain below sees an exhausted deadline.
            future.cancel()
            errors.append(f"directory: deadline exceeded after {self.deadline_seconds}s")
        except Exception as ex:  # noqa: BLE001
            logger.warning("directory_match_failed code=%s error=%s", stock_code, ex)
        return to_suffixed_code(stock_code)

    def debug_snapshot(self) -> list[dict[str, Any]]:
        """Provide a lightweight, serializable snapshot for ops diagnostics."""
        return [
            {
                "source_id": str(getattr(adapter, "source_id", "")),
                "adapter": adapter.__class__.__name__,
            }
            for adapter in self.adapters
        ]
