"""
Multi-server campaign loop.

Servers are tested one after another; each result is persisted before the
next server starts.  A failure on one server is logged and never stops the
remaining ones.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from .exceptions import ResultValidationError, TotalFailureError
from .history import ResultStore
from .models import HistoryRecord, ServerConfig, SpeedTestResult, TestSettings
from .runner import SpeedTestRunner

LOGGER = logging.getLogger(__name__)

ResultCallback = Callable[[SpeedTestResult, Optional[HistoryRecord]], None]


def _persist(store: ResultStore, result: SpeedTestResult) -> Optional[HistoryRecord]:
    try:
        record = store.save(result)
    except ResultValidationError as exc:
        LOGGER.error("Result for %s rejected: %s", result.server_url, exc)
        return None
    except SQLAlchemyError as exc:
        LOGGER.error("Failed to save result for %s: %s", result.server_url, exc)
        return None
    LOGGER.info("Saved result for %s with id %d", result.server_name, record.id)
    return record


async def run_campaign(
    servers: Sequence[ServerConfig],
    settings: TestSettings,
    store: Optional[ResultStore] = None,
    save_failed: bool = True,
    runner: Optional[SpeedTestRunner] = None,
    on_result: Optional[ResultCallback] = None,
) -> List[SpeedTestResult]:
    """Test every server in order and return the results that were produced."""
    runner = runner or SpeedTestRunner(settings)
    results: List[SpeedTestResult] = []

    LOGGER.info("Testing %d server(s)", len(servers))
    for index, server in enumerate(servers, start=1):
        LOGGER.info("[%d/%d] Testing %s (%s)", index, len(servers), server.name, server.url)
        persist = True
        try:
            result = await runner.run(server)
        except TotalFailureError as exc:
            LOGGER.error("Testing %s failed: %s", server.name, exc)
            result = exc.result
            persist = save_failed
        except Exception:
            LOGGER.exception("Unexpected error while testing %s", server.name)
            continue

        record = None
        if store is not None and persist:
            try:
                record = _persist(store, result)
            except Exception:
                LOGGER.exception("Unexpected error while saving result for %s", server.name)

        results.append(result)
        if on_result is not None:
            try:
                on_result(result, record)
            except Exception:
                LOGGER.exception("Reporting the result for %s failed", server.name)

    LOGGER.info("All tests finished")
    return results
