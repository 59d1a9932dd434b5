"""
Corrida com timeout para chamadas de backend.

A chamada é executada numa thread de trabalho dedicada e disputa contra
um relógio. Quem terminar primeiro vence; se o relógio vencer, a chamada
em andamento é abandonada (não existe cancelamento garantido de I/O de
rede ou banco) e `OperationTimeoutError` é levantada.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Optional

from atlas_backflow.core.exceptions import OperationTimeoutError


def run_with_timeout(
    func: Callable[[], Any],
    seconds: Optional[float],
    *,
    operation: str = "operation",
) -> Any:
    """Executa `func()` e falha se não concluir em `seconds` segundos."""
    if not seconds or seconds <= 0:
        return func()

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="backflow-race")
    future = pool.submit(func)
    try:
        return future.result(timeout=seconds)
    except FutureTimeout:
        raise OperationTimeoutError(
            message=f"{operation} timed out after {seconds:g} seconds",
            details={"operation": operation, "timeout_seconds": seconds},
        ) from None
    finally:
        # não espera a perdedora: a thread segue até o backend responder
        pool.shutdown(wait=False)
