"""
Invocation of caller-supplied hooks.
"""

import inspect
import logging
from typing import Any, Optional

from pairlink.domain.config import Hook

logger = logging.getLogger(__name__)


async def invoke_hook(name: str, hook: Optional[Hook], *args: Any) -> None:
    """
    Call an optional hook, awaiting it if it is a coroutine function.

    Exceptions raised by application code are logged and do not break the
    connection lifecycle.
    """
    if hook is None:
        return
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Error in %s hook", name)
