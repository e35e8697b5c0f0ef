"""Driving the shared rule-execution coroutine from synchronous entry points."""

from typing import Any, Coroutine

from ..exceptions import AsyncValidatorInvokedSynchronouslyError


def run_synchronously(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine that is expected to finish without ever suspending.

    The rule-execution core is written once as coroutines. On the synchronous
    path nothing it awaits actually suspends, so a single ``send`` completes
    it. If it does suspend, something asynchronous slipped through and the
    coroutine is closed instead of being waited on.
    """
    try:
        coro.send(None)
    except StopIteration as done:
        return done.value
    coro.close()
    raise AsyncValidatorInvokedSynchronouslyError()
