"""
Replays configured page interactions, one at a time, in list order.
"""

from typing import Optional, Sequence

from config import DEFAULT_NEXT_SELECTOR, DEFAULT_SETTLE_DELAY_MS
from models import Action, ClickAction, EvaluateAction
from page_scripts import get_page_script
from run_logger import unified_logger


class ActionError(Exception):
    """An action failed; the remaining actions of the session were skipped."""

    def __init__(self, index: int, action: Action, cause: Exception):
        self.index = index
        self.action = action
        self.cause = cause
        super().__init__(f"Action #{index + 1} ({describe_action(action)}) failed: {cause}")


def describe_action(action: Action) -> str:
    if isinstance(action, ClickAction):
        return f"click {action.selector}"
    return f"evaluate {action.script}"


class ActionRunner:
    def __init__(self, default_next_selector: str = DEFAULT_NEXT_SELECTOR,
                 settle_delay: int = DEFAULT_SETTLE_DELAY_MS,
                 action_timeout: Optional[int] = None,
                 logger=unified_logger):
        self.default_next_selector = default_next_selector
        self.settle_delay = settle_delay
        self.action_timeout = action_timeout
        self.logger = logger

    async def run(self, page, actions: Sequence[Action]) -> None:
        """Run every action to completion before starting the next."""
        for index, action in enumerate(actions):
            try:
                await self.run_action(page, action)
            except Exception as e:
                raise ActionError(index, action, e) from e

    async def run_action(self, page, action: Action) -> None:
        self.logger.log_debug(f"Running action: {describe_action(action)}")
        if isinstance(action, EvaluateAction):
            await page.evaluate(get_page_script(action.script))
        elif isinstance(action, ClickAction):
            await self._click(page, action.selector)
            if action.next:
                await page.wait_for_timeout(self.settle_delay)
                await self._click(page, action.next_selector or self.default_next_selector)
            if action.wait_for:
                await page.wait_for_timeout(action.wait_for)
        else:
            raise TypeError(f"Unsupported action: {action!r}")

    async def _click(self, page, selector: str) -> None:
        if self.action_timeout is None:
            await page.click(selector)
        else:
            await page.click(selector, timeout=self.action_timeout)
