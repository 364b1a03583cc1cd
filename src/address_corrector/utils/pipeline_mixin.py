"""Stage execution mixin for multi-step processors.

Runs an ordered list of named stages, threading each stage's result
into the next one.
"""

from __future__ import annotations

import logging
from typing import Iterable, Callable, Any
from abc import abstractmethod

from colorama import Fore, Style


class PipelineMixin:
    """Mixin for processors built from sequential named stages.

    Usage:
        class MyProcessor(PipelineMixin):
            STAGE_LABEL = 'Processor'

            def _load_pipeline(self):
                return [
                    ('Step 1', self.step1_method, {}),
                    ('Step 2', self.step2_method, {'param': value}),
                ]

            def run(self, value):
                return self._execute_pipeline(value)
    """

    # Prefix printed in progress lines
    STAGE_LABEL: str = 'Pipeline'

    # Width used to align progress lines
    _STAGE_NAME_WIDTH: int = len('Postal Code Validation')

    logger: logging.Logger

    @abstractmethod
    def _load_pipeline(self) -> Iterable[tuple[str, Callable, dict[str, Any]]]:
        """Define the pipeline stages.

        Returns:
            List of tuples: (stage_name, function, kwargs)
        """
        ...

    def _execute_pipeline(self, state: Any, progress: bool = False) -> Any:
        """Run every stage on state and return the final result.

        Args:
            state: Input of the first stage
            progress: Whether to print coloured progress lines (default: False)
        """
        result = state
        for name, func, kwargs in self._load_pipeline():
            try:
                result = func(result, **kwargs)
            except Exception as e:
                self._log_step_failure(name, e, progress)
                raise
            self._log_step_success(name, progress)
        return result

    def _log_step_success(self, step_name: str, progress: bool) -> None:
        """Record a completed stage; print it when progress is on."""
        self.logger.debug(f'{self.STAGE_LABEL} -- {step_name} complete')
        if progress:
            padding = self._STAGE_NAME_WIDTH - len(step_name) + 4
            print(f'{self.STAGE_LABEL} -- {step_name} {"-" * padding}> {Fore.GREEN}Complete{Style.RESET_ALL}')

    def _log_step_failure(self, step_name: str, error: Exception, progress: bool) -> None:
        """Record a failed stage; print it when progress is on."""
        self.logger.error(f'{self.STAGE_LABEL} -- {step_name} failed: {error}')
        if progress:
            padding = self._STAGE_NAME_WIDTH - len(step_name) + 4
            print(f'{self.STAGE_LABEL} -- {step_name} {"-" * padding}> {Fore.RED}Failed{Style.RESET_ALL}: {error}')
