"""Lint orchestration: fan packages out to workers, fan failures back in.

Pipeline::

    package workers -> unfiltered channel -> filter thread -> public channel -> caller

``Linter.lint`` returns a ``FailureStream`` immediately; failures arrive as
packages finish. The public channel is closed only after every worker is
done and the unfiltered channel has been drained.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vestige.core.exceptions import TypeCheckError
from vestige.core.models import Failure, FailurePosition, Position

if TYPE_CHECKING:
    from vestige.config import Config
    from vestige.core.program import Package
    from vestige.core.rule import Rule

logger = logging.getLogger(__name__)

FailureFilter = Callable[[Failure], bool]

TYPECHECK_RULE_NAME = "typecheck"
TYPECHECK_CATEGORY = "typechecking"
RULE_ERROR_NAME = "rule-error"
RULE_ERROR_CATEGORY = "internal"

_POLL_INTERVAL = 0.05


class _Closed:
    """End-of-stream marker."""


_CLOSED = _Closed()


@dataclass
class _Abort:
    """Carries an unexpected worker error to the consumer."""

    package: str
    error: BaseException


class _Cancelled(Exception):
    """Raised inside a worker once the stream has been closed by the caller."""


_Item = Failure | _Abort | _Closed


def _send(channel: queue.Queue[_Item], item: _Item, cancel: threading.Event) -> bool:
    """Block until ``item`` is queued; give up once ``cancel`` is set."""
    while not cancel.is_set():
        try:
            channel.put(item, timeout=_POLL_INTERVAL)
            return True
        except queue.Full:
            continue
    return False


def _receive(channel: queue.Queue[_Item], cancel: threading.Event) -> _Item:
    while not cancel.is_set():
        try:
            return channel.get(timeout=_POLL_INTERVAL)
        except queue.Empty:
            continue
    return _CLOSED


class FailureStream:
    """Iterable over the failures of one lint run.

    Iteration ends when every package has been processed. A broken invariant
    (an ``AssertionError``) in a package worker, or an error in a filter, is
    re-raised here. Closing the stream (or leaving its ``with`` block) stops
    the pipeline early.
    """

    def __init__(self, channel: queue.Queue[_Item], cancel: threading.Event) -> None:
        self._channel = channel
        self._cancel = cancel
        self._done = False

    def __iter__(self) -> Iterator[Failure]:
        while not self._done:
            item = _receive(self._channel, self._cancel)
            if isinstance(item, _Closed):
                self._done = True
                return
            if isinstance(item, _Abort):
                self.close()
                raise item.error
            yield item

    def close(self) -> None:
        """Stop the pipeline; pending failures are dropped."""
        self._done = True
        self._cancel.set()

    @property
    def closed(self) -> bool:
        return self._done

    def __enter__(self) -> FailureStream:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()


class Linter:
    """Runs a rule set over a set of packages concurrently."""

    def __init__(self, filters: Sequence[FailureFilter] = (), buffer_size: int = 1) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self._filters = list(filters)
        self._buffer_size = buffer_size

    def lint(self, packages: Sequence[Package], rules: Sequence[Rule], config: Config) -> FailureStream:
        """Lint the packages with the given rules.

        Returns at once; one worker thread per package feeds the stream.
        """
        failures: queue.Queue[_Item] = queue.Queue(maxsize=self._buffer_size)
        unfiltered: queue.Queue[_Item] = queue.Queue(maxsize=self._buffer_size)
        cancel = threading.Event()

        threading.Thread(
            target=self._filter,
            args=(unfiltered, failures, cancel),
            name="vestige-filter",
            daemon=True,
        ).start()

        workers = []
        for package in packages:
            worker = threading.Thread(
                target=self._run_worker,
                args=(package, rules, config, unfiltered, cancel),
                name=f"vestige-{package.name}",
                daemon=True,
            )
            worker.start()
            workers.append(worker)

        threading.Thread(
            target=self._close_when_done,
            args=(workers, unfiltered, cancel),
            name="vestige-closer",
            daemon=True,
        ).start()

        return FailureStream(failures, cancel)

    def _filter(
        self,
        unfiltered: queue.Queue[_Item],
        failures: queue.Queue[_Item],
        cancel: threading.Event,
    ) -> None:
        """Republish unfiltered failures until the unfiltered channel closes."""
        while True:
            item = _receive(unfiltered, cancel)
            if isinstance(item, _Closed):
                _send(failures, _CLOSED, cancel)
                return
            if isinstance(item, Failure):
                try:
                    keep = all(accept(item) for accept in self._filters)
                except Exception as e:
                    item, keep = _Abort("<filter>", e), True
                if not keep:
                    continue
            if not _send(failures, item, cancel):
                return

    def _close_when_done(
        self,
        workers: list[threading.Thread],
        unfiltered: queue.Queue[_Item],
        cancel: threading.Event,
    ) -> None:
        for worker in workers:
            worker.join()
        _send(unfiltered, _CLOSED, cancel)

    def _run_worker(
        self,
        package: Package,
        rules: Sequence[Rule],
        config: Config,
        unfiltered: queue.Queue[_Item],
        cancel: threading.Event,
    ) -> None:
        def sink(failure: Failure) -> None:
            if not _send(unfiltered, failure, cancel):
                raise _Cancelled

        try:
            self.lint_package(package, rules, config, sink)
        except _Cancelled:
            logger.debug("Linting of package %s cancelled", package.name)
        except Exception as e:
            logger.debug("Linting of package %s failed", package.name, exc_info=True)
            _send(unfiltered, _Abort(package.name, e), cancel)

    def lint_package(
        self,
        package: Package,
        rules: Sequence[Rule],
        config: Config,
        failures: Callable[[Failure], None],
    ) -> None:
        """Run every rule over one package.

        A type-check failure, or an unexpected error raised by a rule, is
        reported as a single failure and ends the package. Assertion errors
        propagate.
        """
        if not package.files:
            return

        logger.debug("Linting package %s (%d files)", package.name, len(package.files))
        try:
            package.type_check()
        except TypeCheckError as e:
            logger.warning("Type checking failed for package %s: %s", package.name, e)
            failures(type_check_failure(package, e))
            return

        for rule in rules:
            arguments = config.rule(rule.name).arguments
            try:
                for file in package.files.values():
                    for failure in rule.apply_to_file(file, arguments):
                        failures(failure)
                rule.apply_to_package(package, arguments, failures)
            except (AssertionError, _Cancelled):
                raise
            except Exception as e:
                logger.warning(
                    "Rule %s failed on package %s: %s", rule.name, package.name, e, exc_info=True
                )
                failures(rule_error_failure(package, rule.name, e))
                return


def type_check_failure(package: Package, error: TypeCheckError) -> Failure:
    """The failure reported for a package that does not type-check."""
    first_file = next(iter(package.files), package.name)
    return Failure(
        confidence=1.0,
        failure=f"failed while type checking package {package.name}: {error}",
        position=FailurePosition(start=Position(first_file, 0)),
        rule_name=TYPECHECK_RULE_NAME,
        category=TYPECHECK_CATEGORY,
    )


def rule_error_failure(package: Package, rule_name: str, error: Exception) -> Failure:
    """The failure reported for a package on which a rule raised."""
    first_file = next(iter(package.files), package.name)
    return Failure(
        confidence=1.0,
        failure=f"rule {rule_name} failed on package {package.name}: {error!r}",
        position=FailurePosition(start=Position(first_file, 0)),
        rule_name=RULE_ERROR_NAME,
        category=RULE_ERROR_CATEGORY,
    )
