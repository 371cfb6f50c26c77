from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
import logging

from .errors import StoreError, StoreLockedError
from .models import CardCounts
from .reporter import Reporter
from .store import open_collection

logger = logging.getLogger(__name__)


class Poller:
    """Reads card counts from one collection and reports them.

    ``run_once`` lets store failures propagate; ``cycle`` absorbs them and
    returns how long to wait before the next attempt.
    """

    def __init__(
        self,
        path: Path,
        reporter: Reporter,
        refresh_delay: timedelta,
        retry_delay: timedelta,
        opener=open_collection,
        clock=datetime.now,
    ) -> None:
        self.path = path
        self.reporter = reporter
        self.refresh_delay = refresh_delay
        self.retry_delay = retry_delay
        self.opener = opener
        self.clock = clock

    def fetch(self) -> CardCounts:
        with self.opener(self.path) as collection:
            return collection.due_counts(self.clock())

    def run_once(self) -> CardCounts:
        counts = self.fetch()
        self.reporter.counts(counts)
        return counts

    def cycle(self) -> timedelta:
        try:
            counts = self.fetch()
        except StoreLockedError:
            logger.info("Collection is locked, retrying in %s", self.retry_delay)
            self.reporter.busy()
            return self.retry_delay
        except StoreError as e:
            logger.debug("Retrying in %s", self.retry_delay)
            self.reporter.error(e)
            return self.retry_delay

        logger.debug(
            "new=%d learn=%d review=%d", counts.new, counts.learn, counts.review
        )
        self.reporter.counts(counts)
        return self.refresh_delay
