"""Materialized, notification-driven views over one record family.

A ``ViewSynchronizer`` holds the complete current collection of a family
(keyed by id), re-fetches it in full whenever the change feed mentions one
of the tables it depends on, and keeps the query pipeline's output for the
active parameters. A ``ViewSession`` groups the synchronizers owned by one
client connection; closing it releases their subscriptions.
"""
import json
import logging
import queue

from league.events import CHANGE_EVENT
from league.query import ASC, evaluate

logger = logging.getLogger(__name__)


class ViewSynchronizer:
    def __init__(self, family, fetch, query, bus, tables,
                 filters=None, search_term="", sort_key=None, sort_order=ASC):
        self.family = family
        self._fetch = fetch
        self._query = query
        self._bus = bus
        self._tables = frozenset(tables)
        self._params = self._check_params(filters, search_term, sort_key, sort_order, [])
        self._entities = {}
        self._view = []
        self._queue = bus.subscribe(self._tables)
        try:
            self.refresh()
        except Exception:
            self.close()
            raise

    def _check_params(self, filters, search_term, sort_key, sort_order, sample):
        params = {
            "filters": dict(filters or {}),
            "search_term": search_term or "",
            "sort_key": sort_key,
            "sort_order": sort_order,
        }
        # Raises InvalidInput on unknown filters or sort keys
        evaluate(sample, query=self._query, **params)
        return params

    @property
    def entities(self):
        return dict(self._entities)

    @property
    def view(self):
        return list(self._view)

    @property
    def params(self):
        return dict(self._params, filters=dict(self._params["filters"]))

    @property
    def closed(self):
        return self._queue is None

    def refresh(self):
        """Re-fetch the whole family and re-run the pipeline."""
        records = self._fetch()
        entities = {record["id"]: record for record in records}
        view = evaluate(entities.values(), query=self._query, **self._params)
        self._entities = entities
        self._view = view
        logger.debug("Refreshed %s view: %d of %d", self.family, len(view), len(entities))
        return self.view

    def set_params(self, filters=None, search_term="", sort_key=None, sort_order=ASC):
        """Switch the active query parameters. No fetch happens."""
        params = self._check_params(filters, search_term, sort_key, sort_order,
                                    list(self._entities.values()))
        self._params = params
        self._view = evaluate(self._entities.values(), query=self._query, **params)
        return self.view

    def _resubscribe_if_dropped(self):
        # The bus drops subscribers whose queue filled up
        if not self._bus.is_subscribed(self._queue):
            logger.warning("%s view lost its subscription, resubscribing", self.family)
            self._queue = self._bus.subscribe(self._tables)
            return True
        return False

    def _is_relevant(self, msg):
        event = json.loads(msg)
        return (
            event.get("type") == CHANGE_EVENT
            and event.get("data", {}).get("table") in self._tables
        )

    def _drain(self, first=None):
        relevant = first is not None and self._is_relevant(first)
        while True:
            try:
                msg = self._queue.get_nowait()
            except queue.Empty:
                return relevant
            relevant = self._is_relevant(msg) or relevant

    def poll(self):
        """Apply pending notifications. Returns True when the view was refreshed."""
        if self.closed:
            raise RuntimeError(f"{self.family} view is closed")
        stale = self._resubscribe_if_dropped()
        if self._drain() or stale:
            self.refresh()
            return True
        return False

    def wait(self, timeout=None):
        """Block until a relevant notification arrives or ``timeout`` passes.

        Returns True when the view was refreshed.
        """
        if self.closed:
            raise RuntimeError(f"{self.family} view is closed")
        if self._resubscribe_if_dropped():
            self.refresh()
            return True
        try:
            first = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False
        if self._drain(first):
            self.refresh()
            return True
        return False

    def close(self):
        if self._queue is not None:
            self._bus.unsubscribe(self._queue)
            self._queue = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ViewSession:
    """The views owned by one client connection."""

    def __init__(self):
        self._views = {}

    def add(self, synchronizer):
        if synchronizer.family in self._views:
            raise ValueError(f"{synchronizer.family} view already open")
        self._views[synchronizer.family] = synchronizer
        return synchronizer

    def __getitem__(self, family):
        return self._views[family]

    def __contains__(self, family):
        return family in self._views

    def poll(self):
        """Poll every view; returns the families that were refreshed."""
        return [family for family, view in self._views.items() if view.poll()]

    def close(self):
        for view in self._views.values():
            view.close()
        self._views.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
