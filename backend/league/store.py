"""Storage access shared by the services.

Every service goes through these helpers so that database failures surface
as :class:`StorageUnavailable` and every committed change is announced on
the event bus, keyed by table name.
"""
import logging

from sqlalchemy import event, select, update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from league.errors import InvalidInput, NotFound, StorageUnavailable
from league.events import event_bus
from league.extensions import db

logger = logging.getLogger(__name__)

_CHANGED_TABLES = "league.changed_tables"

_LABELS = {
    "teams": "Team",
    "players": "Player",
    "fixtures": "Fixture",
    "knockout_fixtures": "Knockout fixture",
    "pending_results": "Pending result",
    "users": "User",
}


def _label(model):
    return _LABELS.get(model.__tablename__, model.__name__)


# ── Change feed ──────────────────────────────────────────────────────────────

@event.listens_for(Session, "after_flush")
def _collect_changed_tables(session, flush_context):
    tables = session.info.setdefault(_CHANGED_TABLES, set())
    for obj in session.new:
        tables.add(obj.__table__.name)
    for obj in session.deleted:
        tables.add(obj.__table__.name)
    for obj in session.dirty:
        if session.is_modified(obj, include_collections=False):
            tables.add(obj.__table__.name)


@event.listens_for(Session, "after_commit")
def _publish_changed_tables(session):
    tables = session.info.pop(_CHANGED_TABLES, None)
    for table in sorted(tables or ()):
        event_bus.notify_change(table)


@event.listens_for(Session, "after_rollback")
def _discard_changed_tables(session):
    session.info.pop(_CHANGED_TABLES, None)


# ── Reads ────────────────────────────────────────────────────────────────────

def get_record(model, record_id, lock=False):
    """Read one record by id, optionally taking a row lock for update."""
    try:
        record = db.session.get(model, record_id, with_for_update=lock or None)
    except SQLAlchemyError as e:
        logger.exception("Failed to read %s %s", model.__tablename__, record_id)
        raise StorageUnavailable("Storage is unavailable") from e

    if record is None:
        raise NotFound(f"{_label(model)} not found")
    return record


def list_records(model, *order_by, **filters):
    """Read every record of ``model`` matching ``filters``, in ``order_by`` order."""
    try:
        return model.query.filter_by(**filters).order_by(*order_by).all()
    except SQLAlchemyError as e:
        logger.exception("Failed to list %s", model.__tablename__)
        raise StorageUnavailable("Storage is unavailable") from e


def count_records(model, **filters):
    try:
        return model.query.filter_by(**filters).count()
    except SQLAlchemyError as e:
        logger.exception("Failed to count %s", model.__tablename__)
        raise StorageUnavailable("Storage is unavailable") from e


def read_snapshot(model, *order_by, dump):
    """List every ``model`` record in a session of its own; return ``dump(records)``.

    The session starts with an empty identity map and its own transaction
    and is closed before returning, so long-lived readers see the latest
    committed rows and hold no connection between reads. ``dump`` runs
    while the session is open so relationships can still load.
    """
    session = Session(db.engine)
    try:
        records = session.scalars(select(model).order_by(*order_by)).all()
        return dump(records)
    except SQLAlchemyError as e:
        logger.exception("Failed to read %s", model.__tablename__)
        raise StorageUnavailable("Storage is unavailable") from e
    finally:
        session.close()


# ── Writes ───────────────────────────────────────────────────────────────────

def commit():
    """Commit the session, mapping database failures onto league errors."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", e.orig)
        raise InvalidInput("Conflicts with an existing record") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Commit failed")
        raise StorageUnavailable("Storage is unavailable") from e


def update_where(model, record_id, condition, values):
    """Conditionally update one row in the current transaction.

    Returns the number of rows changed: 0 when ``condition`` no longer
    holds. The table is recorded for the change feed like an ORM flush.
    Leaves the commit to the caller.
    """
    stmt = (
        sql_update(model)
        .where(model.id == record_id, condition)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.session.execute(stmt)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Failed to update %s %s", model.__tablename__, record_id)
        raise StorageUnavailable("Storage is unavailable") from e

    if result.rowcount:
        db.session.info.setdefault(_CHANGED_TABLES, set()).add(model.__tablename__)
    return result.rowcount


def insert(record):
    db.session.add(record)
    commit()
    return record


def update(record, values):
    for key, value in values.items():
        setattr(record, key, value)
    commit()
    return record


def delete(record):
    db.session.delete(record)
    commit()
    return record
