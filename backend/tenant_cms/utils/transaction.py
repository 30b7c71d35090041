from contextlib import contextmanager
from flask import current_app
from tenant_cms.extensions import db


@contextmanager
def transactional():
    """Context manager for database transactions.

    Commits on success; on any exception the whole unit of work is rolled
    back and the exception re-raised.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning("Transaction rolled back: %s", exc)
        raise
