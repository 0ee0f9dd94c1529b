import logging
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from ..db import db
from ..errors import PersistenceError

log = logging.getLogger(__name__)


def ok(data=None, code=200):  return jsonify(data if data is not None else {}), code


def commit_or_rollback():
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.error("commit failed: %s", e)
        raise PersistenceError(message="The operation could not be saved") from e
