"""
SQLite history store.

Same contract as the JSON store, backed by SQLAlchemy. History and the
consumed snapshot ids are replaced in a single transaction.
"""

from datetime import datetime
from pathlib import Path
from typing import List

from sqlalchemy import create_engine, Column, Integer, String, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .errors import PersistenceError
from .timeline import History

Base = declarative_base()


class Tenure(Base):
    """One tenure of one rector in one académie."""

    __tablename__ = "tenures"

    unit = Column(String, primary_key=True)
    position = Column(Integer, primary_key=True)  # order within the académie
    name = Column(String, nullable=False)
    gender_marker = Column(String, nullable=False, default="")
    since = Column(String, nullable=False)  # YYYY-MM-DD


class ConsumedSnapshot(Base):
    """A snapshot id already merged into the history."""

    __tablename__ = "consumed_snapshots"

    snapshot_id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False)
    recorded_at = Column(DateTime, nullable=False, default=datetime.now)


class SqliteHistoryStore:
    """History store kept in a SQLite database.

    The store owns one engine for its lifetime; `close()` releases its
    connection pool.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(f"sqlite:///{self.db_path}")
            Base.metadata.create_all(self.engine)
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        self.Session = sessionmaker(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def load_history(self) -> History:
        history: History = {}
        session = self.Session()
        try:
            rows = session.query(Tenure).order_by(Tenure.unit, Tenure.position).all()
            for row in rows:
                history.setdefault(row.unit, []).append({
                    "name": row.name,
                    "gender_marker": row.gender_marker,
                    "since": row.since,
                })
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot read history from {self.db_path}: {e}") from e
        finally:
            session.close()
        return history

    def load_consumed(self) -> List[str]:
        session = self.Session()
        try:
            rows = session.query(ConsumedSnapshot).order_by(ConsumedSnapshot.position).all()
            return [row.snapshot_id for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cannot read consumed snapshots from {self.db_path}: {e}") from e
        finally:
            session.close()

    def save(self, history: History, consumed: List[str]) -> None:
        session = self.Session()
        try:
            session.query(Tenure).delete()
            session.query(ConsumedSnapshot).delete()
            for unit, entries in history.items():
                for position, entry in enumerate(entries):
                    session.add(Tenure(
                        unit=unit,
                        position=position,
                        name=entry["name"],
                        gender_marker=entry.get("gender_marker", ""),
                        since=entry["since"],
                    ))
            for position, snapshot_id in enumerate(dict.fromkeys(consumed)):
                session.add(ConsumedSnapshot(snapshot_id=snapshot_id, position=position))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Cannot write history to {self.db_path}: {e}") from e
        finally:
            session.close()
