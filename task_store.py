from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from task_models import TaskDB, utcnow
from visibility import ORDER_BY, Eq, Predicate


class TaskStore:
    """
    Persistence for tasks. Every method is a single statement against the database;
    filters are visibility predicates compiled to SQL.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, task: TaskDB) -> TaskDB:
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def find_one(self, where: Predicate) -> Optional[TaskDB]:
        stmt = select(TaskDB).where(where.to_sql(TaskDB)).limit(1)
        return self.db.execute(stmt).unique().scalars().first()

    def find_many(self, where: Predicate, order_by: Sequence[Tuple[str, bool]] = ORDER_BY) -> List[TaskDB]:
        stmt = select(TaskDB).where(where.to_sql(TaskDB))
        for field, descending in order_by:
            column = getattr(TaskDB, field)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return list(self.db.execute(stmt).unique().scalars().all())

    def update_one(self, task_id: int, fields: Dict[str, Any], where: Optional[Predicate] = None) -> Optional[TaskDB]:
        """Apply ``fields`` to one task. Returns the fresh row, or None if nothing matched."""
        condition = Eq("id", task_id)
        if where is not None:
            condition = condition & where

        values = dict(fields)
        values["updated_at"] = utcnow()
        result = self.db.execute(
            update(TaskDB).where(condition.to_sql(TaskDB)).values(**values).execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount == 0:
            return None

        # Identity map may hold the pre-update row
        self.db.expire_all()
        return self.find_one(Eq("id", task_id))

    def delete_one(self, where: Predicate) -> bool:
        result = self.db.execute(
            delete(TaskDB).where(where.to_sql(TaskDB)).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0
