# src/mytasks/tasks/task_store.py

from __future__ import annotations

import logging

from ..core.errors import StoreError
from ..core.models import Task
from ..core.ports import TaskTable
from ..core.state import AppState

logger = logging.getLogger(__name__)


class TaskStoreClient:
    """
    CRUD against the remote tasks table, mirrored into AppState.tasks.

    The local list is a read-through cache: it only changes after the store
    confirms a request, and inserts adopt the server-returned row.

    Every operation:
    - captures the session generation before the request,
    - drops the response if the session user changed meanwhile,
    - catches StoreError, logs it and records it in state.last_error.
    """

    def __init__(self, state: AppState, table: TaskTable) -> None:
        self._state = state
        self._table = table

    def _access(self, user_id: str | None = None) -> tuple[str, int] | None:
        session = self._state.session
        if session is None:
            self._state.report_error("Not signed in.")
            return None
        if user_id is not None and user_id != session.user.id:
            # Never query on behalf of a user other than the signed-in one.
            logger.warning("Refusing task request for user=%s (signed in as %s)", user_id, session.user.id)
            self._state.report_error("Task request does not match the signed-in user.")
            return None
        return session.access_token, self._state.generation

    def _stale(self, op: str, generation: int, user_id: str | None = None) -> bool:
        if self._state.is_current(generation, user_id):
            return False
        logger.info("Discarding stale %s result (generation %d != %d)", op, generation, self._state.generation)
        return True

    def _fail(self, op: str, err: StoreError, generation: int) -> None:
        logger.warning("%s error: %s", op, err)
        if self._state.is_current(generation):
            self._state.report_error(f"{op} failed: {err}")

    async def list_tasks(self, user_id: str) -> list[Task] | None:
        access = self._access(user_id)
        if access is None:
            return None
        token, generation = access

        try:
            rows = await self._table.select_for_user(token, user_id)
        except StoreError as e:
            self._fail("Fetch tasks", e, generation)
            return None

        if self._stale("fetch", generation, user_id):
            return None

        tasks: list[Task] = []
        for row in rows:
            try:
                task = Task.from_row(row)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task row: %r", row)
                continue
            if task.user_id != user_id:
                logger.warning("Dropping task %s owned by another user", task.id)
                continue
            tasks.append(task)

        tasks.sort(key=lambda t: t.created_at, reverse=True)
        self._state.tasks = tasks
        logger.debug("Loaded %d tasks for user=%s", len(tasks), user_id)
        return tasks

    async def add_task(self, user_id: str, title: str) -> Task | None:
        title = (title or "").strip()
        if not title:
            return None

        access = self._access(user_id)
        if access is None:
            return None
        token, generation = access

        try:
            row = await self._table.insert(token, title=title, user_id=user_id)
            task = Task.from_row(row)
        except StoreError as e:
            self._fail("Add task", e, generation)
            return None
        except (KeyError, TypeError, ValueError):
            logger.exception("Insert returned a malformed row")
            self._state.report_error("Add task failed: malformed row from store.")
            return None

        if self._stale("insert", generation, user_id):
            return None

        self._state.tasks = [task, *self._state.tasks]
        logger.info("Task added id=%s", task.id)
        return task

    async def toggle_task(self, task_id: str | int, is_completed: bool) -> bool:
        access = self._access()
        if access is None:
            return False
        token, generation = access
        task_id = str(task_id)
        new_value = not is_completed

        try:
            await self._table.update_completed(token, task_id, new_value)
        except StoreError as e:
            self._fail("Toggle task", e, generation)
            return False

        if self._stale("update", generation):
            return False

        self._state.tasks = [t.toggled(new_value) if t.id == task_id else t for t in self._state.tasks]
        logger.info("Task %s -> is_completed=%s", task_id, new_value)
        return True

    async def delete_task(self, task_id: str | int) -> bool:
        access = self._access()
        if access is None:
            return False
        token, generation = access
        task_id = str(task_id)

        try:
            await self._table.delete(token, task_id)
        except StoreError as e:
            self._fail("Delete task", e, generation)
            return False

        if self._stale("delete", generation):
            return False

        self._state.tasks = [t for t in self._state.tasks if t.id != task_id]
        logger.info("Task %s deleted", task_id)
        return True
