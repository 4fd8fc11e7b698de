import logging
import threading
from typing import Dict, List, Optional, Tuple

from django.conf import settings

from todos.exceptions import InvalidPage, TodoNotFound
from todos.ids import IdentifierGenerator

logger = logging.getLogger(__name__)

# Maximum number of records returned by a single list_page() call
PAGE_SIZE = 10


class TodoStore:
    """
    In-memory mapping of identifier -> todo content.

    A single lock guards both the mapping and the identifier generator, so
    every public operation runs to completion before another one starts.
    """

    def __init__(self, page_size: int = PAGE_SIZE, generator: Optional[IdentifierGenerator] = None):
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")

        self.page_size = page_size
        self._ids = generator if generator is not None else IdentifierGenerator()
        self._todos: Dict[int, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._todos)

    def create(self, content: str) -> int:
        """
        Store a new todo and return its freshly issued id.

        Raises:
            IdentifierSpaceExhausted: If no ids are left. Nothing is stored.
        """
        with self._lock:
            todo_id = self._ids.next_id()
            self._todos[todo_id] = content

        logger.debug(f"Created todo {todo_id}")
        return todo_id

    def read(self, todo_id: int) -> str:
        with self._lock:
            try:
                return self._todos[todo_id]
            except KeyError as exc:
                raise TodoNotFound(todo_id) from exc

    def update(self, todo_id: int, content: str) -> None:
        """Replace the content of an existing todo. Never creates one."""
        with self._lock:
            if todo_id not in self._todos:
                raise TodoNotFound(todo_id)
            self._todos[todo_id] = content

        logger.debug(f"Updated todo {todo_id}")

    def delete(self, todo_id: int) -> None:
        with self._lock:
            try:
                del self._todos[todo_id]
            except KeyError as exc:
                raise TodoNotFound(todo_id) from exc

        logger.debug(f"Deleted todo {todo_id}")

    def list_page(self, page: int) -> Tuple[List[str], Optional[int]]:
        """
        Return one page of todo contents in ascending-id order.

        Pages are numbered from 1; anything lower is treated as page 1.
        Pages are computed against the current contents on every call, so
        deletes between calls can shift records onto earlier pages.

        Args:
            page: The requested page number

        Returns:
            Tuple of (items, next_page)
            - items: Up to page_size todo contents
            - next_page: page + 1 if records exist beyond this page, else None

        Raises:
            InvalidPage: If the page holds no records, including page 1 of
                an empty store.
        """
        page = max(page, 1)
        offset = (page - 1) * self.page_size

        with self._lock:
            total = len(self._todos)
            if offset >= total:
                raise InvalidPage(page)
            page_ids = sorted(self._todos)[offset:offset + self.page_size]
            items = [self._todos[todo_id] for todo_id in page_ids]

        next_page = page + 1 if total > offset + self.page_size else None
        return items, next_page

    def stats(self) -> dict:
        with self._lock:
            return {
                "records": len(self._todos),
                "last_issued_id": self._ids.current,
                "max_identifier": self._ids.max_value,
                "page_size": self.page_size,
            }


def build_store() -> TodoStore:
    """Build the process-wide store from Django settings."""
    page_size = getattr(settings, "TODO_PAGE_SIZE", PAGE_SIZE)
    logger.info(f"Initialising todo store (page size {page_size})")
    return TodoStore(page_size=page_size)
