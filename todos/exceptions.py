class TodoStoreError(Exception):
    """Base class for record store failures."""


class TodoNotFound(TodoStoreError):
    """Raised when an id has no current record (never created, or deleted)."""

    def __init__(self, todo_id: int):
        self.todo_id = todo_id
        super().__init__(f"No todo with this ID {todo_id}")


class InvalidPage(TodoStoreError):
    """Raised when a requested page holds no records."""

    def __init__(self, page: int):
        self.page = page
        super().__init__(f"Invalid Page {page}")


class IdentifierSpaceExhausted(TodoStoreError):
    def __init__(self, max_value: int):
        self.max_value = max_value
        super().__init__(
            f"Identifier space exhausted: all {max_value} ids have been issued"
        )
