from django.apps import AppConfig


class TodosConfig(AppConfig):
    """Owns the single in-memory TodoStore for the lifetime of the process."""

    name = "todos"
    verbose_name = "Todos"
    store = None

    def ready(self):
        from todos.services import build_store

        self.store = build_store()
