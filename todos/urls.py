from django.urls import path

from todos.views import HealthCheckView, TodoCollectionView, TodoDetailView

app_name = "todos"

urlpatterns = [
    path("todos/<int:todo_id>/", TodoDetailView.as_view(), name="todo-detail"),
    path("todos/", TodoCollectionView.as_view(), name="todo-list"),
    path("health/", HealthCheckView.as_view(), name="health"),
]
