import logging

from django.apps import apps
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from todos.exceptions import IdentifierSpaceExhausted, InvalidPage, TodoNotFound
from todos.serializers import (
    PageQuerySerializer,
    TodoCreatedSerializer,
    TodoPageSerializer,
    TodoSerializer,
    TodoWriteSerializer,
)
from todos.services import TodoStore

logger = logging.getLogger(__name__)

TODO_ID_PARAMETER = OpenApiParameter(
    name="todo_id",
    type=int,
    location=OpenApiParameter.PATH,
    description="The todo identifier",
)


def get_store() -> TodoStore:
    """Return the process-wide store owned by the todos app config."""
    return apps.get_app_config("todos").store


class TodoCollectionView(APIView):
    """Create todos and list them page by page."""

    @extend_schema(
        operation_id="list_todos",
        summary="List todos",
        description="Return one page of todo contents in ascending-id order. Pages below 1 are treated as page 1. Requesting a page with no todos (including page 1 of an empty store) returns 404.",
        parameters=[PageQuerySerializer],
        responses={
            200: OpenApiResponse(
                response=TodoPageSerializer,
                description="Successfully retrieved the page",
            ),
            400: OpenApiResponse(description="Malformed page number"),
            404: OpenApiResponse(description="Page holds no todos"),
        },
        tags=["Todos"],
    )
    def get(self, request):
        query = PageQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            items, next_page = get_store().list_page(query.validated_data["page"])
        except InvalidPage as exc:
            logger.info(str(exc))
            raise NotFound(detail=str(exc)) from exc

        return Response(TodoPageSerializer({"items": items, "next_page": next_page}).data)

    @extend_schema(
        operation_id="create_todo",
        summary="Create a todo",
        description="Store a new todo and return the identifier issued for it. Identifiers are never reused.",
        request=TodoWriteSerializer,
        responses={
            201: OpenApiResponse(
                response=TodoCreatedSerializer,
                description="Successfully created the todo",
            ),
            507: OpenApiResponse(description="No identifiers left to issue"),
        },
        tags=["Todos"],
    )
    def post(self, request):
        serializer = TodoWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            todo_id = get_store().create(serializer.validated_data["content"])
        except IdentifierSpaceExhausted as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_507_INSUFFICIENT_STORAGE,
            )

        return Response(
            TodoCreatedSerializer({"id": todo_id}).data, status=status.HTTP_201_CREATED
        )


class TodoDetailView(APIView):
    """Handle single todo operations."""

    def _not_found(self, exc: TodoNotFound):
        logger.info(str(exc))
        return NotFound(detail=str(exc))

    @extend_schema(
        operation_id="read_todo",
        summary="Read a todo",
        description="Retrieve the content of the todo with the given identifier.",
        parameters=[TODO_ID_PARAMETER],
        responses={
            200: OpenApiResponse(
                response=TodoSerializer,
                description="Successfully retrieved the todo",
            ),
            404: OpenApiResponse(description="Todo not found"),
        },
        tags=["Todos"],
    )
    def get(self, request, todo_id: int):
        try:
            content = get_store().read(todo_id)
        except TodoNotFound as exc:
            raise self._not_found(exc) from exc

        return Response(TodoSerializer({"id": todo_id, "content": content}).data)

    @extend_schema(
        operation_id="update_todo",
        summary="Update a todo",
        description="Replace the content of an existing todo. Does not create a todo if the identifier is unknown.",
        parameters=[TODO_ID_PARAMETER],
        request=TodoWriteSerializer,
        responses={
            204: OpenApiResponse(description="Successfully updated the todo"),
            404: OpenApiResponse(description="Todo not found"),
        },
        tags=["Todos"],
    )
    def put(self, request, todo_id: int):
        serializer = TodoWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            get_store().update(todo_id, serializer.validated_data["content"])
        except TodoNotFound as exc:
            raise self._not_found(exc) from exc

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="delete_todo",
        summary="Delete a todo",
        description="Remove a todo permanently. Its identifier is never reissued.",
        parameters=[TODO_ID_PARAMETER],
        responses={
            204: OpenApiResponse(description="Successfully deleted the todo"),
            404: OpenApiResponse(description="Todo not found"),
        },
        tags=["Todos"],
    )
    def delete(self, request, todo_id: int):
        try:
            get_store().delete(todo_id)
        except TodoNotFound as exc:
            raise self._not_found(exc) from exc

        return Response(status=status.HTTP_204_NO_CONTENT)


class HealthCheckView(APIView):
    """Health check and store status endpoint."""

    @extend_schema(
        operation_id="health_check",
        summary="Health check and store status",
        description="Returns health status of this process and a summary of the in-memory store.",
        responses={
            200: OpenApiResponse(
                description="Process is healthy and store status information",
            ),
        },
        tags=["Health & Monitoring"],
    )
    def get(self, request):
        return Response({
            "status": "healthy",
            "store": get_store().stats(),
        }, status=status.HTTP_200_OK)
