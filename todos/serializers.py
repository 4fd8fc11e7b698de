from rest_framework import serializers

# Page numbers share the 16-bit unsigned range of identifiers
MAX_PAGE = 65535


class TodoSerializer(serializers.Serializer):
    """Serializer for a single todo record."""

    id = serializers.IntegerField()
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


class TodoWriteSerializer(serializers.Serializer):
    """Serializer for creating/updating a todo's content."""

    content = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text="The todo text. Can be empty string.",
    )


class TodoCreatedSerializer(serializers.Serializer):
    id = serializers.IntegerField(help_text="Identifier issued for the new todo")


class PageQuerySerializer(serializers.Serializer):
    """Query parameters for paginated listing."""

    page = serializers.IntegerField(
        min_value=0,
        max_value=MAX_PAGE,
        required=False,
        default=1,
        help_text="Page number, starting from 1. 0 is treated as 1.",
    )


class TodoPageSerializer(serializers.Serializer):
    """Serializer for one page of todo contents."""

    items = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        help_text="Todo contents on this page, in ascending-id order",
    )
    next_page = serializers.IntegerField(
        allow_null=True,
        help_text="Number of the next page, or null if this is the last page",
    )
