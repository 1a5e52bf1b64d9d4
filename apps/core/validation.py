"""Input normalisation shared by groups and posts."""

import json

from rest_framework import serializers

from .exceptions import DomainValidationError

MAX_TAG_LENGTH = 30

# Canonical 8-4-4-4-12 form, used for ids in router paths
UUID_PATTERN = r'[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}'


def clean_tags(tags, *, max_length: int = MAX_TAG_LENGTH) -> list[str]:
    """
    Strip tags, drop empty ones and reject tags that are too long.

    Raises:
        DomainValidationError: If a tag exceeds ``max_length`` characters
    """
    if not tags:
        return []

    cleaned = []
    for tag in tags:
        tag = str(tag).strip()
        if not tag:
            continue
        if len(tag) > max_length:
            raise DomainValidationError(
                f"Tag '{tag[:max_length]}...' cannot be more than {max_length} characters"
            )
        cleaned.append(tag)
    return cleaned


class TagListField(serializers.ListField):
    """
    List of tags that also accepts a JSON string or a comma separated string.

    Multipart requests (posts with media) can only send flat strings,
    so ``'["a", "b"]'`` and ``'a, b'`` both become ``['a', 'b']``.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('child', serializers.CharField(max_length=MAX_TAG_LENGTH, trim_whitespace=True))
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_empty', True)
        super().__init__(**kwargs)

    def get_value(self, dictionary):
        # A single multipart value may hold a JSON or comma separated list
        if hasattr(dictionary, 'getlist') and self.field_name in dictionary:
            values = dictionary.getlist(self.field_name)
            if len(values) == 1:
                return values[0]
            return values
        return super().get_value(dictionary)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = self._parse_string(data)
        return super().to_internal_value(data)

    @staticmethod
    def _parse_string(value: str) -> list:
        try:
            parsed = json.loads(value)
        except ValueError:
            return [tag.strip() for tag in value.split(',') if tag.strip()]

        if isinstance(parsed, list):
            return parsed
        if parsed in (None, ''):
            return []
        return [str(parsed)]
