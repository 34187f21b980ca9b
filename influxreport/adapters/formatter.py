"""
Name formatting for context names, metric names, tag keys and field keys.

Each hook is optional. ``None`` means the hook is not set, which is
different from a hook set to the identity function: the context and
metric name formatters return ``None`` when their hook is missing (or
returns ``None``) so the report can fall back to its own default naming.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from ..models import Field, Record, Tag
from ..utils.tags import lower_and_replace_spaces


ContextNameFormatter = Callable[[Sequence[str], str], str | None]
MetricNameFormatter = Callable[[str | None, str, str, Sequence[str]], str | None]
KeyFormatter = Callable[[str], str | None]


def default_context_name_formatter(context_stack: Sequence[str], context_name: str) -> str:
    """Join the parent contexts and the context name with periods."""
    names = [*context_stack, context_name]
    return ".".join(name for name in names if name and name.strip())


def default_metric_name_formatter(
    context: str | None, name: str, unit: str, tags: Sequence[str]
) -> str:
    """Prefix the metric name with its context, e.g. ``context.metric``."""
    return f"{context or ''}.{name}".strip(" .")


def identity_key_formatter(key: str) -> str:
    return key


class InfluxFormatter:
    """Formats identifiers and rewrites records before they are written.

    After a hook has run, the result is optionally lowercased and has its
    unescaped spaces replaced, according to ``lowercase_names`` and
    ``replace_space_char``.
    """

    def __init__(
        self,
        context_name_formatter: ContextNameFormatter | None = None,
        metric_name_formatter: MetricNameFormatter | None = None,
        tag_key_formatter: KeyFormatter | None = None,
        field_key_formatter: KeyFormatter | None = None,
        lowercase_names: bool = True,
        replace_space_char: str | None = "_",
    ) -> None:
        """Initialize the formatter.

        Args:
            context_name_formatter: Formats the context stack and context name
            metric_name_formatter: Formats the context and metric into a measurement name
            tag_key_formatter: Formats a tag key
            field_key_formatter: Formats a field key
            lowercase_names: Lowercase every formatted identifier
            replace_space_char: Replacement for spaces in identifiers; None keeps them
        """
        self.context_name_formatter = context_name_formatter
        self.metric_name_formatter = metric_name_formatter
        self.tag_key_formatter = tag_key_formatter
        self.field_key_formatter = field_key_formatter
        self.lowercase_names = lowercase_names
        self.replace_space_char = replace_space_char

    @classmethod
    def default(
        cls, lowercase_names: bool = True, replace_space_char: str | None = "_"
    ) -> InfluxFormatter:
        """Create a formatter with the default hooks.

        Identifiers are lowercased, spaces become underscores, and context and
        metric names are joined with periods.
        """
        return cls(
            context_name_formatter=default_context_name_formatter,
            metric_name_formatter=default_metric_name_formatter,
            tag_key_formatter=identity_key_formatter,
            field_key_formatter=identity_key_formatter,
            lowercase_names=lowercase_names,
            replace_space_char=replace_space_char,
        )

    def _transform(self, value: str) -> str:
        return lower_and_replace_spaces(value, self.lowercase_names, self.replace_space_char)

    def format_context_name(self, context_stack: Sequence[str], context_name: str) -> str | None:
        """Format the context name, or return None when no hook applies."""
        if self.context_name_formatter is None:
            return None
        value = self.context_name_formatter(context_stack, context_name)
        if value is None:
            return None
        return self._transform(value)

    def format_metric_name(
        self,
        context: str | None,
        name: str,
        unit: str = "",
        tags: Sequence[str] = (),
    ) -> str | None:
        """Format the metric name, or return None when no hook applies."""
        if self.metric_name_formatter is None:
            return None
        value = self.metric_name_formatter(context, name, unit, tags)
        if value is None:
            return None
        return self._transform(value)

    def format_tag_key(self, tag_key: str) -> str:
        value = self.tag_key_formatter(tag_key) if self.tag_key_formatter else None
        return self._transform(value if value is not None else tag_key)

    def format_field_key(self, field_key: str) -> str:
        value = self.field_key_formatter(field_key) if self.field_key_formatter else None
        return self._transform(value if value is not None else field_key)

    def format_record(self, record: Record) -> Record:
        """Format the name, tag keys and field keys of the record in place.

        Returns:
            The same record instance
        """
        name = self.format_metric_name(None, record.name)
        if name is not None:
            record.name = name
        record.tags[:] = [Tag(self.format_tag_key(t.key), t.value) for t in record.tags]
        record.fields[:] = [
            Field(self.format_field_key(f.key), f.value) for f in record.fields
        ]
        return record
