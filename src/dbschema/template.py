"""YAML schema skeletons generated from sample records."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, NamedTuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from dbschema.type_mapping import declared_type_for

TEMPLATE_DIR = Path(__file__).parent / "templates"


class TableTemplate(NamedTuple):
    """Name and suggested column types of one table."""

    name: str
    columns: dict[str, str]


def _nested_record(value: Any) -> Mapping[str, Any] | None:  # noqa: ANN401
    """Return the record describing a nested table, if ``value`` is one."""
    if isinstance(value, Mapping):
        return value
    if (
        isinstance(value, Sequence)
        and not isinstance(value, str)
        and value
        and isinstance(value[0], Mapping)
    ):
        return value[0]
    return None


def record_tables(record: Mapping[str, Any], name: str) -> list[TableTemplate]:
    """Derive table templates from a record.

    Scalar fields become columns of ``name``; nested records (or lists of
    records) become tables of their own, named after their field.
    """
    columns: dict[str, str] = {}
    nested: list[TableTemplate] = []
    for field, value in record.items():
        if (sub_record := _nested_record(value)) is not None:
            nested.extend(record_tables(sub_record, str(field)))
        else:
            columns[str(field)] = declared_type_for(value)
    return [TableTemplate(name, columns), *nested]


def schema_template(record: Mapping[str, Any], name: str = "mytable") -> str:
    """Render a YAML schema skeleton for a sample record.

    Columns whose type cannot be guessed are declared as ``UNKNOWN`` and must
    be edited before the schema can be loaded.
    """
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("schema.yaml.j2")
    return template.render(tables=record_tables(record, name))
