import re
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

_ARGS_BLOCK = re.compile(
    r'\n\s*Args:\s*\n(.*?)(?:\n\s*\n|\n\s*[A-Z][a-z]+:|\Z)',
    re.DOTALL,
)
_ARG_LINE = re.compile(r'^\s*(\w+):\s*(.*)$')


def parse_docstring_args(docstring: str | None) -> dict[str, str]:
    """Extract ``name: description`` pairs from an ``Args:`` block.

    Continuation lines are folded into the preceding entry.
    """
    if not docstring:
        return {}

    match = _ARGS_BLOCK.search(docstring)
    if not match:
        return {}

    descriptions: dict[str, list[str]] = {}
    current: str | None = None

    for line in match.group(1).split('\n'):
        arg_match = _ARG_LINE.match(line)
        if arg_match:
            current = arg_match.group(1)
            first = arg_match.group(2).strip()
            descriptions[current] = [first] if first else []
        elif current and line.strip():
            descriptions[current].append(line.strip())

    return {
        name: ' '.join(parts).strip()
        for name, parts in descriptions.items()
        if parts
    }


class BaseModel(PydanticBaseModel):
    """Custom BaseModel.

    Extends Pydantic's BaseModel so that field descriptions are taken from
    the ``Args:`` block of the class docstring when a subclass is defined.
    Fields that declare their own description keep it.
    """

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)

        for name, description in parse_docstring_args(cls.__doc__).items():
            field_info = cls.model_fields.get(name)
            if field_info is not None and field_info.description is None:
                field_info.description = description
