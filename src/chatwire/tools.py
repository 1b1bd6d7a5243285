import inspect
import json
import re
from typing import Callable

from pydantic import BaseModel, Field

_JSON_TYPES = {
    'str': 'string',
    'int': 'integer',
    'float': 'number',
    'bool': 'boolean',
    'NoneType': 'null',
    'dict': 'object',
    'list': 'array',
    'tuple': 'array',
    'set': 'array',
}

_ARGS_HEADER = re.compile(r"^\s*(Args|Arguments|Parameters):\s*$")
_ARG_LINE = re.compile(r"^\s*(\w+)(?:\s*\([^)]*\))?:\s*(.*)$")


def _json_type(annotation) -> str:
    if annotation is inspect.Parameter.empty:
        return 'string'
    return _JSON_TYPES.get(getattr(annotation, "__name__", ""), 'string')


def _parse_param_descriptions(func: Callable) -> dict[str, str]:
    """Read Google-style ``Args:`` descriptions from a docstring."""
    doc = inspect.getdoc(func)
    if not doc:
        return {}
    descriptions: dict[str, str] = {}
    current = None
    in_args = False
    for line in doc.splitlines():
        if _ARGS_HEADER.match(line):
            in_args = True
            continue
        if not in_args:
            continue
        if not line.strip():
            current = None
            continue
        if not line.startswith(" "):
            break
        match = _ARG_LINE.match(line)
        if match and line.startswith("    ") and not line.startswith("     "):
            current = match.group(1)
            descriptions[current] = match.group(2).strip()
        elif current is not None:
            descriptions[current] += "\n" + line.strip()
    return descriptions


def _build_parameters_schema(func: Callable) -> dict:
    signature = inspect.signature(func)
    descriptions = _parse_param_descriptions(func)
    properties = {}
    required = []
    for name, param in signature.parameters.items():
        properties[name] = {
            "type": _json_type(param.annotation),
            "description": descriptions.get(name, ""),
        }
        if param.default is inspect.Parameter.empty:
            required.append(name)
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


class Tool(BaseModel):
    """A function the model may call, declared from its signature.

    The declaration is what ``model_dump()`` returns, so a ``Tool`` can
    be placed directly in a request's ``tools`` list.
    """

    func: Callable = Field(exclude=True)
    name: str
    description: str = ""
    strict: bool = False
    model_config = {"arbitrary_types_allowed": True}

    def model_dump(self, **kwargs):
        return self.declaration()

    def model_dump_json(self, **kwargs):
        return json.dumps(self.declaration())

    def declaration(self) -> dict:
        parameters = _build_parameters_schema(self.func)
        function = {
            "name": self.name,
            "description": self.description,
            "parameters": parameters,
        }
        if self.strict:
            function["strict"] = True
        return {"type": "function", "function": function}

    def __call__(self, **arguments) -> str:
        output = self.func(**arguments)
        return output if isinstance(output, str) else json.dumps(output)


def tool(func: Callable | None = None, *, strict: bool = False):
    """Decorator turning a function into a :class:`Tool`.

    The first paragraph of the docstring becomes the tool description.
    """
    def wrap(f: Callable) -> Tool:
        doc = inspect.getdoc(f) or ""
        return Tool(
            func=f,
            name=f.__name__,
            description=doc.split("\n\n")[0].strip(),
            strict=strict,
        )

    if func is None:
        return wrap
    return wrap(func)
