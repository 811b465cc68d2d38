import functools
import inspect
import re
from typing import Any, Callable

from pydantic import BaseModel, Field

# Parameters supplied by the caller, never by the model.
_EXCLUDED_PARAMS = ("renderer", "still_current")

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


class ToolCallResult(BaseModel):
    tool_name: str
    output: Any


class Tool(BaseModel):
    """A function exposed to the model as an OpenAI-style tool.

    Build one with the :func:`tool` decorator.  ``model_dump`` returns
    the ``{"type": "function", ...}`` schema sent with each request.
    """

    func: Callable = Field(exclude=True)
    name: str
    description: str = ""
    parameters_schema: dict = Field(default_factory=dict)
    model_config = {"arbitrary_types_allowed": True}

    def model_dump(self, **kwargs):
        """Override to return the JSON schema instead of internal attributes"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema,
            },
        }

    def bind(self, **bound) -> "Tool":
        """Return a copy with *bound* arguments pre-filled.

        Bound parameters disappear from the schema so the model never
        sees them.
        """
        properties = {
            k: v for k, v in self.parameters_schema["properties"].items()
            if k not in bound
        }
        required = [
            r for r in self.parameters_schema["required"] if r not in bound
        ]
        return Tool(
            func=functools.partial(self.func, **bound),
            name=self.name,
            description=self.description,
            parameters_schema={
                "type": "object",
                "properties": properties,
                "required": required,
            },
        )

    async def __call__(self, **kwargs) -> ToolCallResult:
        output = self.func(**kwargs)
        if inspect.isawaitable(output):
            output = await output
        return ToolCallResult(tool_name=self.name, output=output)


def tool(
    func: Callable | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
):
    """Turn a function into a :class:`Tool`.

    Usable bare (``@tool``) or with overrides
    (``@tool(name="recommendPlace")``).  The description defaults to
    the docstring summary and parameter descriptions are read from its
    ``Args:`` section.
    """

    def wrap(f: Callable) -> Tool:
        schema, required = _build_parameters_schema(f)
        return Tool(
            func=f,
            name=name or f.__name__,
            description=(
                description if description is not None else _summary(f)
            ),
            parameters_schema={
                "type": "object",
                "properties": schema["properties"],
                "required": required,
            },
        )

    if func is not None:
        return wrap(func)
    return wrap


def _summary(func: Callable) -> str:
    doc = inspect.getdoc(func)
    if not doc:
        return ""
    return doc.split("\n\n", 1)[0].strip()


def _build_parameters_schema(func: Callable) -> tuple[dict, list[str]]:
    signature = inspect.signature(func)
    descriptions = _parse_param_descriptions(func)
    properties = {}
    required = []
    for param_name, param in signature.parameters.items():
        if param_name in _EXCLUDED_PARAMS:
            continue
        properties[param_name] = {
            "type": _JSON_TYPES.get(param.annotation, "string"),
            "description": descriptions.get(param_name, ""),
        }
        if param.default is inspect.Parameter.empty:
            required.append(param_name)
    return {"type": "object", "properties": properties}, required


_ARGS_HEADER = re.compile(r"^(Args|Arguments|Parameters):\s*$")
_ARG_LINE = re.compile(r"^(\w+)(\s*\([^)]*\))?:\s*(.*)$")


def _parse_param_descriptions(func: Callable) -> dict[str, str]:
    """Read per-parameter descriptions from a Google-style docstring."""
    doc = inspect.getdoc(func)
    if not doc:
        return {}

    descriptions: dict[str, str] = {}
    in_args = False
    current: str | None = None
    arg_indent = None
    for line in doc.splitlines():
        if _ARGS_HEADER.match(line.strip()) and not line.startswith(" "):
            in_args = True
            continue
        if not in_args:
            continue
        if not line.strip():
            current = None
            continue
        indent = len(line) - len(line.lstrip())
        if indent == 0:
            break
        if arg_indent is None:
            arg_indent = indent
        match = _ARG_LINE.match(line.strip())
        if indent == arg_indent and match:
            current = match.group(1)
            descriptions[current] = match.group(3).strip()
        elif current is not None:
            descriptions[current] += "\n" + line.strip()
    return descriptions
