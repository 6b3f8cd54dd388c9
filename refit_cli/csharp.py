"""Emit Refit-flavoured C# client code from an OpenAPI document."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from .constants import OPERATION_NAME_PLACEHOLDER, PACKAGE_NAME
from .openapi_spec import detect_spec_kind, iter_operations, schema_definitions
from .settings import GenerationConfig, MultipleInterfaces, TypeAccessibility
from .version import cli_version

INDENT = "    "
ENDPOINT_METHOD_NAME = "Execute"
DEFAULT_TAG = "Default"

CSHARP_KEYWORDS = frozenset(
    """
    abstract as base bool break byte case catch char checked class const continue
    decimal default delegate do double else enum event explicit extern false finally
    fixed float for foreach goto if implicit in int interface internal is lock long
    namespace new null object operator out override params private protected public
    readonly ref return sbyte sealed short sizeof stackalloc static string struct
    switch this throw true try typeof uint ulong unchecked unsafe ushort using virtual
    void volatile while
    """.split()
)

_WORD_PATTERN = re.compile(r"[A-Za-z0-9]+")


def pascal_case(value: str) -> str:
    words = _WORD_PATTERN.findall(value or "")
    result = "".join(word[:1].upper() + word[1:] for word in words)
    if not result:
        return "_"
    if result[0].isdigit():
        result = f"_{result}"
    return result


def camel_case(value: str) -> str:
    pascal = pascal_case(value)
    if pascal.startswith("_"):
        return pascal
    return pascal[:1].lower() + pascal[1:]


def parameter_identifier(value: str) -> str:
    name = camel_case(value)
    return f"@{name}" if name in CSHARP_KEYWORDS else name


def xml_escape(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def csharp_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def ref_name(ref: str) -> str:
    return ref.rsplit("/", 1)[-1]


def alias_as(raw_name: str, identifier: str) -> str:
    if identifier.lstrip("@") == raw_name:
        return ""
    return f'[AliasAs("{csharp_string(raw_name)}")] '


@dataclass
class Parameter:
    declaration: str
    required: bool


@dataclass
class Operation:
    path: str
    method: str
    name: str
    summary: Optional[str]
    tag: str
    deprecated: bool
    return_type: Optional[str]
    accept: List[str]
    multipart: bool
    parameters: List[Parameter] = field(default_factory=list)


class CSharpEmitter:
    """Render one C# source file for a document and a GenerationConfig."""

    def __init__(self, config: GenerationConfig, document: Dict[str, Any]) -> None:
        self.config = config
        self.document = document
        self.swagger2 = detect_spec_kind(document) == "swagger2"
        self.definitions = schema_definitions(document)
        self.accessibility = (
            "internal" if config.type_accessibility is TypeAccessibility.INTERNAL else "public"
        )
        self._path_filters = [re.compile(pattern) for pattern in config.include_path_matches]

    # -- types -----------------------------------------------------------

    def _class_like(self, schema: Dict[str, Any]) -> bool:
        if "enum" in schema or "allOf" in schema:
            return True
        return schema.get("type", "object") == "object" and "additionalProperties" not in schema

    def type_for(self, schema: Any, seen: Optional[Set[str]] = None) -> str:
        if not isinstance(schema, dict):
            return "object"
        ref = schema.get("$ref")
        if isinstance(ref, str):
            name = ref_name(ref)
            target = self.definitions.get(name)
            seen = set(seen or ())
            if isinstance(target, dict) and not self._class_like(target) and name not in seen:
                seen.add(name)
                return self.type_for(target, seen)
            return pascal_case(name)
        all_of = schema.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1:
            return self.type_for(all_of[0], seen)
        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            non_null = [item for item in schema_type if item != "null"]
            schema_type = non_null[0] if non_null else None
        fmt = schema.get("format")
        if schema_type == "integer":
            return "long" if fmt == "int64" else "int"
        if schema_type == "number":
            return {"float": "float", "decimal": "decimal"}.get(fmt, "double")
        if schema_type == "boolean":
            return "bool"
        if schema_type == "string":
            if fmt in ("date-time", "date"):
                return "DateTimeOffset"
            if fmt == "uuid":
                return "Guid"
            if fmt in ("binary", "byte"):
                return "byte[]"
            return "string"
        if schema_type == "array":
            return f"ICollection<{self.type_for(schema.get('items'), seen)}>"
        additional = schema.get("additionalProperties")
        if isinstance(additional, dict):
            return f"IDictionary<string, {self.type_for(additional, seen)}>"
        return "object"

    @staticmethod
    def nullable(type_name: str) -> str:
        return type_name if type_name.endswith("?") else f"{type_name}?"

    # -- operations ------------------------------------------------------

    def _included(self, path: str, operation: Dict[str, Any]) -> bool:
        if operation.get("deprecated") and not self.config.generate_deprecated_operations:
            return False
        if self._path_filters and not any(p.search(path) for p in self._path_filters):
            return False
        if self.config.include_tags:
            tags = operation.get("tags") or []
            if not any(tag in self.config.include_tags for tag in tags):
                return False
        return True

    def _base_name(self, path: str, method: str, operation: Dict[str, Any]) -> str:
        operation_id = operation.get("operationId")
        if isinstance(operation_id, str) and operation_id.strip():
            return pascal_case(operation_id)
        return pascal_case(f"{method} {path}")

    def _success_response(self, operation: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        responses = operation.get("responses")
        if not isinstance(responses, dict):
            return None
        for code in sorted(responses):
            candidate = self._deref(responses[code])
            if code.startswith("2") and isinstance(candidate, dict):
                return candidate
        default = self._deref(responses.get("default"))
        return default if isinstance(default, dict) else None

    def _response_schema(
        self, operation: Dict[str, Any], response: Optional[Dict[str, Any]]
    ) -> Tuple[Optional[Any], List[str]]:
        if response is None:
            return None, []
        if self.swagger2:
            produces = operation.get("produces") or self.document.get("produces") or []
            return response.get("schema"), [str(item) for item in produces]
        content = response.get("content")
        if not isinstance(content, dict) or not content:
            return None, []
        media_types = list(content)
        preferred = next((m for m in media_types if "json" in m), media_types[0])
        media = content.get(preferred)
        schema = media.get("schema") if isinstance(media, dict) else None
        return schema, media_types

    def _return_type(self, schema: Optional[Any]) -> Optional[str]:
        if schema is None:
            return None
        return self.type_for(schema)

    def _parameter_list(
        self, path_item: Dict[str, Any], operation: Dict[str, Any]
    ) -> Tuple[List[Parameter], bool]:
        merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for source in (path_item.get("parameters"), operation.get("parameters")):
            for raw in source or []:
                parameter = self._deref(raw)
                if isinstance(parameter, dict) and "name" in parameter:
                    merged[(str(parameter["name"]), str(parameter.get("in")))] = parameter

        parameters: List[Parameter] = []
        multipart = False
        used: Set[str] = set()

        def unique(name: str) -> str:
            candidate = name
            index = 2
            while candidate in used:
                candidate = f"{name}{index}"
                index += 1
            used.add(candidate)
            return candidate

        for (raw_name, location), parameter in merged.items():
            schema = parameter.get("schema") if not self.swagger2 else parameter
            if location == "body":
                parameters.append(
                    Parameter(f"[Body] {self.type_for(parameter.get('schema'))} {unique('body')}", True)
                )
                continue
            if location == "formData":
                multipart = True
                type_name = "StreamPart" if parameter.get("type") == "file" else self.type_for(schema)
                identifier = unique(parameter_identifier(raw_name))
                alias = alias_as(raw_name, identifier)
                parameters.append(
                    Parameter(f"{alias}{type_name} {identifier}", bool(parameter.get("required")))
                )
                continue
            if location == "header" and not self.config.generate_operation_headers:
                continue
            if location not in ("path", "query", "header"):
                continue
            type_name = self.type_for(schema)
            required = bool(parameter.get("required")) or location == "path"
            if not required:
                type_name = self.nullable(type_name)
            identifier = unique(parameter_identifier(raw_name))
            if location == "path":
                alias = alias_as(raw_name, identifier)
                declaration = f"{alias}{type_name} {identifier}"
            elif location == "header":
                declaration = f'[Header("{csharp_string(raw_name)}")] {type_name} {identifier}'
            else:
                query = "[Query]"
                if (
                    self.config.use_iso_date_format
                    and isinstance(schema, dict)
                    and schema.get("format") == "date"
                ):
                    query = '[Query(Format = "yyyy-MM-dd")]'
                alias = alias_as(raw_name, identifier)
                declaration = f"{query} {alias}{type_name} {identifier}"
            parameters.append(Parameter(declaration, required))

        body = self._deref(operation.get("requestBody"))
        if not self.swagger2 and isinstance(body, dict):
            content = body.get("content") if isinstance(body.get("content"), dict) else {}
            if "multipart/form-data" in content:
                multipart = True
                media = content["multipart/form-data"] or {}
                form_schema = self._deref(media.get("schema")) or {}
                required_props = set(form_schema.get("required") or [])
                for prop_name, prop_schema in (form_schema.get("properties") or {}).items():
                    is_file = isinstance(prop_schema, dict) and prop_schema.get("format") == "binary"
                    type_name = "StreamPart" if is_file else self.type_for(prop_schema)
                    identifier = unique(parameter_identifier(prop_name))
                    alias = alias_as(prop_name, identifier)
                    parameters.append(
                        Parameter(f"{alias}{type_name} {identifier}", prop_name in required_props)
                    )
            elif content:
                media_type = next((m for m in content if "json" in m), next(iter(content)))
                media = content.get(media_type) or {}
                type_name = self.type_for(media.get("schema"))
                parameters.append(
                    Parameter(f"[Body] {type_name} {unique('body')}", bool(body.get("required", True)))
                )

        ordered = [p for p in parameters if p.required] + [p for p in parameters if not p.required]
        return ordered, multipart

    def _deref(self, value: Any) -> Any:
        seen: Set[str] = set()
        while isinstance(value, dict) and isinstance(value.get("$ref"), str):
            ref = value["$ref"]
            if ref in seen or not ref.startswith("#/"):
                return value
            seen.add(ref)
            node: Any = self.document
            for part in ref[2:].split("/"):
                part = part.replace("~1", "/").replace("~0", "~")
                if not isinstance(node, dict) or part not in node:
                    return value
                node = node[part]
            value = node
        return value

    def operations(self) -> List[Operation]:
        result: List[Operation] = []
        for path, method, path_item, operation in iter_operations(self.document):
            if not self._included(path, operation):
                continue
            response = self._success_response(operation)
            schema, media_types = self._response_schema(operation, response)
            parameters, multipart = self._parameter_list(path_item, operation)
            tags = operation.get("tags") or []
            summary = operation.get("summary") or operation.get("description")
            result.append(
                Operation(
                    path=path,
                    method=method,
                    name=self._base_name(path, method, operation),
                    summary=str(summary).strip() if summary else None,
                    tag=str(tags[0]) if tags else DEFAULT_TAG,
                    deprecated=bool(operation.get("deprecated")),
                    return_type=self._return_type(schema),
                    accept=media_types,
                    multipart=multipart,
                    parameters=parameters,
                )
            )
        return result

    def method_name(self, operation: Operation) -> str:
        template = self.config.operation_name_template
        if self.config.multiple_interfaces is MultipleInterfaces.BY_ENDPOINT:
            if template:
                return template.replace(OPERATION_NAME_PLACEHOLDER, ENDPOINT_METHOD_NAME)
            return ENDPOINT_METHOD_NAME
        if template:
            return template.replace(OPERATION_NAME_PLACEHOLDER, operation.name)
        return operation.name

    def _task_type(self, operation: Operation) -> str:
        if self.config.return_iapi_response:
            if operation.return_type:
                return f"Task<IApiResponse<{operation.return_type}>>"
            return "Task<IApiResponse>"
        if operation.return_type:
            return f"Task<{operation.return_type}>"
        return "Task"

    def render_method(self, operation: Operation, name: str) -> List[str]:
        lines: List[str] = []
        if operation.summary:
            lines.append("/// <summary>")
            for line in operation.summary.splitlines():
                lines.append(f"/// {xml_escape(line.strip())}".rstrip())
            lines.append("/// </summary>")
        if operation.deprecated:
            lines.append("[System.Obsolete]")
        if operation.multipart:
            lines.append("[Multipart]")
        if self.config.add_accept_headers and operation.accept:
            lines.append(f'[Headers("Accept: {csharp_string(", ".join(operation.accept))}")]')
        verb = operation.method.capitalize()
        lines.append(f'[{verb}("{csharp_string(operation.path)}")]')
        declarations = []
        for parameter in operation.parameters:
            declaration = parameter.declaration
            if not parameter.required:
                declaration = f"{declaration} = default"
            declarations.append(declaration)
        if self.config.use_cancellation_tokens:
            declarations.append("CancellationToken cancellationToken = default")
        lines.append(f"{self._task_type(operation)} {name}({', '.join(declarations)});")
        return lines

    # -- interfaces ------------------------------------------------------

    def interface_name(self) -> str:
        naming = self.config.naming
        title = None
        info = self.document.get("info")
        if naming.use_openapi_title and isinstance(info, dict):
            title = info.get("title")
        if isinstance(title, str) and title.strip():
            return f"I{pascal_case(title)}"
        return f"I{pascal_case(naming.interface_name)}"

    def _generated_code_attribute(self) -> str:
        return f'[System.CodeDom.Compiler.GeneratedCode("{PACKAGE_NAME}", "{cli_version()}")]'

    def _interface_block(self, name: str, members: Sequence[List[str]]) -> List[str]:
        lines = [
            self._generated_code_attribute(),
            f"{self.accessibility} partial interface {name}",
            "{",
        ]
        for index, member in enumerate(members):
            if index:
                lines.append("")
            lines.extend(f"{INDENT}{line}" for line in member)
        lines.append("}")
        return lines

    def render_interfaces(self) -> List[List[str]]:
        operations = self.operations()
        mode = self.config.multiple_interfaces
        blocks: List[List[str]] = []
        if mode is MultipleInterfaces.BY_ENDPOINT:
            used: Set[str] = set()
            for operation in operations:
                name = f"I{operation.name}Endpoint"
                candidate, index = name, 2
                while candidate in used:
                    candidate = f"{name}{index}"
                    index += 1
                used.add(candidate)
                member = self.render_method(operation, self.method_name(operation))
                blocks.append(self._interface_block(candidate, [member]))
            return blocks

        groups: Dict[str, List[Operation]] = {}
        if mode is MultipleInterfaces.BY_TAG:
            for operation in operations:
                groups.setdefault(f"I{pascal_case(operation.tag)}Api", []).append(operation)
        else:
            groups[self.interface_name()] = operations

        for interface, members in groups.items():
            used_names: Set[str] = set()
            rendered: List[List[str]] = []
            for operation in members:
                name = self.method_name(operation)
                candidate, index = name, 2
                while candidate in used_names:
                    candidate = f"{name}{index}"
                    index += 1
                used_names.add(candidate)
                rendered.append(self.render_method(operation, candidate))
            blocks.append(self._interface_block(interface, rendered))
        return blocks

    # -- contracts -------------------------------------------------------

    def _enum_block(self, name: str, schema: Dict[str, Any]) -> List[str]:
        lines = [
            self._generated_code_attribute(),
            "[JsonConverter(typeof(JsonStringEnumConverter))]",
            f"{self.accessibility} enum {name}",
            "{",
        ]
        used: Set[str] = set()
        values = [value for value in schema.get("enum") or [] if value is not None]
        for index, value in enumerate(values):
            member = pascal_case(str(value))
            candidate, counter = member, 2
            while candidate in used:
                candidate = f"{member}{counter}"
                counter += 1
            used.add(candidate)
            suffix = "," if index < len(values) - 1 else ""
            lines.append(f'{INDENT}[EnumMember(Value = "{csharp_string(str(value))}")]')
            lines.append(f"{INDENT}{candidate}{suffix}")
        lines.append("}")
        return lines

    def _class_block(self, name: str, schema: Dict[str, Any]) -> List[str]:
        base: Optional[str] = None
        properties: Dict[str, Any] = {}
        required: Set[str] = set(schema.get("required") or [])
        for part in schema.get("allOf") or []:
            if not isinstance(part, dict):
                continue
            if isinstance(part.get("$ref"), str) and base is None:
                base = pascal_case(ref_name(part["$ref"]))
                continue
            properties.update(part.get("properties") or {})
            required.update(part.get("required") or [])
        properties.update(schema.get("properties") or {})

        header = f"{self.accessibility} partial class {name}"
        if base:
            header = f"{header} : {base}"
        lines = [self._generated_code_attribute(), header, "{"]
        for index, (prop_name, prop_schema) in enumerate(properties.items()):
            if index:
                lines.append("")
            type_name = self.type_for(prop_schema)
            if prop_name not in required:
                type_name = self.nullable(type_name)
            member = pascal_case(prop_name)
            if member == name:
                member = f"{member}Value"
            description = prop_schema.get("description") if isinstance(prop_schema, dict) else None
            if description:
                lines.append(f"{INDENT}/// <summary>")
                for line in str(description).splitlines():
                    lines.append(f"{INDENT}/// {xml_escape(line.strip())}".rstrip())
                lines.append(f"{INDENT}/// </summary>")
            lines.append(f'{INDENT}[JsonPropertyName("{csharp_string(prop_name)}")]')
            lines.append(f"{INDENT}public {type_name} {member} {{ get; set; }}")
        lines.append("}")
        return lines

    def render_contracts(self) -> List[List[str]]:
        blocks: List[List[str]] = []
        for raw_name, schema in self.definitions.items():
            if not isinstance(schema, dict) or not self._class_like(schema):
                continue
            name = pascal_case(raw_name)
            if "enum" in schema:
                blocks.append(self._enum_block(name, schema))
            else:
                blocks.append(self._class_block(name, schema))
        return blocks

    # -- file ------------------------------------------------------------

    def usings(self) -> List[str]:
        namespaces = ["Refit", "System", "System.Collections.Generic"]
        if self.config.generate_contracts:
            namespaces.extend(["System.Runtime.Serialization", "System.Text.Json.Serialization"])
        if self.config.use_cancellation_tokens:
            namespaces.append("System.Threading")
        namespaces.append("System.Threading.Tasks")
        for extra in self.config.additional_namespaces:
            if extra not in namespaces:
                namespaces.append(extra)
        return [f"using {namespace};" for namespace in namespaces]

    def render(self) -> str:
        lines: List[str] = []
        if self.config.add_auto_generated_header:
            lines.extend(
                [
                    "// <auto-generated>",
                    f"//     This code was generated by {PACKAGE_NAME} v{cli_version()}",
                    "// </auto-generated>",
                    "",
                ]
            )
        lines.extend(self.usings())
        lines.extend(["", "#nullable enable annotations", "", f"namespace {self.config.namespace}", "{"])
        blocks = self.render_interfaces()
        if self.config.generate_contracts:
            blocks.extend(self.render_contracts())
        for index, block in enumerate(blocks):
            if index:
                lines.append("")
            lines.extend(f"{INDENT}{line}" if line else "" for line in block)
        lines.append("}")
        return "\n".join(lines) + "\n"
