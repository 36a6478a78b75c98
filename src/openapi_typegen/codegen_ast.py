"""AST-based Python code generation for emitted type definitions."""

from __future__ import annotations

import ast
from collections.abc import Iterable
from typing import Optional

from .model_types import AliasDef, Definition, FieldSpec, ProductDef, SumDef, VariantSpec

_TYPING_IMPORT_ORDER: tuple[str, ...] = (
    "Annotated",
    "Optional",
    "Union",
)

_PYDANTIC_IMPORT_ORDER: tuple[str, ...] = (
    "BaseModel",
    "Field",
    "NonNegativeInt",
    "RootModel",
)

_RUNTIME_IMPORT_ORDER: tuple[str, ...] = (
    "ExternalTag",
    "Flatten",
    "FlattenedModel",
    "TimestampSeconds",
)

RUNTIME_MODULE = "openapi_typegen.runtime"


def render_module(definitions: Iterable[Definition], *, source_label: str) -> str:
    """Render definitions as one Python module using AST.

    Args:
        definitions (Iterable[Definition]): Emitted definitions in emission order.
        source_label (str): Document location mentioned in the module docstring.

    Returns:
        str: Generated Python source code.
    """
    ordered = tuple(definitions)
    statements: list[ast.stmt] = []
    rebuild_names: list[str] = []
    for definition in ordered:
        statements.extend(_definition_to_ast(definition))
        if isinstance(definition, ProductDef) or (
            isinstance(definition, SumDef) and not definition.is_plain_enum
        ):
            rebuild_names.append(definition.name)

    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=f"Types generated from {source_label}; do not edit.")),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(statements))
    body.extend(statements)
    body.extend(_rebuild_call(name) for name in rebuild_names)

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def annotation_for(spec: FieldSpec) -> str:
    """Return the annotation source for one field."""
    base = spec.codec.value if spec.codec is not None else spec.type_name
    if spec.flatten:
        base = f"Annotated[{base}, Flatten()]"
    if spec.nullable:
        return f"Optional[{base}]"
    return base


def _definition_to_ast(definition: Definition) -> list[ast.stmt]:
    if isinstance(definition, AliasDef):
        return _alias_to_ast(definition)
    if isinstance(definition, SumDef):
        return _sum_to_ast(definition)
    return [_product_to_ast(definition)]


def _alias_to_ast(alias: AliasDef) -> list[ast.stmt]:
    statements: list[ast.stmt] = [
        ast.TypeAlias(
            name=ast.Name(id=alias.name, ctx=ast.Store()),
            type_params=[],
            value=_expr(alias.target),
        )
    ]
    docstring = _docstring(alias.docs)
    if docstring is not None:
        statements.append(ast.Expr(value=ast.Constant(value=docstring)))
    return statements


def _sum_to_ast(sum_def: SumDef) -> list[ast.stmt]:
    if sum_def.is_plain_enum:
        return [_enum_to_ast(sum_def.name, sum_def.variants, sum_def.docs)]

    statements: list[ast.stmt] = []
    members: list[str] = []
    if sum_def.tag_enum_name is not None:
        statements.append(
            _enum_to_ast(
                sum_def.tag_enum_name,
                sum_def.bare_variants,
                (f"Bare tags of {sum_def.name}.",),
            )
        )
        members.append(sum_def.tag_enum_name)
    for variant in sum_def.variants:
        if variant.payload is not None:
            members.append(f"Annotated[{variant.payload}, ExternalTag({variant.tag!r})]")

    root_annotation = members[0] if len(members) == 1 else f"Union[{', '.join(members)}]"
    class_body = _docstring_body(sum_def.docs)
    class_body.append(
        ast.AnnAssign(
            target=ast.Name(id="root", ctx=ast.Store()),
            annotation=_expr(root_annotation),
            value=None,
            simple=1,
        )
    )
    statements.append(_class_def(sum_def.name, "RootModel", class_body))
    return statements


def _enum_to_ast(name: str, variants: Iterable[VariantSpec], docs: tuple[str, ...]) -> ast.ClassDef:
    class_body = _docstring_body(docs)
    for variant in variants:
        class_body.append(
            ast.Assign(
                targets=[ast.Name(id=variant.identifier, ctx=ast.Store())],
                value=ast.Constant(value=variant.tag),
            )
        )
    return _class_def(name, "StrEnum", class_body)


def _product_to_ast(product: ProductDef) -> ast.ClassDef:
    class_body = _docstring_body(product.docs)
    for spec in product.fields:
        class_body.append(_field_to_ast(spec))
    base = "FlattenedModel" if product.flattened else "BaseModel"
    return _class_def(product.name, base, class_body)


def _field_to_ast(spec: FieldSpec) -> ast.AnnAssign:
    annotation = _expr(annotation_for(spec))
    if spec.flatten:
        return ast.AnnAssign(
            target=ast.Name(id=spec.identifier, ctx=ast.Store()),
            annotation=annotation,
            value=None,
            simple=1,
        )

    keywords: list[ast.keyword] = []
    if spec.wire_name != spec.identifier:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=spec.wire_name)))
    if spec.title:
        keywords.append(ast.keyword(arg="title", value=ast.Constant(value=spec.title)))
    if spec.description:
        keywords.append(ast.keyword(arg="description", value=ast.Constant(value=spec.description)))

    default_value = ast.Constant(value=None if spec.nullable else Ellipsis)
    return ast.AnnAssign(
        target=ast.Name(id=spec.identifier, ctx=ast.Store()),
        annotation=annotation,
        value=ast.Call(
            func=ast.Name(id="Field", ctx=ast.Load()),
            args=[default_value],
            keywords=keywords,
        ),
        simple=1,
    )


def _class_def(name: str, base: str, class_body: list[ast.stmt]) -> ast.ClassDef:
    if not class_body:
        class_body.append(ast.Pass())
    return ast.ClassDef(
        name=name,
        bases=[ast.Name(id=base, ctx=ast.Load())],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _rebuild_call(name: str) -> ast.stmt:
    return ast.Expr(
        value=ast.Call(
            func=ast.Attribute(
                value=ast.Name(id=name, ctx=ast.Load()),
                attr="model_rebuild",
                ctx=ast.Load(),
            ),
            args=[],
            keywords=[],
        )
    )


def _docstring(docs: tuple[str, ...]) -> Optional[str]:
    text = "\n\n".join(doc.strip() for doc in docs if doc.strip())
    return text or None


def _docstring_body(docs: tuple[str, ...]) -> list[ast.stmt]:
    docstring = _docstring(docs)
    if docstring is None:
        return []
    return [ast.Expr(value=ast.Constant(value=docstring))]


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _build_imports(statements: list[ast.stmt]) -> list[ast.stmt]:
    used_names = _collect_loaded_names(statements)

    imports: list[ast.stmt] = []
    if "StrEnum" in used_names:
        imports.append(_import_from("enum", ["StrEnum"]))
    typing_imports = [name for name in _TYPING_IMPORT_ORDER if name in used_names]
    if typing_imports:
        imports.append(_import_from("typing", typing_imports))
    pydantic_imports = [name for name in _PYDANTIC_IMPORT_ORDER if name in used_names]
    if pydantic_imports:
        imports.append(_import_from("pydantic", pydantic_imports))
    runtime_imports = [name for name in _RUNTIME_IMPORT_ORDER if name in used_names]
    if runtime_imports:
        imports.append(_import_from(RUNTIME_MODULE, runtime_imports))
    return imports


def _import_from(module: str, names: list[str]) -> ast.ImportFrom:
    return ast.ImportFrom(
        module=module,
        names=[ast.alias(name=name) for name in names],
        level=0,
    )


def _collect_loaded_names(statements: list[ast.stmt]) -> set[str]:
    loaded_names: set[str] = set()
    for statement in statements:
        for node in ast.walk(statement):
            if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
                loaded_names.add(node.id)
    return loaded_names
