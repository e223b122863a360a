"""Comment and enum-constant lookup collaborators."""

from __future__ import annotations

import ast
import enum
import importlib
import inspect
from typing import Any, Mapping, Protocol, runtime_checkable

from typeschema.errors import EnumLookupError

__all__ = [
    "CommentLookup",
    "EnumConstantLookup",
    "DocstringCommentLookup",
    "EnumMemberLookup",
    "is_deprecated",
]

DEPRECATION_MARKER = "Deprecated:"


@runtime_checkable
class CommentLookup(Protocol):
    """Resolves the comments of one namespace.

    Keys are ``"<namespace>.<Type>"`` for type comments and
    ``"<namespace>.<Type>.<Field>"`` for field comments.
    """

    def get(self, namespace: str) -> Mapping[str, str]: ...


@runtime_checkable
class EnumConstantLookup(Protocol):
    """Resolves the permitted values of a scalar-derived type, in declaration order."""

    def get(self, py_type: Any) -> list[Any]: ...


def is_deprecated(comment: str) -> bool:
    """Whether a paragraph (line) of *comment* begins with ``Deprecated:``."""
    return any(line.strip().startswith(DEPRECATION_MARKER) for line in comment.split("\n"))


class DocstringCommentLookup:
    """Reads class docstrings and attribute docstrings from module source.

    An attribute docstring is a string literal statement directly following
    an annotated (or plain) class attribute assignment::

        class User:
            \"\"\"A registered user.\"\"\"

            name: str
            \"\"\"Display name.\"\"\"
    """

    def get(self, namespace: str) -> dict[str, str]:
        module = importlib.import_module(namespace)
        source = inspect.getsource(module)
        tree = ast.parse(source)
        comments: dict[str, str] = {}
        self._collect(tree.body, namespace, comments)
        return comments

    def _collect(self, body: list[ast.stmt], namespace: str, comments: dict[str, str]) -> None:
        for node in body:
            if not isinstance(node, ast.ClassDef):
                continue
            doc = ast.get_docstring(node)
            if doc:
                comments[f"{namespace}.{node.name}"] = doc
            for stmt, following in zip(node.body, node.body[1:]):
                target = _assigned_name(stmt)
                if target is None:
                    continue
                text = _string_literal(following)
                if text is not None:
                    comments[f"{namespace}.{node.name}.{target}"] = text
            self._collect(node.body, namespace, comments)


def _assigned_name(stmt: ast.stmt) -> str | None:
    if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
        return stmt.target.id
    if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
        return stmt.targets[0].id
    return None


def _string_literal(stmt: ast.stmt) -> str | None:
    if isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Constant) and isinstance(stmt.value.value, str):
        return inspect.cleandoc(stmt.value.value)
    return None


class EnumMemberLookup:
    """Discovers the permitted values of an :class:`enum.Enum` subclass."""

    def get(self, py_type: Any) -> list[Any]:
        if not (isinstance(py_type, type) and issubclass(py_type, enum.Enum)):
            raise EnumLookupError(
                type_name=getattr(py_type, "__name__", repr(py_type)),
                reason="not an enum.Enum subclass",
            )
        return [member.value for member in py_type]
