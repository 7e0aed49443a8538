# Code DNA - Structural fingerprinting for duplicate code detection
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
JavaScript/TypeScript feature extractor using tree-sitter.

JavaScript, TypeScript and TSX share one grammar family: TypeScript's
grammar extends JavaScript's and keeps its node kinds, so fingerprints of
.js and .ts files are comparable.
"""

from typing import List, Optional

from .base import BaseExtractor, node_text


DIALECTS = ("javascript", "typescript", "tsx")


class JavaScriptExtractor(BaseExtractor):
    """AST-aware JavaScript/TypeScript extractor."""

    family = "javascript"

    CONTROL_FLOW_TYPES = frozenset({
        "if_statement",
        "for_statement",
        "for_in_statement",
        "while_statement",
        "do_statement",
        "switch_statement",
    })

    FUNCTION_TYPES = frozenset({
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    })

    LEAF_TYPES = frozenset({"string", "number", "regex"})

    SKIP_TYPES = frozenset({
        "comment",
        "html_comment",
        "hash_bang_line",
        "string_fragment",
        "escape_sequence",
        "jsx_text",
    })

    TAG_ALIASES = {"true": "boolean", "false": "boolean"}

    _GENERATOR_TYPES = frozenset({"generator_function_declaration", "generator_function"})

    def __init__(self, dialect: str = "javascript"):
        super().__init__()
        if dialect not in DIALECTS:
            raise ValueError(f"Unknown JavaScript dialect: {dialect}")
        self.dialect = dialect

    def _load_language(self):
        from tree_sitter import Language

        if self.dialect == "javascript":
            import tree_sitter_javascript as tsjavascript
            return Language(tsjavascript.language())

        import tree_sitter_typescript as tstypescript
        if self.dialect == "tsx":
            return Language(tstypescript.language_tsx())
        return Language(tstypescript.language_typescript())

    def _function_kind(self, node) -> str:
        node_type = node.type
        if node_type == "arrow_function":
            return "arrow"
        if node_type in self._GENERATOR_TYPES:
            return "generator"
        if node_type in ("function_expression", "function"):
            return "expression"
        if node_type == "method_definition":
            child_types = {c.type for c in node.children}
            if "get" in child_types:
                return "getter"
            if "set" in child_types:
                return "setter"
            if self._function_name(node) == "constructor":
                return "constructor"
            return "method"
        return "function"

    def _function_name(self, node) -> Optional[str]:
        name = node.child_by_field_name("name")
        if name is not None:
            return node_text(name)

        # Anonymous functions take the name they are bound to
        parent = node.parent
        if parent is None:
            return None
        if parent.type == "variable_declarator":
            target = parent.child_by_field_name("name")
            if target is not None and target.type == "identifier":
                return node_text(target)
        elif parent.type == "pair":
            key = parent.child_by_field_name("key")
            if key is not None:
                return node_text(key).strip("'\"`")
        elif parent.type in ("field_definition", "public_field_definition"):
            prop = parent.child_by_field_name("property") or parent.child_by_field_name("name")
            if prop is not None:
                return node_text(prop)
        return None

    def _param_count(self, node) -> int:
        # Arrow functions with a single bare parameter: x => x + 1
        single = node.child_by_field_name("parameter")
        if single is not None:
            return 1
        return super()._param_count(node)

    def _is_generator(self, node) -> bool:
        if node.type in self._GENERATOR_TYPES:
            return True
        if node.type == "method_definition":
            return any(c.type == "*" for c in node.children)
        return False

    def _dependencies(self, node) -> List[str]:
        node_type = node.type

        # import x from "mod"; export { y } from "mod"
        if node_type in ("import_statement", "export_statement"):
            source = node.child_by_field_name("source")
            if source is not None and source.type == "string":
                return [_string_value(source)]
            return []

        # require("mod") and dynamic import("mod")
        if node_type == "call_expression":
            callee = node.child_by_field_name("function")
            if callee is None:
                return []
            is_require = callee.type == "identifier" and node_text(callee) == "require"
            if not (is_require or callee.type == "import"):
                return []
            args = node.child_by_field_name("arguments")
            if args is None:
                return []
            named = [c for c in args.named_children if c.type not in self.SKIP_TYPES]
            if named and named[0].type == "string":
                return [_string_value(named[0])]

        return []


def _string_value(node) -> str:
    """Value of a string literal node, without its quotes."""
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text
