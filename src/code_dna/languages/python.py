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
Python feature extractor using tree-sitter.
"""

from typing import List, Optional

from .base import BaseExtractor, node_text


class PythonExtractor(BaseExtractor):
    """AST-aware Python extractor."""

    family = "python"

    CONTROL_FLOW_TYPES = frozenset({
        "if_statement",
        "elif_clause",
        "for_statement",
        "while_statement",
        "match_statement",
    })

    FUNCTION_TYPES = frozenset({"function_definition", "lambda"})

    LEAF_TYPES = frozenset({"string", "concatenated_string", "integer", "float"})

    TAG_ALIASES = {"true": "boolean", "false": "boolean"}

    # Parameter list markers that are not parameters themselves
    _SEPARATORS = frozenset({"keyword_separator", "positional_separator"})

    _SCOPE_TYPES = frozenset({"function_definition", "lambda", "class_definition"})

    def _load_language(self):
        import tree_sitter_python as tspython
        from tree_sitter import Language

        return Language(tspython.language())

    def _function_kind(self, node) -> str:
        if node.type == "lambda":
            return "lambda"
        if not self._in_class_body(node):
            return "function"
        name = self._function_name(node)
        if name == "__init__":
            return "constructor"
        return "method"

    def _function_name(self, node) -> Optional[str]:
        name = node.child_by_field_name("name")
        if name is not None:
            return node_text(name)

        # handler = lambda event: ...
        parent = node.parent
        if parent is not None and parent.type == "assignment":
            left = parent.child_by_field_name("left")
            if left is not None and left.type == "identifier":
                return node_text(left)
        return None

    def _param_count(self, node) -> int:
        params = node.child_by_field_name("parameters")
        if params is None:
            return 0
        return len([
            c for c in params.named_children
            if c.type not in self.SKIP_TYPES and c.type not in self._SEPARATORS
        ])

    def _is_generator(self, node) -> bool:
        body = node.child_by_field_name("body")
        if body is None or node.type == "lambda":
            return False

        stack = list(body.children)
        while stack:
            child = stack.pop()
            if child.type == "yield":
                return True
            if child.type in self._SCOPE_TYPES:
                continue
            stack.extend(child.children)
        return False

    def _in_class_body(self, node) -> bool:
        parent = node.parent
        if parent is not None and parent.type == "decorated_definition":
            parent = parent.parent
        return (
            parent is not None
            and parent.type == "block"
            and parent.parent is not None
            and parent.parent.type == "class_definition"
        )

    def _dependencies(self, node) -> List[str]:
        node_type = node.type

        if node_type == "import_statement":
            deps = []
            for child in node.named_children:
                if child.type == "dotted_name":
                    deps.append(node_text(child))
                elif child.type == "aliased_import":
                    name = child.child_by_field_name("name")
                    if name is not None:
                        deps.append(node_text(name))
            return deps

        if node_type == "import_from_statement":
            module = node.child_by_field_name("module_name")
            if module is not None:
                return [node_text(module)]
            return []

        if node_type == "future_import_statement":
            return ["__future__"]

        return []
