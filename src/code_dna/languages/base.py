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
Base feature extractor interface.

A feature extractor parses source text with a tree-sitter grammar and walks
the resulting tree once, depth-first, collecting the structural features
that fingerprints are built from.
"""

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional

from ..errors import ParseError
from ..models import FeatureSet, FunctionInfo


class BaseExtractor(ABC):
    """Abstract base class for grammar-specific feature extractors."""

    # Grammar family reported on fingerprints
    family: str = ""

    # Node kinds that add one point of complexity each
    CONTROL_FLOW_TYPES: FrozenSet[str] = frozenset()

    # Node kinds that declare a function, method or lambda (two points each)
    FUNCTION_TYPES: FrozenSet[str] = frozenset()

    # Literal nodes: recorded, but their children are not visited
    LEAF_TYPES: FrozenSet[str] = frozenset()

    # Nodes that carry no structure at all (comments, literal text)
    SKIP_TYPES: FrozenSet[str] = frozenset({"comment"})

    # Node kinds that differ only by literal value
    TAG_ALIASES: Dict[str, str] = {}

    def __init__(self):
        self._parser = None

    @abstractmethod
    def _load_language(self):
        """Return the tree_sitter.Language for this grammar."""

    @abstractmethod
    def _function_name(self, node) -> Optional[str]:
        """Name of a function node, or None if it is anonymous."""

    @abstractmethod
    def _function_kind(self, node) -> str:
        """Kind of a function node ("function", "method", ...)."""

    def _dependencies(self, node) -> List[str]:
        """Import targets introduced by *node* (empty for most nodes)."""
        return []

    def _ensure_parser(self):
        """Lazy-load tree-sitter parser."""
        if self._parser is not None:
            return

        from tree_sitter import Parser

        self._parser = Parser(self._load_language())

    def parse_tree(self, source: str, file_id: str):
        """Parse *source*, raising ParseError if the tree has syntax errors."""
        self._ensure_parser()

        try:
            data = source.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParseError(file_id, f"source is not valid UTF-8 text at offset {e.start}") from e

        tree = self._parser.parse(data)
        root = tree.root_node

        if root.has_error:
            bad = _first_error_node(root)
            if bad is None:
                raise ParseError(file_id, "syntax error")
            row, column = bad.start_point[0] + 1, bad.start_point[1] + 1
            what = f"missing {bad.type}" if bad.is_missing else "unexpected syntax"
            raise ParseError(file_id, f"{what} at line {row}, column {column}")

        return tree

    def extract(self, source: str, file_id: str) -> FeatureSet:
        """
        Parse source text and extract its structural features.

        Args:
            source: Full file content
            file_id: Identifier used in error messages

        Returns:
            FeatureSet for the file

        Raises:
            ParseError: if the source has syntax errors
        """
        tree = self.parse_tree(source, file_id)

        node_types: List[str] = []
        control_flow: List[str] = []
        functions: List[FunctionInfo] = []
        dependencies: Dict[str, None] = {}
        complexity = 0
        max_depth = 0

        stack = [(tree.root_node, 1)]
        while stack:
            node, depth = stack.pop()
            node_type = node.type

            tag = self.TAG_ALIASES.get(node_type, node_type)
            node_types.append(tag)
            if depth > max_depth:
                max_depth = depth

            if node_type in self.CONTROL_FLOW_TYPES:
                control_flow.append(tag)
                complexity += 1

            if node_type in self.FUNCTION_TYPES:
                functions.append(self._describe_function(node, len(functions)))
                complexity += 2

            for dep in self._dependencies(node):
                dependencies.setdefault(dep, None)

            if node_type in self.LEAF_TYPES:
                continue

            children = [
                c for c in node.children
                if c.is_named and c.type not in self.SKIP_TYPES
            ]
            for child in reversed(children):
                stack.append((child, depth + 1))

        return FeatureSet(
            node_types=tuple(node_types),
            control_flow=tuple(control_flow),
            complexity=complexity,
            depth=max_depth,
            functions=tuple(functions),
            dependencies=tuple(dependencies),
        )

    def _describe_function(self, node, index: int) -> FunctionInfo:
        kind = self._function_kind(node)
        name = self._function_name(node) or f"{kind}_{index}"

        return FunctionInfo(
            name=name,
            kind=kind,
            param_count=self._param_count(node),
            is_async=self._is_async(node),
            is_generator=self._is_generator(node),
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
        )

    def _param_count(self, node) -> int:
        params = node.child_by_field_name("parameters")
        if params is None:
            return 0
        return len([c for c in params.named_children if c.type not in self.SKIP_TYPES])

    def _is_async(self, node) -> bool:
        return any(child.type == "async" for child in node.children)

    def _is_generator(self, node) -> bool:
        return False


def node_text(node) -> str:
    """Decoded source text of a node."""
    return node.text.decode("utf-8", errors="replace")


def _first_error_node(root):
    """First ERROR or MISSING node in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None
