"""Tree-sitter parser wrapper for Rust sources.

tree-sitter parsers are not safe to share between threads, so every worker
thread lazily builds its own ``Parser`` around the shared ``Language``.

Usage:
    parser = RustParser()
    root = parser.parse(source_bytes, "src/lib.rs")
"""

from __future__ import annotations

import threading
from typing import Any, Optional

import tree_sitter_rust
from tree_sitter import Language, Parser

from ..exceptions import ParsingError

RUST_LANGUAGE = Language(tree_sitter_rust.language())


class RustParser:
    """Thread-local tree-sitter parser for the Rust grammar."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(RUST_LANGUAGE)
            self._local.parser = parser
        return parser

    def parse(self, source: bytes, path: str) -> Any:
        """Parse ``source`` and return the root node.

        tree-sitter always produces a tree; a tree containing ERROR or
        MISSING nodes is rejected so that partial facts never reach the
        graph.

        Raises:
            ParsingError: If the tree contains syntax errors.
        """
        tree = self._parser().parse(source)
        root = tree.root_node
        if root.has_error:
            line = _first_error_line(root)
            raise ParsingError(path, "syntax error", line=line)
        return root


def _first_error_line(root: Any) -> Optional[int]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return None
