"""
Visibility dependency graph.

Each `visible_when` is an edge from the dependent field's key to the key of
the field it watches. The graph is rebuilt from the section list whenever a
schema is validated, so cycles are caught at mutation time and never reach
the renderer.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from formconfig.schema.models import FormField, FormSection


class DependencyGraph:

    def __init__(self):
        self._edges: Dict[str, Set[str]] = defaultdict(set)
        self._declared: Dict[str, List[str]] = defaultdict(list)

    @classmethod
    def from_sections(cls, sections: Iterable[FormSection]) -> "DependencyGraph":
        graph = cls()
        for section in sections:
            for field in section.fields:
                graph._declared[field.field_key].append(section.section_key)
                if field.visible_when is not None:
                    graph._edges[field.field_key].add(field.visible_when.field_key)
        return graph

    def has_key(self, field_key: str) -> bool:
        return field_key in self._declared

    def sections_declaring(self, field_key: str) -> List[str]:
        return list(self._declared.get(field_key, []))

    def find_cycle(self) -> Optional[List[str]]:
        """
        Return one cycle as a key path (first key repeated at the end), or None.
        Self-dependencies are reported separately and skipped here.
        """
        WHITE, GREY, BLACK = 0, 1, 2
        color: Dict[str, int] = defaultdict(int)
        stack: List[str] = []

        def visit(key: str) -> Optional[List[str]]:
            color[key] = GREY
            stack.append(key)
            for nxt in sorted(self._edges.get(key, ())):
                if nxt == key:
                    continue
                if color[nxt] == GREY:
                    return stack[stack.index(nxt):] + [nxt]
                if color[nxt] == WHITE:
                    found = visit(nxt)
                    if found:
                        return found
            stack.pop()
            color[key] = BLACK
            return None

        for key in sorted(self._edges):
            if color[key] == WHITE:
                found = visit(key)
                if found:
                    return found
        return None


def index_fields(sections: Iterable[FormSection]) -> Dict[str, FormField]:
    """Field by key, first declaration in render order winning."""
    index: Dict[str, FormField] = {}
    for section in sorted(sections, key=lambda s: s.order):
        for field in sorted(section.fields, key=lambda f: f.order):
            index.setdefault(field.field_key, field)
    return index
