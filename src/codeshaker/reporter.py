"""
What is left of a module after shaking.

The summary is the only thing later stages of the pipeline look at::

    {
      "deadExports": ["b"],
      "exports": ["a"],
      "imports": {"./util": ["foo", "*"], "./style.css": ["side-effect"]}
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .collector import ImportRecord, ReexportRecord
from .node_types import ExportName, Node, export_label


@dataclass
class EvaluatorSummary:
    dead_exports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    imports: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deadExports": list(self.dead_exports),
            "exports": list(self.exports),
            "imports": {source: list(names) for source, names in self.imports.items()},
        }


@dataclass
class ShakeReport:
    imports: List[ImportRecord]
    exports: Dict[ExportName, Node]
    reexports: List[ReexportRecord]
    dead_exports: List[ExportName]

    def summary(self) -> EvaluatorSummary:
        imports: Dict[str, List[str]] = {}
        for record in [*self.imports, *self.reexports]:
            names = imports.setdefault(record.source, [])
            name = export_label(record.imported)
            if name:
                names.append(name)
        return EvaluatorSummary(
            dead_exports=[export_label(name) for name in self.dead_exports],
            exports=[export_label(name) for name in self.exports],
            imports=imports,
        )


def build_report(
    imports: List[ImportRecord],
    exports: Dict[ExportName, Node],
    reexports: List[ReexportRecord],
) -> ShakeReport:
    """Split records into survivors and dead exports by the removed state of their nodes."""
    surviving_exports: Dict[ExportName, Node] = {}
    dead: List[ExportName] = []
    for name, local in exports.items():
        if local.is_removed():
            dead.append(name)
        else:
            surviving_exports[name] = local
    return ShakeReport(
        imports=[record for record in imports if record.local is None or not record.local.is_removed()],
        exports=surviving_exports,
        reexports=[record for record in reexports if not record.local.is_removed()],
        dead_exports=dead,
    )


def unshaken_report(
    imports: List[ImportRecord],
    exports: Dict[ExportName, Node],
    reexports: List[ReexportRecord],
) -> ShakeReport:
    return ShakeReport(imports=list(imports), exports=dict(exports), reexports=list(reexports), dead_exports=[])


def fast_path_report(exports: Dict[ExportName, Node]) -> ShakeReport:
    return ShakeReport(imports=[], exports={}, reexports=[], dead_exports=list(exports))
