"""
One shaking pass over one module.

    session = ShakeSession(load_config())
    result = session.shake_estree(estree_json, ["a", "b"], filename="src/mod.js")
    result.to_estree()      # shaken ESTree
    result.summary_dict()   # {"deadExports": [...], "exports": [...], "imports": {...}}

Phases run in order: scope analysis, export collection, export normalization,
liveness, elimination, reporting. Nothing is cached across passes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .collector import CollectedModule, ImportRecord, ReexportRecord, collect_exports_and_imports
from .config_loader import ShakerConfig
from .eliminator import EliminationResult, eliminate, remove_all_statements
from .liveness import LivenessDecision, Outcome, decide_liveness
from .node_types import ExportName, Node, Special, export_label, from_estree, to_estree
from .normalizer import rearrange_exports
from .reporter import (
    EvaluatorSummary,
    ShakeReport,
    build_report,
    fast_path_report,
    unshaken_report,
)
from .scope import analyze
from .side_effects import KeepPredicate

logger = logging.getLogger(__name__)

RequestedExports = Iterable[Union[str, Special]]


@dataclass
class ShakeResult:
    program: Node
    imports: List[ImportRecord]
    exports: Dict[ExportName, Node]
    reexports: List[ReexportRecord]
    dead_exports: List[ExportName]
    summary: EvaluatorSummary
    outcome: Outcome
    metadata: Any = None
    elimination: Optional[EliminationResult] = None
    filename: str = ""
    # non-program part of a Babel ``File`` root, re-attached by to_estree()
    file: Optional[Dict[str, Any]] = field(default=None, repr=False)

    def summary_dict(self) -> Dict[str, Any]:
        return self.summary.to_dict()

    def to_estree(self) -> Dict[str, Any]:
        program = to_estree(self.program)
        if self.file is None:
            return program
        wrapped = dict(self.file)
        wrapped["program"] = program
        return wrapped


class ShakeSession:
    """Shakes modules with one configuration and numbers them for the log."""

    def __init__(self, config: Optional[ShakerConfig] = None, keep_side_effect: Optional[KeepPredicate] = None):
        self.config = config or ShakerConfig()
        self.keep_side_effect = keep_side_effect
        self._file_indices: Dict[str, int] = {}

    def file_index(self, filename: str) -> int:
        if filename not in self._file_indices:
            self._file_indices[filename] = len(self._file_indices) + 1
        return self._file_indices[filename]

    def shake_estree(
        self,
        data: Dict[str, Any],
        only: RequestedExports,
        filename: str = "",
        metadata: Any = None,
    ) -> ShakeResult:
        """Shake a parsed module given as ESTree JSON (a ``Program`` or a Babel ``File``)."""
        file: Optional[Dict[str, Any]] = None
        program_data = data
        if data.get("type") == "File":
            file = {key: value for key, value in data.items() if key != "program"}
            program_data = data["program"]
        result = self.shake(from_estree(program_data), only, filename=filename, metadata=metadata)
        result.file = file
        return result

    def shake(
        self,
        program: Node,
        only: RequestedExports,
        filename: str = "",
        metadata: Any = None,
    ) -> ShakeResult:
        idx = self.file_index(filename)
        only = list(only)
        self._log(idx, "start", "%s, only exports: %s", filename, ",".join(export_label(n) for n in only))

        analyze(program)
        collected = collect_exports_and_imports(program)
        self._log(
            idx,
            "import-and-exports",
            "imports: %d (side-effects: %d), exports: %d, reexports: %d",
            len(collected.imports),
            len(collected.side_effect_imports),
            len(collected.exports),
            len(collected.reexports),
        )

        exports = rearrange_exports(program, collected.export_refs, collected.exports)
        decision = decide_liveness(
            collected,
            exports,
            only,
            config=self.config,
            filename=filename,
            keep_side_effect=self.keep_side_effect,
            program=program,
        )

        elimination: Optional[EliminationResult] = None
        if decision.outcome is Outcome.SHAKE:
            if decision.dangerous_code_stripped:
                self._log(idx, "dangerous-code", "stripped JSX and browser globals")
            elimination = eliminate(decision.worklist)
            report = build_report(collected.imports, decision.exports, collected.reexports)
        else:
            report = self._report(idx, program, collected, decision)

        summary = report.summary()
        self._log(
            idx,
            "end",
            "%s: exports: %s, dead: %s",
            decision.outcome.value,
            ",".join(summary.exports) or "-",
            ",".join(summary.dead_exports) or "-",
        )
        return ShakeResult(
            program=program,
            imports=report.imports,
            exports=report.exports,
            reexports=report.reexports,
            dead_exports=report.dead_exports,
            summary=summary,
            outcome=decision.outcome,
            metadata=metadata,
            elimination=elimination,
            filename=filename,
        )

    def _report(
        self, idx: int, program: Node, collected: CollectedModule, decision: LivenessDecision
    ) -> ShakeReport:
        if decision.outcome is Outcome.FAST_PATH:
            removed = remove_all_statements(program)
            self._log(idx, "fast-path", "nothing requested, %d statement(s) removed", removed)
            return fast_path_report(decision.exports)
        if decision.outcome is Outcome.KEEP_ALL:
            logger.info("[shaker:%d] %s, module left unshaken", idx, decision.reason)
            return unshaken_report(collected.imports, decision.exports, collected.reexports)
        return build_report(collected.imports, decision.exports, collected.reexports)

    def _log(self, idx: int, event: str, message: str, *args: Any) -> None:
        logger.debug("[shaker:%d] %s " + message, idx, event, *args)


def shake_module(
    program: Node,
    only: RequestedExports,
    config: Optional[ShakerConfig] = None,
    filename: str = "",
    metadata: Any = None,
    keep_side_effect: Optional[KeepPredicate] = None,
) -> ShakeResult:
    return ShakeSession(config, keep_side_effect).shake(program, only, filename=filename, metadata=metadata)


def shake_estree(
    data: Dict[str, Any],
    only: RequestedExports,
    config: Optional[ShakerConfig] = None,
    filename: str = "",
    metadata: Any = None,
    keep_side_effect: Optional[KeepPredicate] = None,
) -> ShakeResult:
    return ShakeSession(config, keep_side_effect).shake_estree(data, only, filename=filename, metadata=metadata)
