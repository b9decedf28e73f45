"""
Which exports stay alive, and what goes on the deletion worklist.

The decision is taken once per module, before anything is deleted. Checks run
in a fixed order; the first that applies settles the outcome:

1. the compile-time metadata export is dropped from the request when the module
   does not have it;
2. nothing requested: the whole module goes (``FAST_PATH``);
3. the ``side-effect`` marker is taken out of the request and remembered;
4. ``default`` requested from a module not known to be an ES module: shaking
   would break ``interopRequireDefault``, so nothing is touched (``KEEP_ALL``);
5. ``*`` requested: every export survives (``UNTOUCHED``);
6. otherwise alive nodes are computed, unknown names are handled by the
   configured policy and the worklist is built (``SHAKE``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .collector import CollectedModule
from .config_loader import ShakerConfig
from .dangerous_code import remove_dangerous_code
from .errors import UnknownExportError
from .features import is_feature_enabled
from .node_types import ExportName, Node, Special, export_label, parse_export_name
from .scope import binding_of
from .side_effects import KeepPredicate, keep_predicate

logger = logging.getLogger(__name__)

# alive nodes by identity, in insertion order
AliveSet = Dict[int, Node]


class Outcome(Enum):
    SHAKE = "shake"
    FAST_PATH = "fast-path"  # nothing requested, everything removed
    KEEP_ALL = "keep-all"  # shaking aborted, module returned as is
    UNTOUCHED = "untouched"  # wildcard requested, exports kept


class UnknownExportPolicy(str, Enum):
    ERROR = "error"
    IGNORE = "ignore"
    REEXPORT_ALL = "reexport-all"
    SKIP_SHAKING = "skip-shaking"


@dataclass
class LivenessDecision:
    outcome: Outcome
    exports: Dict[ExportName, Node]
    alive: List[Node] = field(default_factory=list)
    worklist: List[Node] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    side_effects_requested: bool = False
    dangerous_code_stripped: bool = False
    reason: str = ""


def decide_liveness(
    collected: CollectedModule,
    exports: Dict[ExportName, Node],
    requested: Iterable[Union[str, Special]],
    config: Optional[ShakerConfig] = None,
    filename: str = "",
    keep_side_effect: Optional[KeepPredicate] = None,
    program: Optional[Node] = None,
) -> LivenessDecision:
    config = config or ShakerConfig()
    original: List[str] = [export_label(name) for name in requested]
    request: List[ExportName] = []
    for name in original:
        parsed = parse_export_name(name)
        if parsed not in request:
            request.append(parsed)

    preval = config.preval_export_name
    if preval in request and preval not in exports:
        request.remove(preval)

    if not request:
        return LivenessDecision(Outcome.FAST_PATH, exports, reason="no exports requested")

    side_effects_requested = Special.SIDE_EFFECT in request
    if side_effects_requested:
        request.remove(Special.SIDE_EFFECT)

    if "default" in request and "default" in exports and not collected.is_es_module:
        return LivenessDecision(
            Outcome.KEEP_ALL,
            exports,
            side_effects_requested=side_effects_requested,
            reason="default export requested from a module without __esModule",
        )

    if Special.WILDCARD in request:
        return LivenessDecision(
            Outcome.UNTOUCHED, exports, side_effects_requested=side_effects_requested, reason="* requested"
        )

    alive = _alive_nodes(collected, exports, request, config.alias_imported_names)
    unmatched = _unmatched(collected, exports, request)

    policy = UnknownExportPolicy(config.if_unknown_export)
    if unmatched and policy is not UnknownExportPolicy.IGNORE:
        if policy is UnknownExportPolicy.ERROR:
            raise UnknownExportError(original, filename)
        if policy is UnknownExportPolicy.SKIP_SHAKING:
            return LivenessDecision(
                Outcome.KEEP_ALL,
                exports,
                unmatched=unmatched,
                side_effects_requested=side_effects_requested,
                reason=f"unknown export(s): {','.join(unmatched)}",
            )
        if policy is UnknownExportPolicy.REEXPORT_ALL:
            if Special.WILDCARD in exports:
                _add(alive, exports[Special.WILDCARD])
            for record in collected.reexports:
                if record.exported is Special.WILDCARD:
                    _add(alive, record.local)

    stripped = False
    if program is not None and is_feature_enabled(config.features, "dangerous_code_remover", filename):
        pairs = remove_dangerous_code(program)
        replacements = {id(old): new for old, new in pairs}
        exports = _remap(exports, replacements)
        remapped: AliveSet = {}
        for node in alive.values():
            _add(remapped, replacements.get(id(node), node))
        alive = remapped
        stripped = True

    worklist: List[Node] = []
    for local in exports.values():
        if not _has(alive, local):
            worklist.append(local)
    for record in collected.reexports:
        if not _has(alive, record.local):
            worklist.append(record.local)

    if not config.keep_side_effects and not side_effects_requested:
        keep = keep_side_effect or keep_predicate(config.keep_side_effect_sources)
        for record in collected.side_effect_imports:
            if record.local is not None and not keep(record.source):
                worklist.append(record.local)

    worklist.extend(_dead_import_sites(collected, config))

    logger.debug(
        "alive: %d, worklist: %d, unmatched: %s", len(alive), len(worklist), ",".join(unmatched) or "-"
    )
    return LivenessDecision(
        Outcome.SHAKE,
        exports,
        alive=list(alive.values()),
        worklist=worklist,
        unmatched=unmatched,
        side_effects_requested=side_effects_requested,
        dangerous_code_stripped=stripped,
    )


def _alive_nodes(
    collected: CollectedModule,
    exports: Dict[ExportName, Node],
    request: Sequence[ExportName],
    alias_imported_names: bool,
) -> AliveSet:
    alive: AliveSet = {}
    imported_names = {record.imported for record in collected.imports if isinstance(record.imported, str)}
    for name, local in exports.items():
        if name in request:
            _add(alive, local)
        elif alias_imported_names and local.type == "Identifier" and local.get("name") in imported_names:
            _add(alive, local)
        elif _has(alive, local):
            # export const { a, b } = f(): both names share f()
            _add(alive, local)
    for record in collected.reexports:
        if record.exported in request:
            _add(alive, record.local)
    return alive


def _unmatched(
    collected: CollectedModule, exports: Dict[ExportName, Node], request: Sequence[ExportName]
) -> List[str]:
    provided = set(exports) | {record.exported for record in collected.reexports}
    return [export_label(name) for name in request if name not in provided]


def _dead_import_sites(collected: CollectedModule, config: ShakerConfig) -> List[Node]:
    if not config.dead_imports:
        return []
    sites: List[Node] = []
    for record in collected.imports:
        if record.imported is Special.SIDE_EFFECT or record.local is None:
            continue
        label = export_label(record.imported)
        if not any(dead.name == label and dead.source == record.source for dead in config.dead_imports):
            continue
        binding = binding_of(record.local)
        if binding is None:
            sites.append(record.local)
        else:
            sites.extend(binding.references)
    return sites


def _has(nodes: AliveSet, node: Node) -> bool:
    return id(node) in nodes


def _add(nodes: AliveSet, node: Node) -> None:
    nodes.setdefault(id(node), node)


def _remap(exports: Dict[ExportName, Node], replacements: Dict[int, Node]) -> Dict[ExportName, Node]:
    if not replacements:
        return exports
    return {name: replacements.get(id(local), local) for name, local in exports.items()}
