"""Per-kind child slots and tracker roles.

Each kind declares its slots in flow (evaluation) order. A slot is either a
single child or a list of children. Branch slots that may be left out in the
source are marked `empty_body`: the builder fills them with a rangeless
EMPTY_BODY so that every branch has a node to carry its counts.
"""

from __future__ import annotations

from dataclasses import dataclass

from coverplane.tree.models import Node, NodeKind

CONDITIONAL_STYLES = frozenset({"if", "unless", "elsif", "ternary"})
SHORT_CIRCUIT_OPERATORS = frozenset({"&&", "||", "and", "or"})
LOOP_POLARITIES = frozenset({"while", "until"})


@dataclass(frozen=True, slots=True)
class SlotSpec:
    name: str
    required: bool = False
    many: bool = False
    empty_body: bool = False
    kinds: tuple[NodeKind, ...] = ()


@dataclass(frozen=True, slots=True)
class KindSchema:
    slots: tuple[SlotSpec, ...] = ()
    trackers: tuple[str, ...] = ()
    optional_trackers: tuple[str, ...] = ()

    def spec(self, name: str) -> SlotSpec | None:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None

    @property
    def tracker_roles(self) -> tuple[str, ...]:
        return self.trackers + self.optional_trackers


SCHEMAS: dict[NodeKind, KindSchema] = {
    NodeKind.ROOT: KindSchema(
        slots=(SlotSpec("body", empty_body=True),),
        trackers=("entered",),
    ),
    NodeKind.SEQUENCE: KindSchema(slots=(SlotSpec("statements", many=True),)),
    NodeKind.STATEMENT: KindSchema(
        slots=(SlotSpec("operands", many=True),),
        optional_trackers=("completed",),
    ),
    NodeKind.EXIT: KindSchema(slots=(SlotSpec("operands", many=True),)),
    NodeKind.DEFINITION: KindSchema(
        slots=(SlotSpec("body", empty_body=True),),
        trackers=("called",),
    ),
    NodeKind.EMPTY_BODY: KindSchema(),
    NodeKind.CONDITIONAL: KindSchema(
        slots=(
            SlotSpec("condition", required=True),
            SlotSpec("true_branch", empty_body=True),
            SlotSpec("false_branch", empty_body=True),
        ),
        trackers=("truthy",),
    ),
    NodeKind.MULTIWAY_DISPATCH: KindSchema(
        slots=(
            SlotSpec("subject"),
            SlotSpec("arms", required=True, many=True, kinds=(NodeKind.DISPATCH_ARM,)),
            SlotSpec("else_branch", empty_body=True),
        ),
    ),
    NodeKind.DISPATCH_ARM: KindSchema(
        slots=(
            SlotSpec("patterns", many=True),
            SlotSpec("body", empty_body=True),
        ),
        trackers=("body_entered",),
    ),
    NodeKind.SHORT_CIRCUIT: KindSchema(
        slots=(
            SlotSpec("left", required=True),
            SlotSpec("right", required=True),
        ),
        trackers=("conditional",),
    ),
    NodeKind.SAFE_NAVIGATION_CALL: KindSchema(
        slots=(
            SlotSpec("receiver", required=True),
            SlotSpec("arguments", many=True),
        ),
        trackers=("called", "skipped"),
        optional_trackers=("completed",),
    ),
    NodeKind.LOOP: KindSchema(
        slots=(
            SlotSpec("condition", required=True),
            SlotSpec("body", empty_body=True),
        ),
        trackers=("body_entered",),
        optional_trackers=("broke",),
    ),
    NodeKind.TRY_HANDLER: KindSchema(
        slots=(
            SlotSpec("watched_body"),
            SlotSpec("arms", many=True, kinds=(NodeKind.HANDLER_ARM,)),
            SlotSpec("else_clause"),
        ),
    ),
    NodeKind.HANDLER_ARM: KindSchema(
        slots=(
            SlotSpec("exception"),
            SlotSpec("assignment"),
            SlotSpec("body"),
        ),
        trackers=("entered_body",),
    ),
    NodeKind.ELSE_CLAUSE: KindSchema(slots=(SlotSpec("body"),)),
    NodeKind.FINALLY_BLOCK: KindSchema(
        slots=(
            SlotSpec("body"),
            SlotSpec("finally_body"),
        ),
    ),
}


def schema_for(kind: NodeKind) -> KindSchema:
    return SCHEMAS[kind]


def flow_order(node: Node) -> tuple[int, ...]:
    """Child indices in the order they are evaluated.

    A post-test loop runs its body before its condition.
    """
    slots = SCHEMAS[node.kind].slots
    if node.kind is NodeKind.LOOP and node.post_test:
        slots = tuple(reversed(slots))
    children: list[int] = []
    for spec in slots:
        if spec.many:
            children.extend(node.item(spec.name))
        else:
            child = node.slot(spec.name)
            if child is not None:
                children.append(child)
    return tuple(children)
