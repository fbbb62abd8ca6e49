"""Node selection and pointer gesture routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .network_model import NetworkModel, Node
from .viewport import Viewport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeDetails:
    """What the details panel shows for the inspected node."""

    id: str
    label: str
    kind: str
    status: str
    value: Optional[float]
    unit: Optional[str]
    upstream: Tuple[str, ...]
    downstream: Tuple[str, ...]

    @property
    def display_value(self) -> Optional[str]:
        if self.value is None:
            return None
        return f"{self.value:.1f} {self.unit or ''}".rstrip()


class SelectionController:
    """Holds the single node currently chosen for inspection."""

    def __init__(self, model: NetworkModel) -> None:
        self.model = model
        self.selected_node_id: Optional[str] = None

    def select(self, node_id: str) -> None:
        """Inspect ``node_id``.

        :raises NotFound: If the model has no such node.
        """
        self.model.get_node(node_id)
        if self.selected_node_id != node_id:
            logger.debug(f"Selected node {node_id}")
        self.selected_node_id = node_id

    def clear(self) -> None:
        self.selected_node_id = None

    def is_selected(self, node_id: str) -> bool:
        return self.selected_node_id == node_id

    def selected(self) -> Optional[Node]:
        """The live node object, so values shown track the latest tick."""
        if self.selected_node_id is None:
            return None
        return self.model.get_node(self.selected_node_id)

    def details(self) -> Optional[NodeDetails]:
        node = self.selected()
        if node is None:
            return None
        return NodeDetails(
            id=node.id,
            label=node.label,
            kind=node.kind.value,
            status=node.status.value,
            value=node.value,
            unit=node.unit,
            upstream=tuple(self.model.upstream(node.id)),
            downstream=tuple(self.model.downstream(node.id)),
        )


class GestureRouter:
    """Turn raw pointer events into either a selection or a pan drag.

    A press is held as pending until the pointer travels further than the
    click threshold (Chebyshev distance, in screen pixels).  Released within
    the threshold it is a click: on a node it selects that node, on empty
    canvas it does nothing.  Past the threshold it becomes a pan drag
    anchored at the original press point, so the first pixels of movement
    are not lost.
    """

    def __init__(
        self,
        viewport: Viewport,
        selection: SelectionController,
        canvas_size: Tuple[float, float],
        threshold: Optional[float] = None,
    ) -> None:
        self.viewport = viewport
        self.selection = selection
        self.canvas_size = canvas_size
        self.threshold = viewport.config.click_threshold_px if threshold is None else threshold
        self._press: Optional[Tuple[float, float]] = None
        self._press_node: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._press is not None and not self.viewport.dragging

    def pointer_down(self, x: float, y: float) -> None:
        if self.viewport.dragging:
            # The release of the previous drag never arrived
            self.viewport.cancel_drag()
        scene = self.viewport.to_scene((x, y), self.canvas_size)
        self._press = (x, y)
        self._press_node = self.selection.model.hit_test(*scene)

    def pointer_move(self, x: float, y: float) -> None:
        if self._press is None:
            return
        if not self.viewport.dragging:
            px, py = self._press
            if max(abs(x - px), abs(y - py)) <= self.threshold:
                return
            self.viewport.begin_drag(px, py)
        self.viewport.drag_to(x, y)

    def pointer_up(self, x: float, y: float) -> Optional[str]:
        """Finish the gesture.  Returns the node id selected by a click, if any."""
        if self._press is None:
            return None
        selected = None
        if self.viewport.dragging:
            self.viewport.drag_to(x, y)
            self.viewport.end_drag()
        elif self._press_node is not None:
            self.selection.select(self._press_node)
            selected = self._press_node
        self._press = None
        self._press_node = None
        return selected

    def pointer_cancel(self) -> None:
        """Pointer left the canvas or the gesture was interrupted."""
        if self.viewport.dragging:
            self.viewport.cancel_drag()
        self._press = None
        self._press_node = None
