"""
Generation - The request boundary around the image-transform collaborator.

At most one transform is in flight across the whole editor. While it runs
the busy flag blocks new requests; the graph stays fully editable. A
failure leaves the processor's payload exactly as it was.

The controller is split into prepare / start / complete / fail so the GUI
can run the awaited call on a worker thread and apply the outcome back on
its own thread. ``generate`` chains the steps for callers that can await.
"""

from __future__ import annotations

import logging
from enum import Enum

from render_canvas.core.graph import NodeGraph, NodeId, NodeKind, OUTPUT_IMAGE
from render_canvas.core.images import ImageData, composite_with_mask
from render_canvas.providers.base import (
    GenerationError,
    ImageTransformer,
    ProviderError,
    TransformRequest,
)


logger = logging.getLogger(__name__)


DEFAULT_STRENGTH = 0.5
EMPTY_PROMPT = "Enter a prompt first!"

FIX_GEOMETRY_CLAUSE = (
    ". Maintain the main geometry of the scene strictly, "
    "only update the environment, lighting, and materials."
)
MASK_CLAUSE = ". Apply changes specifically to the highlighted red region."


class RenderPreset(Enum):
    """Style presets offered by processor nodes."""
    DEFAULT = "Default"
    ARCH_VIZ = "Architecture Visualization"
    INTERIOR = "Interior Design"
    EXHIBITION = "Exhibition Design"
    PRODUCT = "Product Studio"
    LUMION_REALISTIC = "Lumion Realistic"


def compose_instruction(
    prompt: str,
    preset: RenderPreset = RenderPreset.DEFAULT,
    fix_geometry: bool = False,
    has_mask: bool = False,
) -> str:
    """
    Build the instruction text sent to the model from the form state.

    A blank prompt gives an empty instruction whatever the other options.
    """
    if not prompt.strip():
        return ""
    instruction = prompt
    if preset is not RenderPreset.DEFAULT:
        instruction += f". Style: {preset.value}"
    if fix_geometry:
        instruction += FIX_GEOMETRY_CLAUSE
    if has_mask:
        instruction += MASK_CLAUSE
    return instruction


def can_generate(prompt: str, source_image: ImageData | None, busy: bool = False) -> bool:
    """Whether the Generate action is available for this form state."""
    return not busy and bool(prompt.strip()) and isinstance(source_image, ImageData)


class MissingInputError(GenerationError):
    """The processor has nothing to work on; no request was sent."""

    NOT_CONNECTED = "Connect an image source first!"
    NO_IMAGE = "Source node has no image!"


class BusyError(GenerationError):
    """Another transform is still in flight."""


class GenerationController:
    """Serializes transform requests and writes results into the graph."""

    def __init__(self, graph: NodeGraph, transformer: ImageTransformer):
        self._graph = graph
        self._transformer = transformer
        self._busy = False
        self._active_node: NodeId | None = None

    @property
    def transformer(self) -> ImageTransformer:
        return self._transformer

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def active_node(self) -> NodeId | None:
        return self._active_node

    def prepare(
        self,
        node_id: NodeId,
        instruction: str,
        mask: ImageData | None = None,
        strength: float = DEFAULT_STRENGTH,
    ) -> TransformRequest:
        """
        Validate and build the request for ``node_id``.

        Raises:
            BusyError: A transform is already running
            MissingInputError: No incoming connection, or no upstream image
            GenerationError: Not a processor node, or a blank instruction
        """
        if self._busy:
            raise BusyError("A render is already in progress")

        node = self._graph.get_node(node_id)
        if node is None or node.kind is not NodeKind.PROCESSOR:
            raise GenerationError("Only processor nodes can generate")
        if not instruction.strip():
            raise GenerationError(EMPTY_PROMPT)

        if self._graph.get_input_connection(node_id) is None:
            raise MissingInputError(MissingInputError.NOT_CONNECTED)
        source_image = self._graph.upstream_image(node_id)
        if source_image is None:
            raise MissingInputError(MissingInputError.NO_IMAGE)

        return TransformRequest(
            image=composite_with_mask(source_image, mask),
            instruction=instruction,
            mask=mask,
            strength=strength,
        )

    def start(self, node_id: NodeId) -> None:
        """Raise the busy flag for a request about to be sent."""
        self._busy = True
        self._active_node = node_id
        logger.info("Render started for node %s", node_id)

    def complete(self, node_id: NodeId, image: ImageData) -> None:
        """Store the result and clear the busy flag."""
        try:
            self._graph.update_payload(node_id, **{OUTPUT_IMAGE: image})
            logger.info("Render finished for node %s", node_id)
        finally:
            self._finish()

    def fail(self, node_id: NodeId, error: BaseException) -> None:
        """Record a failed request; the node payload is not touched."""
        logger.warning("Render failed for node %s: %s", node_id, error)
        self._finish()

    async def generate(
        self,
        node_id: NodeId,
        instruction: str,
        mask: ImageData | None = None,
        strength: float = DEFAULT_STRENGTH,
    ) -> ImageData:
        """Run a whole request: validate, call the transformer, store."""
        request = self.prepare(node_id, instruction, mask, strength)
        self.start(node_id)
        try:
            image = await self._transformer.transform(request)
        except ProviderError as e:
            self.fail(node_id, e)
            raise
        except Exception as e:
            logger.exception("Unexpected error from %s", self._transformer.name or "transformer")
            self.fail(node_id, e)
            raise GenerationError(str(e)) from e
        self.complete(node_id, image)
        return image

    def _finish(self) -> None:
        self._busy = False
        self._active_node = None
