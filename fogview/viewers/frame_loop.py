"""Per-frame update: routes input to the controller of the current interaction mode."""
from __future__ import annotations

import logging
from typing import Callable

from fogview.core.errors import GeometryError
from fogview.core.scene_node import TransformableNode
from fogview.viewers.camera.camera_controller import CameraController
from fogview.viewers.controllers.input_state import InputState
from fogview.viewers.controllers.interaction_controller import InteractionController, InteractionMode
from fogview.viewers.controllers.node_transform_controller import NodeTransformController

logger = logging.getLogger(__name__)

NodeSelector = Callable[[], TransformableNode | None]


class FrameUpdater:
    """
    Runs once per rendered frame.

    Geometry failures (degenerate view basis, singular world alignment) skip the
    frame: they are logged and the camera / node keeps its previous transform.
    """

    def __init__(
            self,
            interaction: InteractionController,
            camera_controller: CameraController,
            node_controller: NodeTransformController,
            node_selector: NodeSelector | None = None,
    ) -> None:
        self.interaction = interaction
        self.camera_controller = camera_controller
        self.node_controller = node_controller
        self.node_selector = node_selector
        self.skipped_frames = 0

    def update(self, frame_input: InputState, dt: float) -> bool:
        """
        Apply one frame of input.

        :return: True when the camera or node changed, False when nothing changed
            or the frame was skipped
        """
        mode = self.interaction.current_mode
        try:
            if mode is InteractionMode.CAMERA:
                return self.camera_controller.advance(frame_input, dt).dirty
            if mode is InteractionMode.SCENE_NODE:
                node = self.node_selector() if self.node_selector is not None else None
                if node is None:
                    return False
                basis = self.camera_controller.state.basis
                return self.node_controller.apply(node, basis, frame_input, dt)
        except GeometryError as e:
            self.skipped_frames += 1
            logger.warning("Skipping %s update: %s: %s", mode.name.lower(), type(e).__name__, e)
            return False
        return False
