"""fogview entry point: builds the noise volume and the interactive controllers."""
from __future__ import annotations

import argparse
import logging
import math
import sys
from dataclasses import dataclass, replace

import numpy as np

from fogview.app.app_settings_manager import (
    DEFAULTS,
    MAX_NOISE_FREQUENCY,
    MAX_VOLUME_SIZE,
    AppSettingsManager,
)
from fogview.app.logging_setup import LogSystem, apply_logging_policy
from fogview.core.errors import GeometryError
from fogview.core.noise_field import NoiseField
from fogview.core.noise_volume import NoiseVolumeModel
from fogview.core.scene_node import SceneNode
from fogview.core.view_basis import WORLD_FORWARD
from fogview.utils import vtk_helpers
from fogview.utils.log_util import level_from_name
from fogview.viewers.camera.camera_controller import CameraController
from fogview.viewers.camera.camera_state import CameraState, CameraStateManager
from fogview.viewers.controllers.input_state import InputTracker
from fogview.viewers.controllers.interaction_controller import InteractionController
from fogview.viewers.controllers.node_transform_controller import NodeTransformController
from fogview.viewers.frame_loop import FrameUpdater

logger = logging.getLogger(__name__)


@dataclass
class Viewer:
    """Everything the render/input collaborators talk to."""
    volume: NoiseVolumeModel
    camera_state: CameraStateManager
    camera_sink: vtk_helpers.VtkCameraSink
    scene: SceneNode
    input: InputTracker
    interaction: InteractionController
    frames: FrameUpdater | None = None
    selected_node: SceneNode | None = None


def build_viewer(
        settings: AppSettingsManager,
        *,
        rng: np.random.Generator | None = None,
        **noise_overrides,
) -> Viewer:
    """
    Wire the core components from settings.

    :param settings: Application settings
    :param rng: Random generator for the noise table (defaults to the configured seed)
    :param noise_overrides: seed / size / frequency values used instead of the stored ones
    """
    noise_cfg = replace(settings.noise, **{k: v for k, v in noise_overrides.items() if v is not None})
    noise = NoiseField(seed=noise_cfg.seed, rng=rng)
    volume = NoiseVolumeModel.from_noise(noise, size=noise_cfg.size, frequency=noise_cfg.frequency)

    cam = settings.camera
    fallback_axis = WORLD_FORWARD if cam.allow_basis_fallback else None
    initial = CameraState(eye=cam.eye, center=cam.center, fovy=cam.fovy, aspect=cam.aspect,
                          near=cam.near, far=cam.far)
    try:
        camera_state = CameraStateManager(initial, fallback_axis=fallback_axis)
    except GeometryError as e:
        # stored eye/center has no view basis; start from the default position
        logger.warning("Unusable camera position (%s); using the default eye and center", e)
        initial = initial.with_eye_center(DEFAULTS["camera"]["eye"], DEFAULTS["camera"]["center"])
        camera_state = CameraStateManager(initial, fallback_axis=fallback_axis)
    sink = vtk_helpers.VtkCameraSink()
    sink.set_projection(cam.fovy, cam.near, cam.far)
    sink(camera_state.current_view_update())
    camera_state.add_view_changed_callback(sink)

    speeds = settings.interaction
    camera_controller = CameraController(
        camera_state,
        orbit_deg_per_unit=speeds.rotation_deg_per_unit,
        pan_speed=speeds.pan_speed,
    )
    node_controller = NodeTransformController(
        rotate_deg_per_unit=speeds.rotation_deg_per_unit,
        translate_speed=speeds.pan_speed,
    )

    scene = SceneNode("root")
    SceneNode("volume", parent=scene)
    interaction = InteractionController()

    viewer = Viewer(
        volume=volume,
        camera_state=camera_state,
        camera_sink=sink,
        scene=scene,
        input=InputTracker(),
        interaction=interaction,
    )
    viewer.frames = FrameUpdater(
        interaction, camera_controller, node_controller,
        node_selector=lambda: viewer.selected_node,
    )
    return viewer


def _seed_arg(text: str) -> int:
    try:
        seed = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if seed < 0:
        raise argparse.ArgumentTypeError(f"seed must be >= 0, got {seed}")
    return seed


def _size_arg(text: str) -> int:
    try:
        size = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if not 1 <= size <= MAX_VOLUME_SIZE:
        raise argparse.ArgumentTypeError(f"size must be in 1..{MAX_VOLUME_SIZE}, got {size}")
    return size


def _frequency_arg(text: str) -> float:
    try:
        frequency = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not (math.isfinite(frequency) and 0.0 < frequency <= MAX_NOISE_FREQUENCY):
        raise argparse.ArgumentTypeError(f"frequency must be in (0, {MAX_NOISE_FREQUENCY:g}], got {text}")
    return frequency


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fogview", description="Noise volume and camera setup")
    parser.add_argument("--seed", type=_seed_arg, default=None, help="noise permutation seed")
    parser.add_argument("--size", type=_size_arg, default=None, help="edge length of the noise volume")
    parser.add_argument("--frequency", type=_frequency_arg, default=None, help="lattice units per voxel")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    settings_mgr = AppSettingsManager()

    with LogSystem("fogview") as logs:
        apply_logging_policy(logs, settings_mgr)
        if args.log_level:
            logs.apply_levels(root_level=level_from_name(args.log_level),
                              console_level=level_from_name(args.log_level))
        logger.info("App start (settings=%s)", settings_mgr.to_dict())

        viewer = build_viewer(settings_mgr, seed=args.seed, size=args.size, frequency=args.frequency)
        volume = viewer.volume
        image = volume.to_vtk_image()
        logger.info("Noise volume: dimensions=%s, scalar_range=%s, mip_levels=%d, mean=%.2f",
                    image.GetDimensions(), volume.scalar_range, volume.mip_levels,
                    float(volume.data.mean()))
        logger.info("Camera: %s", viewer.camera_state.state)
        logger.info("View matrix:\n%s", np.array2string(viewer.camera_state.view_matrix, precision=4))
        logger.info("Projection matrix:\n%s",
                    np.array2string(viewer.camera_state.projection_matrix, precision=4))
        logger.info("App exit")
        return 0


if __name__ == "__main__":
    sys.exit(main())
