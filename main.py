"""Lumina Studio — Entry Point.

Headless front end over the studio core: builds a scene from saved state
and command-line controls, prints the derived descriptor, and optionally
asks the director agent for a placement or renders the scene.
"""

import argparse
import json
import logging
import sys

from lumina.application import configure_logging, create_application
from lumina.config import StudioConfig
from lumina.constants import APERTURE_STOPS, AVAILABLE_FILTERS
from lumina.controllers.studio_controller import StudioController
from lumina.core.errors import LuminaError
from lumina.core.render_job import RenderJobController
from lumina.core.serializers import descriptor_to_dict
from lumina.database import DatabaseManager, SceneRepository
from lumina.models.render import RenderStatus
from lumina.models.studio import Position, SubjectType
from lumina.services.director_client import DirectorClient

logger = logging.getLogger("lumina")


def _position(values):
    return Position(*(float(v) for v in values))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lumina", description=__doc__.splitlines()[0])
    parser.add_argument("--db", default=None, help="SQLite database path")
    parser.add_argument("--scene", help="Load a saved scene by name")
    parser.add_argument("--camera", nargs=3, metavar=("X", "Y", "Z"))
    parser.add_argument("--light", nargs=3, metavar=("X", "Y", "Z"))
    parser.add_argument("--aperture", choices=APERTURE_STOPS)
    parser.add_argument("--filter", action="append", default=[], choices=AVAILABLE_FILTERS)
    parser.add_argument("--bloom", type=int)
    parser.add_argument("--glare", type=int)
    parser.add_argument("--distortion", type=int)
    parser.add_argument("--subject", choices=[s.value for s in SubjectType])
    parser.add_argument("--prompt")
    parser.add_argument("--direct", metavar="INTENT", help="Let the director agent place the markers")
    parser.add_argument("--save", metavar="NAME", help="Save the resulting scene")
    parser.add_argument("--render", action="store_true", help="Render the scene and wait for the image")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _apply_args(ctrl: StudioController, args) -> None:
    if args.camera:
        ctrl.set_camera(_position(args.camera))
    if args.light:
        ctrl.set_light(_position(args.light))
    if args.aperture:
        ctrl.set_aperture(args.aperture)
    for name in args.filter:
        if not ctrl.state.has_filter(name):
            ctrl.toggle_filter(name)
    levels = {
        k: getattr(args, k)
        for k in ("bloom", "glare", "distortion")
        if getattr(args, k) is not None
    }
    if levels:
        ctrl.set_post_processing(**levels)
    if args.subject:
        ctrl.set_subject_type(SubjectType(args.subject))
    if args.prompt is not None:
        ctrl.set_temp_prompt(args.prompt)
        ctrl.commit_prompt()


def run(argv: list[str], config: StudioConfig | None = None, out=None) -> int:
    """Execute one CLI invocation. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    out = out or sys.stdout

    db = DatabaseManager(args.db) if args.db else DatabaseManager()
    db.initialize_database()
    repo = SceneRepository(db)
    config = (config or StudioConfig.from_env()).with_settings(repo)

    ctrl = StudioController()
    scene_id = None
    try:
        if args.scene:
            scene = repo.find_scene_by_name(args.scene)
            scene_id = scene.id
            ctrl.apply_scene(scene.state)
        _apply_args(ctrl, args)

        if args.direct:
            state = ctrl.state
            camera, light = DirectorClient(config).direct(args.direct, state.camera, state.light)
            ctrl.apply_director_result(camera, light)

        if args.save:
            scene_id = repo.save_scene(ctrl.state, args.save)
            logger.info("Saved scene %r (%s)", args.save, scene_id)

        json.dump(descriptor_to_dict(ctrl.descriptor), out, indent=2, ensure_ascii=False)
        out.write("\n")

        if args.render:
            render = RenderJobController(config)
            job = render.submit_and_wait(ctrl.descriptor)
            repo.record_render(job, scene_id)
            if job.status is not RenderStatus.SUCCEEDED:
                logger.error("Rendering failed (%s): %s", job.status.value, job.error)
                return 1
            out.write(f"{job.output_url}\n")
    except KeyError as e:
        logger.error("%s", e.args[0] if e.args else e)
        return 2
    except LuminaError as e:
        logger.error("%s", e)
        return 1
    finally:
        db.close()
    return 0


def main():
    configure_logging(logging.DEBUG if "-v" in sys.argv or "--verbose" in sys.argv else logging.INFO)
    create_application(sys.argv)
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
