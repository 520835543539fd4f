# mimic/main.py
"""
CLI entrypoint: visualise a concept (or a scene graph JSON file) as a step-by-step video.

    python -m mimic.main "the water cycle"
    python -m mimic.main --scene scenes/water_cycle.json --out outputs/water.mp4
"""
import argparse
import logging
import sys

from .config import get_settings
from .errors import MimicError
from .gemini_client import SceneGenerator
from .model import SceneGraph
from .renderer import MoviePyRenderer
from .scene_validator import unwrap_payload
from .utils import load_json_file, video_path_for


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a scene graph walkthrough video")
    parser.add_argument("concept", nargs="*", help="Concept to visualise (calls Gemini)")
    parser.add_argument("--scene", help="Path to a scene graph JSON file instead of calling Gemini")
    parser.add_argument("--out", help="Output video path")
    parser.add_argument("--fps", type=int, default=None, help="Frames per second")
    parser.add_argument("--step-seconds", type=float, default=None, help="Seconds each step is held")
    parser.add_argument("--model", default=None, help="Gemini model id")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def load_scene(args) -> tuple:
    if args.scene:
        scene, explanation = unwrap_payload(load_json_file(args.scene))
        return SceneGraph.from_dict(scene), explanation, args.scene
    concept = " ".join(args.concept)
    graph, explanation = SceneGenerator(model=args.model).visualize(concept)
    return graph, explanation, concept


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not args.scene and not args.concept:
        parser.print_usage()
        return 1

    settings = get_settings()
    try:
        graph, explanation, source = load_scene(args)
    except MimicError as e:
        print(f"❌ Could not build a scene: {e}")
        return 2

    print(f"Scene: {len(graph.objects)} objects, {len(graph.relationships)} relationships, {graph.step_count} steps")
    for i, entry in enumerate(graph.sequence, start=1):
        print(f"  Step {i}/{graph.step_count} — {entry.label or entry.target_id}")

    renderer = MoviePyRenderer(
        fps=args.fps or settings.fps,
        size=settings.frame_size,
        step_seconds=args.step_seconds or settings.step_seconds,
    )
    out = args.out or video_path_for(source, settings.output_dir)
    video = renderer.render(graph, output_filename=out, explanation=explanation)
    print(f"✅ Video created: {video}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
