"""Headless compositor - CLI entry point.

Keys a foreground image, places it over an optional background (and optional
3D primitives) and writes the flattened composite as a PNG.

Usage:
    chromagen-render -f subject.png [-b background.jpg] [-o OUTPUT] [options]

Examples:
    chromagen-render -f greenscreen.png -b beach.jpg
    chromagen-render -f greenscreen.png --canvas "Square Post (1:1)" -o renders/
    chromagen-render -f greenscreen.png --size 1920x1080 --key-color "#00ff00" --similarity 0.35
    chromagen-render -b room.jpg --scene cube --scene torus -o scene.png
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from chromagen.constants import (
    DEFAULT_KEY_COLOR, DEFAULT_SIMILARITY, DEFAULT_SMOOTHNESS, SCENE_OBJECT_TYPES,
)
from chromagen.models.canvas import CanvasSettings
from chromagen.services.image_io import DecodeFailure

logger = logging.getLogger(__name__)


def _parse_size(text: str):
    """'1920x1080' -> (1920, 1080)"""
    try:
        width, height = (int(part) for part in text.lower().split('x'))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {text!r}") from None
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"Size must be positive, got {text!r}")
    return width, height


def _ensure_qapp():
    """Return existing QApplication or create a headless one."""
    os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
    from PyQt5.QtWidgets import QApplication
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv[:1])
    return app


def build_parser():
    parser = argparse.ArgumentParser(
        description='Chroma-key and composite images to a PNG (headless).',
    )
    parser.add_argument('-f', '--foreground', help='Foreground image shot against the key color.')
    parser.add_argument('-b', '--background', help='Background image (cover fit).')
    parser.add_argument(
        '-o', '--output',
        default='./output',
        help='Output PNG file, or a directory for an auto-named file (default: ./output).',
    )

    canvas = parser.add_mutually_exclusive_group()
    canvas.add_argument('--canvas', help='Canvas preset name, e.g. "Full HD (1080p)".')
    canvas.add_argument('--size', type=_parse_size, help='Custom canvas size WIDTHxHEIGHT.')
    parser.add_argument('--list-presets', action='store_true', help='List canvas presets and exit.')

    keying = parser.add_argument_group('keying')
    keying.add_argument('--key-color', default=DEFAULT_KEY_COLOR, help='Key color as hex (default: %(default)s).')
    keying.add_argument('--similarity', type=float, default=DEFAULT_SIMILARITY, help='0-1 (default: %(default)s).')
    keying.add_argument('--smoothness', type=float, default=DEFAULT_SMOOTHNESS, help='0-1 (default: %(default)s).')

    placement = parser.add_argument_group('placement')
    for layer in ('fg', 'bg'):
        placement.add_argument(f'--{layer}-x', type=float, default=0.0)
        placement.add_argument(f'--{layer}-y', type=float, default=0.0)
        placement.add_argument(f'--{layer}-scale', type=float, default=1.0)
        placement.add_argument(f'--{layer}-rotate', type=float, default=0.0)
        placement.add_argument(f'--{layer}-opacity', type=float, default=1.0)
    placement.add_argument('--no-shadow', action='store_true', help='Disable the foreground drop shadow.')

    parser.add_argument(
        '--scene',
        action='append',
        choices=SCENE_OBJECT_TYPES,
        default=[],
        help='Add a 3D primitive (repeatable). Needs an OpenGL context.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging.')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if args.list_presets:
        for preset in CanvasSettings.presets():
            print(f"{preset.name}: {preset.width}x{preset.height}")
        return 0

    if not args.foreground and not args.background:
        print("Error: nothing to composite (pass --foreground and/or --background)")
        return 1

    if args.canvas:
        canvas = CanvasSettings.preset(args.canvas)
        if canvas is None:
            print(f"Error: unknown canvas preset {args.canvas!r} (see --list-presets)")
            return 1
    elif args.size:
        canvas = CanvasSettings.custom(*args.size)
    else:
        canvas = CanvasSettings()

    _ensure_qapp()
    from chromagen.studio import Studio

    scene_renderer = None
    if args.scene:
        from chromagen.services.scene_renderer import SceneRenderer
        try:
            scene_renderer = SceneRenderer()
        except RuntimeError as e:
            print(f"Warning: 3D scene skipped ({e})")

    studio = Studio(scene_renderer=scene_renderer, shadow_enabled=not args.no_shadow)
    try:
        studio.set_canvas(canvas)
        try:
            studio.set_chroma(color=args.key_color, similarity=args.similarity, smoothness=args.smoothness)
            if args.background:
                studio.load_background(args.background)
            if args.foreground:
                studio.load_foreground(args.foreground)
        except (DecodeFailure, ValueError) as e:
            print(f"Error: {e}")
            return 1

        studio.transform_actions.update('foreground', x=args.fg_x, y=args.fg_y, scale=args.fg_scale,
                                        rotate=args.fg_rotate, opacity=args.fg_opacity)
        studio.transform_actions.update('background', x=args.bg_x, y=args.bg_y, scale=args.bg_scale,
                                        rotate=args.bg_rotate, opacity=args.bg_opacity)
        for object_type in args.scene:
            studio.scene_actions.add_object(object_type)

        output = Path(args.output)
        if output.suffix.lower() == '.png':
            path = studio.file_actions.save_export(output.parent, output.name)
        else:
            path = studio.file_actions.save_export(output)
    finally:
        studio.shutdown()
        if scene_renderer is not None:
            scene_renderer.cleanup()

    print(f"Wrote {canvas.width}x{canvas.height} composite to {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
