"""
Command line entry point for Reflector.
Prints the reflected layout of a ctypes structure.
"""

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Type

from . import __version__
from .config import ReflectorConfig, load_config
from .core.errors import ReflectionError
from .core.registry import DescriptorRegistry, get_registry

logger = logging.getLogger('reflector.main')


def setup_logging(config: ReflectorConfig):
    """Configure logging based on settings."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def resolve_target(spec: str) -> Type:
    """Import a type given as ``package.module:Name`` (nested names use dots)."""
    module_name, sep, qualname = spec.partition(':')
    if not sep or not module_name or not qualname:
        raise ValueError(f"expected 'module:Type', got '{spec}'")

    target = importlib.import_module(module_name)
    for part in qualname.split('.'):
        target = getattr(target, part)
    return target


def format_layout(report: dict) -> str:
    """Render a layout report as a table."""
    lines = [
        f"{report['module']}.{report['type']}  "
        f"({report['source']}, {report['size']} bytes, align {report['alignment']}, "
        f"{report['count']} fields)",
        f"{'#':>4}  {'name':<24} {'type':<24} {'offset':>6} {'size':>6} {'align':>6}",
    ]
    for entry in report['fields']:
        lines.append(
            f"{entry['index']:>4}  {entry['name']:<24} {entry['type']:<24} "
            f"{entry['offset']:>6} {entry['size']:>6} {entry['alignment']:>6}"
        )
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='reflector', description=__doc__.strip())
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument('--config', type=Path, help="configuration file to load")
    parser.add_argument('--log-level', help="logging level (DEBUG, INFO, WARNING...)")
    parser.add_argument('--manual-only', action='store_true',
                        help="never probe, require registered descriptors")

    commands = parser.add_subparsers(dest='command', required=True)

    describe = commands.add_parser('describe', help="print the reflected layout of a type")
    describe.add_argument('target', help="type to describe, as module:Type")
    describe.add_argument('--json', action='store_true', help="print the layout as JSON")

    offset = commands.add_parser('offset', help="print the offset of one field")
    offset.add_argument('target', help="type to inspect, as module:Type")
    offset.add_argument('index', type=int, help="reflected field index")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.manual_only:
        config.manual_only = True
    setup_logging(config)

    try:
        target = resolve_target(args.target)
    except (ImportError, AttributeError, ValueError) as e:
        print(f"error: cannot load {args.target}: {e}", file=sys.stderr)
        return 2

    # Descriptors registered while importing the target live on the shared registry
    registry = DescriptorRegistry(config)
    shared = get_registry().get(target)

    try:
        descriptor = shared if shared is not None else registry.describe(target)
        if args.command == 'describe':
            report = descriptor.to_dict()
            print(json.dumps(report, indent=2) if args.json else format_layout(report))
        else:
            print(descriptor.member_offset(args.index))
    except (ReflectionError, IndexError) as e:
        logger.debug(f"Reflection of {args.target} failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
