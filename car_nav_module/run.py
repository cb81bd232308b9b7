#!/usr/bin/env python3
"""
Car Nav Module - Main Entry Point

This script initializes and runs the control loop that drives the car to
the quadrant assigned by the oracle.

Usage:
    car-nav
    python -m car_nav_module.run
    python -m car_nav_module.run --config /path/to/config.json
    python -m car_nav_module.run --target TL
    python -m car_nav_module.run --debug
"""

import argparse
import asyncio
import logging
import sys

from car_nav_module import CarNavModule, Config
from car_nav_module.core.interfaces import Quadrant
from car_nav_module.utils import create_default_config_file, save_aruco_marker


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Quadrant car navigation module",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with default configuration and environment overrides
    car-nav

    # Run with custom config file
    car-nav --config /path/to/config.json

    # Ignore the oracle and drive to a fixed quadrant
    car-nav --target TL

    # Run with debug logging
    car-nav --debug

    # Generate a default config file
    car-nav --generate-config config.json

    # Print marker 13 (top-left landmark)
    car-nav --generate-marker 13 marker_13.png
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (JSON format)"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--generate-config", "-g",
        type=str,
        metavar="PATH",
        help="Generate a default config file and exit"
    )

    parser.add_argument(
        "--generate-marker",
        nargs=2,
        metavar=("ID", "PATH"),
        help="Write an ArUco marker image for the configured dictionary and exit"
    )

    parser.add_argument(
        "--target", "-t",
        type=str,
        default=None,
        help="Fixed target quadrant code (e.g. TL, Q3, 12), skips the oracle"
    )

    parser.add_argument(
        "--car-url",
        type=str,
        default=None,
        help="Override car drive URL"
    )

    parser.add_argument(
        "--oracle-url",
        type=str,
        default=None,
        help="Override oracle URL"
    )

    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Load configuration and apply command line overrides."""
    if args.config:
        print(f"Loading config from: {args.config}")
        config = Config.from_environment(Config.from_file(args.config))
    else:
        print("Using default configuration with environment overrides")
        config = Config.from_environment()

    if args.debug:
        config.debug_mode = True
        config.log_level = "DEBUG"

    if args.target is not None:
        if Quadrant.parse(args.target) is None:
            raise ValueError(f"Unknown target quadrant: {args.target!r}")
        config.communication.oracle_override = args.target

    if args.car_url:
        config.communication.car.url = args.car_url

    if args.oracle_url:
        config.communication.oracle.url = args.oracle_url

    return config


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Generate config file if requested
    if args.generate_config:
        create_default_config_file(args.generate_config)
        print(f"Generated default config at: {args.generate_config}")
        return 0

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.generate_marker:
        marker_id, path = args.generate_marker
        save_aruco_marker(int(marker_id), path, config.vision.aruco_dictionary)
        print(f"Wrote marker {marker_id} to: {path}")
        return 0

    # Setup logging
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger = logging.getLogger(__name__)

    # Print configuration summary
    logger.info("=" * 60)
    logger.info(f"Car #{config.vision.car_marker_id} starting up")
    logger.info("=" * 60)
    logger.info(f"  car     : {config.communication.car.url}")
    for i, endpoint in enumerate(config.camera.endpoints):
        logger.info(f"  camera{i + 1} : {endpoint.url}")
    if config.communication.oracle_override:
        logger.info(f"  oracle  : fixed {config.communication.oracle_override}")
    else:
        logger.info(f"  oracle  : {config.communication.oracle.url}")
    logger.info(f"  ArUco   : {config.vision.aruco_dictionary}")
    logger.info("=" * 60)

    # Create and run module
    try:
        module = CarNavModule(config)
        asyncio.run(module.run())
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
