"""
Command line entry point for the Makerspace project wall.

`scrape` refreshes data/projects.json from the Makerspace website,
`display` cycles through the saved projects in the terminal.
"""

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from projectwall.display import config as display_config
from projectwall.display.slideshow import Slideshow
from projectwall.makerspace import config as scraper_config
from projectwall.makerspace.makerspace_scraper import run_scraper, setup_logging
from projectwall.makerspace.tag_filter import TagFilterConfig

logger = logging.getLogger(__name__)


def run_scrape(args: argparse.Namespace) -> int:
    """Run one scrape and return a process exit code."""
    log_file = setup_logging(debug=args.dev or scraper_config.IS_DEVELOPMENT)

    max_projects = args.max_projects
    if max_projects is None:
        max_projects = 5 if args.dev else scraper_config.MAX_PROJECTS

    start_time = time.time()

    try:
        tag_filter = TagFilterConfig.from_config()
        if args.no_tag_filter:
            tag_filter = replace(tag_filter, enabled=False)

        dataset = run_scraper(
            output_path=args.output,
            max_projects=max_projects,
            tag_filter=tag_filter,
        )
    except Exception as e:
        logger.error(f"✗ Scraping process failed: {e}")
        logger.info(f"Log saved to: {log_file}")
        return 1

    elapsed_time = time.time() - start_time
    if dataset is None:
        logger.info("✓ Scraping finished without new data, existing dataset left untouched")
    else:
        logger.info(f"✓ Scraping process completed successfully ({dataset.total_projects} projects)")
    logger.info(f"Time taken: {elapsed_time/60:.1f} minutes")
    logger.info(f"Log saved to: {log_file}")
    return 0


def run_display(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )
    slideshow = Slideshow(
        data_path=args.data,
        window_size=args.window_size,
        cycle_duration=args.cycle_seconds,
    )
    return slideshow.run(once=args.once)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='projectwall',
        description='Scrape Makerspace projects and cycle through them on a display',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Refresh the dataset
  python -m projectwall.main scrape

  # Quick run limited to 5 projects with debug logging
  python -m projectwall.main scrape --dev

  # Cycle through the saved projects
  python -m projectwall.main display

  # Print the first window and exit
  python -m projectwall.main display --once
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    scrape = subparsers.add_parser('scrape', help='Scrape projects and write the dataset')
    scrape.add_argument(
        '--dev', '-d',
        action='store_true',
        help='Development mode: limit to 5 projects and log debug output'
    )
    scrape.add_argument(
        '--max-projects', '-m',
        type=int,
        help='Maximum number of projects to scrape'
    )
    scrape.add_argument(
        '--output', '-o',
        type=Path,
        default=scraper_config.DATA_PATH,
        help=f'Dataset path (default: {scraper_config.DATA_PATH})'
    )
    scrape.add_argument(
        '--no-tag-filter',
        action='store_true',
        help='Keep every project regardless of its tags'
    )
    scrape.set_defaults(handler=run_scrape)

    display = subparsers.add_parser('display', help='Cycle through the saved projects')
    display.add_argument(
        '--data',
        type=Path,
        default=display_config.DATA_PATH,
        help=f'Dataset path (default: {display_config.DATA_PATH})'
    )
    display.add_argument(
        '--cycle-seconds',
        type=float,
        default=display_config.CYCLE_DURATION,
        help='Seconds each set of projects stays on screen'
    )
    display.add_argument(
        '--window-size',
        type=int,
        default=display_config.WINDOW_SIZE,
        help='Number of projects shown at once'
    )
    display.add_argument(
        '--once',
        action='store_true',
        help='Show the first set of projects and exit'
    )
    display.set_defaults(handler=run_display)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point with command-line argument handling."""
    args = build_parser().parse_args(argv)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
