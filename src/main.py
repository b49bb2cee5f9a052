import argparse
import sys
import os
import traceback

# Add project root to path (one level up from this file)
root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(root_dir)

from src.utils.logger import log, set_level
from src.config.manager import config_manager


def build_parser():
    parser = argparse.ArgumentParser(prog="python -m src.main",
                                     description="Print a hardware inventory summary for this machine.")
    parser.add_argument("--replay", metavar="CAPTURE",
                        help="Read raw tables from a YAML capture instead of querying the machine")
    parser.add_argument("--capture", metavar="OUT",
                        help="Also write the raw tables of the live source to a YAML file")
    return parser


def main(argv=None):
    from src.services.hardware.base import InventoryError
    from src.services.hardware.selectors import ALL_SELECTORS
    from src.services.hardware.sources import (
        RecordedSource,
        capture_tables,
        create_default_sources,
        write_capture,
    )
    from src.services.inventory_service import InventoryService

    args = build_parser().parse_args(argv)

    set_level(config_manager.get("log_level", "INFO"))

    try:
        if args.replay:
            log.info(f"Replaying capture {args.replay}")
            sources = [RecordedSource.from_file(args.replay)]
        else:
            sources = create_default_sources(config_manager.get("preferred_source", "auto"),
                                             timeout=config_manager.get("command_timeout_secs", 15))

        if args.capture:
            if not sources:
                log.error("No live source to capture from")
                return 1
            write_capture(capture_tables(sources[0], ALL_SELECTORS), args.capture)
            log.info(f"Wrote capture to {args.capture}")

        snapshot = InventoryService(sources).build_snapshot()
        print(snapshot.render())
        return 0

    except InventoryError as e:
        log.error(f"Inventory unavailable: {e}")
        return 1
    except Exception as e:
        log.critical(f"Unhandled exception: {e}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
