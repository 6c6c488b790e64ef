#!/usr/bin/env python3
"""
QuakeView - Main Entry Point
Run the earthquake catalogue browser terminal UI

Usage: main.py [CSV path or URL]
"""
import sys
import traceback
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from QuakeView.config import ViewerSettings
from QuakeView.log_config import configure_logging
from QuakeView.UI import run_app


def main() -> None:
    settings = ViewerSettings.from_env()
    log_path = configure_logging(settings.log_dir, settings.log_level)
    source = sys.argv[1] if len(sys.argv) > 1 else None

    print("Starting QuakeView Terminal UI...")
    print(f"Source: {source or settings.csv_url}")
    print(f"Logging to {log_path}")
    print("Press 'q' to quit, 'r' to refresh, 'n'/'p' for next/previous page, 'c' to clear selection")
    print("-" * 80)

    try:
        run_app(source, settings)
    except KeyboardInterrupt:
        print("\nQuakeView terminated by user")
    except Exception as e:
        print(f"\nError running QuakeView: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
