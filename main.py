#!/usr/bin/env python3
"""
mineagent - automated mining companion.

This is the main entry point for the application.
It runs the CLI without needing the console script installed.
"""

import sys
import os
from pathlib import Path

# Add the current directory to Python path to ensure imports work
sys.path.insert(0, str(Path(__file__).parent))

def main():
    """
    Main entry point for the application.

    Imports the click group and runs it; import failures and
    unexpected errors are reported instead of dumping a traceback.
    """
    try:
        from mineagent.main import cli

        cli()
    except ImportError as e:
        print(f"Error: Failed to import required modules: {e}")
        print("Please make sure you have installed the package with:")
        print("  pip install -e .")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}")
        if os.environ.get("MINEAGENT_VERBOSE"):
            import traceback
            traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    main()
