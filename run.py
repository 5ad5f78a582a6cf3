#!/usr/bin/env python3
"""
Simple runner script for mineagent.

Starts a simulated mine from a source checkout, before the
package has been installed.
"""

import sys
from pathlib import Path

def main():
    current_dir = Path(__file__).parent
    sys.path.insert(0, str(current_dir))

    main_py = current_dir / "main.py"
    if not main_py.exists():
        print("Error: main.py not found!")
        print("Please run this script from the project root directory.")
        sys.exit(1)

    try:
        from main import main as app_main
    except ImportError as e:
        print(f"Import error: {e}")
        print("\nPlease install the package first:")
        print("  pip install -e .")
        print("\nOr run the CLI directly:")
        print("  python -m mineagent.main")
        sys.exit(1)
    app_main()

if __name__ == "__main__":
    main()
