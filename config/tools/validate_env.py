# config/tools/validate_env.py

import sys           # for exit codes
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_env.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from env.loader import ConfigError, load_behavior_config  # import our loader


def main() -> None:
    """Load and print the resolved behavior config, failing fast on errors."""
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        cfg = load_behavior_config(path)
    except ConfigError as e:
        print("Config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        sys.exit(1)                          # non-zero exit: CI will mark as failed

    print("Config validation OK.")
    print("\nPatrol:")
    pprint(cfg.patrol)
    print("\nTiming:")
    pprint(cfg.timing)
    print("\nContainer interaction:")
    pprint(cfg.container)
    print("\nBridge:")
    pprint(cfg.bridge)


if __name__ == "__main__":
    main()  # run main() only when script is executed directly
