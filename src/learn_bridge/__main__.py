"""Allow ``python -m learn_bridge``."""

from learn_bridge.cli import run

if __name__ == "__main__":
    run()
